import json

import pytest

from rpgterms import __version__
from rpgterms.cli import build_config, build_parser, main
from rpgterms.config import MODE_CREATE, MODE_MATCH, MODE_UPDATE, SettingsError


def _config(*argv):
    return build_config(build_parser().parse_intermixed_args(list(argv)))


def test_modes():
    assert _config("game", "-c").mode == MODE_CREATE
    assert _config("game", "--update").mode == MODE_UPDATE
    cfg = _config("game", "-m", "other", "-o", "out")
    assert (cfg.mode, cfg.match_dir, cfg.output_dir) == (MODE_MATCH, "other", "out")


def test_modes_are_exclusive_and_required(capsys):
    with pytest.raises(SystemExit) as exc:
        main(["game", "-c", "-u"])
    assert exc.value.code == 1
    with pytest.raises(SystemExit) as exc:
        main(["game"])
    assert exc.value.code == 1


def test_deprecated_trailing_encoding(caplog):
    cfg = _config("game", "-c", "932")
    assert cfg.encoding == "932"
    assert "deprecated" in caplog.text


def test_explicit_encoding_beats_trailing_one():
    assert _config("game", "-c", "-e", "1252", "932").encoding == "1252"


def test_too_many_positionals():
    with pytest.raises(SettingsError):
        _config("game", "-c", "932", "extra")


def test_settings_file_gives_defaults(tmp_path):
    settings = tmp_path / "settings.json"
    settings.write_text(json.dumps({"jobs": 3, "encoding": "932"}), encoding="utf-8")

    cfg = _config("game", "-c", "--settings", str(settings), "-e", "1252")

    assert cfg.jobs == 3
    assert cfg.encoding == "1252"


def test_version(capsys):
    with pytest.raises(SystemExit) as exc:
        main(["--version"])
    assert exc.value.code == 0
    assert __version__ in capsys.readouterr().out


def test_create_run(game_dir, out_dir):
    assert main([str(game_dir), "-c", "-o", str(out_dir)]) == 0
    assert (out_dir / "RPG_RT.ldb.po").exists()
    assert (out_dir / "Map0001.lmu.po").exists()


def test_bad_encoding_exit_code(game_dir, out_dir):
    assert main([str(game_dir), "-c", "-e", "klingon", "-o", str(out_dir)]) == 3


def test_missing_output_dir_exit_code(game_dir, tmp_path):
    assert main([str(game_dir), "-c", "-o", str(tmp_path / "missing")]) == 1


def test_match_into_mdir_exit_code(tmp_path):
    assert main([str(tmp_path), "-m", str(tmp_path), "-o", str(tmp_path)]) == 1
