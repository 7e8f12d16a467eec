"""Run configuration, settings file and encoding names."""

import codecs
import json
import logging
import os
from dataclasses import dataclass
from typing import Optional

log = logging.getLogger(__name__)

MODE_CREATE = "create"
MODE_UPDATE = "update"
MODE_MATCH = "match"

NORMALIZATION_MODES = ("exact", "trim", "casefold", "trim+casefold")
DEFAULT_NORMALIZATION = "trim+casefold"

# Keys a settings file may provide, mapped to Config attributes
_SETTINGS_KEYS = {
    "encoding": "encoding",
    "output_dir": "output_dir",
    "jobs": "jobs",
    "normalization": "normalization",
}


class EncodingError(ValueError):
    """The game text encoding is missing or not a known codec."""


class SettingsError(ValueError):
    """A settings file exists but cannot be used."""


@dataclass
class Config:
    """Everything one run needs. Passed explicitly, never global."""
    input_dir: str = "."
    mode: str = MODE_CREATE
    match_dir: str = ""        # MDIR in match mode
    encoding: str = ""         # Empty = read from RPG_RT.ini or detect
    output_dir: str = "."
    jobs: int = 1              # Worker threads for independent units
    normalization: str = DEFAULT_NORMALIZATION

    def validate(self):
        if self.mode not in (MODE_CREATE, MODE_UPDATE, MODE_MATCH):
            raise SettingsError(f"Unknown mode {self.mode!r}")
        if self.mode == MODE_MATCH and not self.match_dir:
            raise SettingsError("Match mode needs a directory to match against")
        if self.normalization not in NORMALIZATION_MODES:
            raise SettingsError(
                f"Unknown normalization {self.normalization!r}, "
                f"expected one of {', '.join(NORMALIZATION_MODES)}")
        if not isinstance(self.jobs, int) or self.jobs < 1:
            raise SettingsError(f"jobs must be a positive integer, got {self.jobs!r}")
        if (self.mode == MODE_MATCH
                and os.path.abspath(self.output_dir) == os.path.abspath(self.match_dir)):
            raise SettingsError(
                "You need to specify a different output directory (-o).")


def load_settings(path: str) -> dict:
    """Read defaults from a JSON settings file.

    A missing file yields no settings. Unknown keys are ignored with a
    warning.
    """
    try:
        with open(path, "r", encoding="utf-8") as f:
            cfg = json.load(f)
    except FileNotFoundError:
        return {}
    except (json.JSONDecodeError, OSError) as e:
        raise SettingsError(f"Cannot read settings file {path}: {e}") from e

    if not isinstance(cfg, dict):
        raise SettingsError(f"Settings file {path} must contain a JSON object")

    settings = {}
    for key, value in cfg.items():
        attr = _SETTINGS_KEYS.get(key)
        if attr is None:
            log.warning("Ignoring unknown setting %r in %s", key, path)
            continue
        settings[attr] = value
    return settings


def normalize_encoding(name: Optional[str]) -> str:
    """Turn a user or INI encoding name into a Python codec name.

    Windows codepage numbers as used by RPG_RT.ini ("932", "1252") become
    "cp932", "cp1252".

    Raises:
        EncodingError: if the name is empty or not a known codec.
    """
    name = (name or "").strip()
    if not name:
        raise EncodingError("No encoding given and none could be detected")
    candidate = f"cp{name}" if name.isdigit() else name
    try:
        return codecs.lookup(candidate).name
    except LookupError:
        raise EncodingError(f"Bad encoding {name}") from None
