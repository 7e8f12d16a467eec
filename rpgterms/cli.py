"""Command line interface."""

import argparse
import logging
import sys

from . import __version__
from .config import (
    MODE_CREATE, MODE_MATCH, MODE_UPDATE, NORMALIZATION_MODES, Config,
    EncodingError, SettingsError, load_settings,
)
from .pipeline import TermPipeline

log = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_BAD_ENCODING = 3


class _ArgumentParser(argparse.ArgumentParser):
    """Usage errors exit with 1 like every other failure."""

    def error(self, message):
        self.print_usage(sys.stderr)
        self.exit(EXIT_FAILURE, f"{self.prog}: error: {message}\n")


def build_parser() -> argparse.ArgumentParser:
    parser = _ArgumentParser(
        prog="rpg-terms",
        description="Translate RPG Maker 2000/2003 projects",
        formatter_class=argparse.RawTextHelpFormatter,
    )
    parser.add_argument("directory", metavar="DIRECTORY", help="Game directory")

    group = parser.add_mutually_exclusive_group(required=True)
    group.add_argument("-c", "--create", action="store_true",
                       help="Create a new translation")
    group.add_argument("-u", "--update", action="store_true",
                       help="Update an existing translation")
    group.add_argument("-m", "--match", metavar="MDIR",
                       help="Match the translations in MDIR and DIRECTORY. When matched\n"
                            "the original in MDIR becomes the translation of DIRECTORY.\n"
                            "Used to generate translations from games where the trans-\n"
                            "lation is hardcoded in the game files.")

    parser.add_argument("-e", "--encoding", metavar="ENC",
                        help="When not specified, is read from RPG_RT.ini or auto-detected")
    parser.add_argument("-o", "--output", metavar="OUTDIR",
                        help="Output directory (default: working directory)")
    parser.add_argument("-j", "--jobs", type=int, metavar="N",
                        help="Process up to N units in parallel (default: 1)")
    parser.add_argument("--normalization", choices=NORMALIZATION_MODES,
                        help="Text comparison used by --match (default: trim+casefold)")
    parser.add_argument("--settings", metavar="FILE",
                        help="JSON file with default option values")
    parser.add_argument("-v", "--verbose", action="store_true",
                        help="Show debug output")
    parser.add_argument("--version", action="version",
                        version=f"%(prog)s {__version__}")
    # Old style: encoding as trailing positional argument
    parser.add_argument("additional", nargs="*", help=argparse.SUPPRESS)
    return parser


def build_config(args: argparse.Namespace) -> Config:
    """Combine settings file defaults with command line values."""
    settings = load_settings(args.settings) if args.settings else {}
    cfg = Config(**settings)

    cfg.input_dir = args.directory
    if args.create:
        cfg.mode = MODE_CREATE
    elif args.update:
        cfg.mode = MODE_UPDATE
    else:
        cfg.mode = MODE_MATCH
        cfg.match_dir = args.match

    if args.additional:
        if len(args.additional) > 1:
            raise SettingsError("Found additional, unrecognized arguments.")
        log.warning("Specifying ENCODING as last argument is deprecated, "
                    "`-e ENC` is the replacement.")
        cfg.encoding = args.additional[0]
    if args.encoding:
        cfg.encoding = args.encoding
    if args.output:
        cfg.output_dir = args.output
    if args.jobs is not None:
        cfg.jobs = args.jobs
    if args.normalization:
        cfg.normalization = args.normalization
    return cfg


def setup_logging(verbose: bool = False):
    if verbose:
        logging.basicConfig(level=logging.DEBUG,
                            format="%(levelname)s %(name)s: %(message)s")
    else:
        logging.basicConfig(level=logging.INFO, format="%(message)s")


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_intermixed_args(argv)
    setup_logging(args.verbose)

    try:
        cfg = build_config(args)
        pipeline = TermPipeline(cfg)
        log.info("rpg-terms %s", __version__)
        pipeline.run()
    except EncodingError as e:
        log.error("%s", e)
        return EXIT_BAD_ENCODING
    except (OSError, SettingsError) as e:
        # DirectoryAccessError and unreadable or unwritable units
        log.error("%s", e)
        return EXIT_FAILURE
    return EXIT_OK
