"""Argument parsing functionality for modpin."""

import argparse
from constants import Constants

def parse_args(argv=None):
    """Parses the arguments passed to the program."""
    parser = argparse.ArgumentParser(
        prog="modpin",
        description=(
            "modpin - Resolve Go module versions across configuration units"
        ),
        add_help=True,
    )

    parser.add_argument("-c", "--config",
                        dest="CONFIG",
                        help="Path to configuration file (YAML, YML, or JSON)",
                        action="store",
                        type=str,
                        required=True)
    parser.add_argument("-o", "--output",
                        dest="OUTPUT",
                        help="Path to JSON output file for the resolved module table",
                        action="store",
                        type=str)

    parser.add_argument("--check-direct-dependencies",
                        dest="CHECK_DIRECT_DEPENDENCIES",
                        help="Override how stale root requirements are reported (off, warning, error)",
                        action="store",
                        type=str.lower,
                        choices=Constants.STRICTNESS_LEVELS)
    parser.add_argument("--version-conflicts",
                        dest="VERSION_CONFLICTS",
                        help="Override how conflicting versions within one unit are reported (off, warning, error)",
                        action="store",
                        type=str.lower,
                        choices=Constants.STRICTNESS_LEVELS)
    parser.add_argument("--isolated",
                        dest="ISOLATED",
                        help="Evaluate as an isolated extension usage: every unit may declare overrides.",
                        action="store_true")

    parser.add_argument("--loglevel",
                        dest="LOG_LEVEL",
                        help="Set the logging level",
                        action="store",
                        type=str,
                        choices=Constants.LOG_LEVELS,
                        default='INFO')
    parser.add_argument("--logfile",
                        dest="LOG_FILE",
                        help="Log output file",
                        action="store",
                        type=str)
    parser.add_argument("--error-on-warnings",
                        dest="ERROR_ON_WARNINGS",
                        help="Exit with a non-zero status code if warnings are present.",
                        action="store_true")
    parser.add_argument("-q", "--quiet",
                        dest="QUIET",
                        help="Do not output to console.",
                        action="store_true")

    return parser.parse_args(argv)
