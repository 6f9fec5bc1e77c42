"""modpin - Go module version resolution across configuration units

    Returns:
        int: Exit code
"""
import dataclasses
import logging
import sys

from constants import ExitCodes, Strictness
from common.logging_utils import configure_logging, extra_context, is_debug_enabled
from args import parse_args
from config_loader import load_config
from errors import ConfigurationError
from resolution import ResolutionEngine
from resolution.output import export_json


def apply_cli_overrides(config, args):
    """Return config with strictness and isolation settings from the command line applied.

    Args:
        config (EvaluationConfig): Configuration loaded from file.
        args (argparse.Namespace): Parsed arguments.

    Returns:
        EvaluationConfig: Configuration with CLI values taking precedence.
    """
    changes = {}
    if getattr(args, "CHECK_DIRECT_DEPENDENCIES", None):
        changes["check_direct_dependencies"] = Strictness(args.CHECK_DIRECT_DEPENDENCIES)
    if getattr(args, "VERSION_CONFLICTS", None):
        changes["version_conflicts"] = Strictness(args.VERSION_CONFLICTS)
    if getattr(args, "ISOLATED", False):
        changes["isolated"] = True
    if not changes:
        return config
    return dataclasses.replace(config, **changes)


def main(argv=None):
    """Main function of the program."""
    logger = logging.getLogger(__name__)

    args = parse_args(argv)
    configure_logging(args.LOG_LEVEL, args.LOG_FILE, args.QUIET)

    if is_debug_enabled(logger):
        logger.debug(
            "CLI start",
            extra=extra_context(event="function_entry", component="cli", action="main")
        )

    try:
        config = apply_cli_overrides(load_config(args.CONFIG), args)
    except ConfigurationError as e:
        logging.error("%s", e.diagnostic)
        sys.exit(ExitCodes.FILE_ERROR.value)
    logging.info("Configuration loaded: %d unit(s).", len(config.units))

    evaluation = ResolutionEngine(config).evaluate()
    if not evaluation.ok:
        logging.error("%s", evaluation.diagnostic)
        if is_debug_enabled(logger):
            logger.debug(
                "CLI finished",
                extra=extra_context(event="function_exit", component="cli", action="main",
                                    outcome="failed", count=len(evaluation.errors))
            )
        sys.exit(ExitCodes.RESOLUTION_ERROR.value)

    logging.info("Resolved %d Go module(s).", len(evaluation.result.modules))

    # OUTPUT
    if getattr(args, "OUTPUT", None):
        try:
            export_json(evaluation.result, args.OUTPUT)
        except OSError as e:
            logging.error("Error writing JSON file: %s", e)
            sys.exit(ExitCodes.FILE_ERROR.value)

    if evaluation.warnings:
        logging.warning("%d warning(s) reported during resolution.", len(evaluation.warnings))
        if args.ERROR_ON_WARNINGS:
            logging.error("Warnings present, exiting with non-zero status code.")
            sys.exit(ExitCodes.EXIT_WARNINGS.value)

    sys.exit(ExitCodes.SUCCESS.value)

if __name__ == "__main__":
    main()
