"""rym - module-aware dependency installer.

Entry point for the ``rym`` console script.
"""

import logging
import sys
from pathlib import Path

from args import parse_args
from cli_config import apply_settings, load_settings
from constants import Constants, ExitCodes
from common.logging_utils import add_file_handler, configure_logging, extra_context, is_debug_enabled
from common.reporter import Reporter
from errors import RymError
from clean import clean
from install import InstallPaths, install
from wrap import wrap

logger = logging.getLogger(__name__)


def _setup_logging(args) -> None:
    level = args.LOG_LEVEL
    if getattr(args, "SILENT", False) and level is None:
        level = "WARNING"
    configure_logging(level)
    if args.LOG_FILE:
        add_file_handler(args.LOG_FILE)


def run_install(args) -> int:
    apply_settings(load_settings(args.SETTINGS))
    reporter = Reporter(silent=args.SILENT)
    try:
        install(InstallPaths.from_args(args), reporter)
    except RymError as e:
        reporter.error("Error: %s", e)
        reporter.sumup_problems()
        return e.exit_code.value
    reporter.sumup_problems()
    return ExitCodes.SUCCESS.value


def run_clean(args) -> int:
    clean(Path(args.OUTPUT_DIR or Constants.DEFAULT_OUTPUT_DIR))
    return ExitCodes.SUCCESS.value


def run_wrap(args) -> int:
    wrap(
        Path(args.LAUNCHER_DIR or Constants.DEFAULT_LAUNCHER_DIR),
        Path(args.OUTPUT_DIR or Constants.DEFAULT_OUTPUT_DIR),
        version=args.VERSION,
        repository=args.REPOSITORY,
        local_repository=args.LOCAL_REPOSITORY,
    )
    return ExitCodes.SUCCESS.value


COMMANDS = {
    "install": run_install,
    "clean": run_clean,
    "wrap": run_wrap,
}


def main(argv=None):
    """Main function of the program."""
    args = parse_args(argv)
    _setup_logging(args)

    if is_debug_enabled(logger):
        logger.debug(
            "CLI start",
            extra=extra_context(event="function_entry", component="cli", action=args.action),
        )

    try:
        code = COMMANDS[args.action](args)
    except OSError as e:
        logger.error("Error: %s", e)
        code = ExitCodes.FILE_ERROR.value
    sys.exit(code)


if __name__ == "__main__":
    main()
