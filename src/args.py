"""Argument parsing for rym."""

import argparse
from constants import Constants


def _add_logging_args(parser):
    parser.add_argument("--loglevel",
                        dest="LOG_LEVEL",
                        help="Set the logging level",
                        action="store",
                        type=str.upper,
                        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'],
                        default=None)
    parser.add_argument("--logfile",
                        dest="LOG_FILE",
                        help="Log output file",
                        action="store",
                        type=str)


def _add_output_arg(parser):
    parser.add_argument("--output-directory",
                        dest="OUTPUT_DIR",
                        help=f"Output directory (default: {Constants.DEFAULT_OUTPUT_DIR})",
                        action="store",
                        type=str)


def _add_launcher_arg(parser):
    parser.add_argument("--launcher-directory",
                        dest="LAUNCHER_DIR",
                        help=f"Directory for generated scripts (default: {Constants.DEFAULT_LAUNCHER_DIR})",
                        action="store",
                        type=str)


def build_parser():
    """Build the rym argument parser with its subcommands."""
    parser = argparse.ArgumentParser(
        prog="rym",
        description="rym - module-aware dependency installer",
        add_help=True,
    )
    subparsers = parser.add_subparsers(dest="action", metavar="command")
    subparsers.required = True

    install = subparsers.add_parser("install", help="Install dependencies and link the runtime image")
    install.add_argument("--config-directory",
                         dest="CONFIG_DIR",
                         help=f"Directory holding {Constants.DEPENDENCY_FILENAME} (default: {Constants.DEFAULT_CONFIG_DIR})",
                         action="store",
                         type=str)
    install.add_argument("--lock-directory",
                         dest="LOCK_DIR",
                         help=f"Directory holding {Constants.DEPENDENCY_LOCK_FILENAME} (default: config directory)",
                         action="store",
                         type=str)
    install.add_argument("--cache-directory",
                         dest="CACHE_DIR",
                         help="Artifact cache directory (default: <output>/cache)",
                         action="store",
                         type=str)
    _add_output_arg(install)
    _add_launcher_arg(install)
    install.add_argument("--silent",
                         dest="SILENT",
                         help="Only report warnings and errors, and skip the problem summary.",
                         action="store_true")
    install.add_argument("--settings",
                         dest="SETTINGS",
                         help=f"YAML settings file (default: ${Constants.ENV_SETTINGS})",
                         action="store",
                         type=str)
    _add_logging_args(install)

    clean = subparsers.add_parser("clean", help="Delete the output directory")
    _add_output_arg(clean)
    _add_logging_args(clean)

    wrap = subparsers.add_parser("wrap", help=f"Generate the {Constants.WRAPPER_FILENAME} wrapper script")
    wrap.add_argument("--repository",
                      dest="REPOSITORY",
                      help=f"Repository to download rym from (default: {Constants.DEFAULT_REPOSITORY})",
                      action="store",
                      type=str,
                      default=None)
    wrap.add_argument("--local-repository",
                      dest="LOCAL_REPOSITORY",
                      help=f"Local repository checked first (default: {Constants.WRAPPER_LOCAL_REPOSITORY})",
                      action="store",
                      type=str,
                      default=None)
    wrap.add_argument("--version",
                      dest="VERSION",
                      help=f"rym version to run (default: {Constants.WRAPPER_VERSION})",
                      action="store",
                      type=str,
                      default=None)
    _add_launcher_arg(wrap)
    _add_output_arg(wrap)
    _add_logging_args(wrap)

    return parser


def parse_args(argv=None):
    """Parses the arguments passed to the program."""
    return build_parser().parse_args(argv)
