"""Common CLI argument registration utilities."""
from __future__ import annotations

import argparse


def add_json_flag(parser: argparse.ArgumentParser) -> None:
    """Add --json flag for JSON output mode."""
    parser.add_argument(
        "--json",
        action="store_true",
        help="Output as JSON",
    )


def add_cwd_flag(parser: argparse.ArgumentParser) -> None:
    """Add --cwd flag (project directory, also the server's working directory)."""
    parser.add_argument(
        "--cwd",
        type=str,
        help="Project directory; relative dirs and ssg.yaml are resolved here (default: current directory)",
    )


def add_config_flag(parser: argparse.ArgumentParser) -> None:
    """Add --config flag for an explicit project config file."""
    parser.add_argument(
        "--config",
        type=str,
        help="Project config file (default: <cwd>/ssg.yaml when present)",
    )


def add_logging_flags(parser: argparse.ArgumentParser) -> None:
    """Add --verbose and --log-file flags."""
    parser.add_argument(
        "--verbose",
        "-v",
        action="count",
        default=0,
        help="Increase log verbosity (-v: INFO, -vv: DEBUG)",
    )
    parser.add_argument(
        "--log-file",
        type=str,
        help="Write logs to this file instead of stderr",
    )


def add_standard_flags(parser: argparse.ArgumentParser) -> None:
    """Add the flags shared by every command."""
    add_json_flag(parser)
    add_cwd_flag(parser)
    add_config_flag(parser)
    add_logging_flags(parser)
