"""
ssg-helper generate command.

SUMMARY: Render the site root through the SSR server into the static output

Boots the SSR build on a local port, waits for it to signal readiness, writes
the rendered ``/`` to ``<dir.ssg>/index.html`` next to the copied static
assets, then stops the server.
"""

from __future__ import annotations

import argparse
import sys
from typing import Any, Dict

from ssg_helper.cli import OutputFormatter, add_standard_flags, get_config_manager, setup_logging
from ssg_helper.core.exceptions import SsgError
from ssg_helper.core.ssg import load_config, run_generation

SUMMARY = "Render the site root through the SSR server into the static output"


def _wait_value(raw: str) -> Any:
    """``stdout``/``ipc`` stay strings; anything numeric becomes milliseconds."""
    try:
        number = float(raw)
    except ValueError:
        return raw
    return int(number) if number.is_integer() else number


def register_args(parser: argparse.ArgumentParser) -> None:
    """Register command-specific arguments."""
    port_group = parser.add_mutually_exclusive_group()
    port_group.add_argument(
        "--port",
        type=int,
        help=(
            "Port for the SSR server; PORT from the environment is used only when "
            "no explicit --port is given (it still overrides --port-range)"
        ),
    )
    port_group.add_argument(
        "--port-range",
        type=int,
        nargs=2,
        metavar=("LOW", "HIGH"),
        help="Search this inclusive range for a free port",
    )
    parser.add_argument(
        "--wait",
        type=_wait_value,
        help="Readiness signal: 'stdout', 'ipc', or a delay in milliseconds (default: stdout)",
    )
    parser.add_argument("--ssr-dir", type=str, help="SSR dist directory (default: dist/ssr)")
    parser.add_argument("--static-dir", type=str, help="Static assets directory (default: dist/ssr/www)")
    parser.add_argument("--out-dir", type=str, help="SSG output directory (default: dist/ssg)")
    parser.add_argument(
        "--command",
        nargs="+",
        metavar="ARG",
        help="Server command template; {ssr_dir}, {port} and {cwd} are substituted (default: node {ssr_dir})",
    )
    parser.add_argument(
        "--ready-timeout",
        type=float,
        help="Fail if the server has not signalled readiness after this many seconds",
    )
    add_standard_flags(parser)


def build_overrides(args: argparse.Namespace) -> Dict[str, Any]:
    """Translate CLI flags into configuration overrides (unset flags are omitted)."""
    overrides: Dict[str, Any] = {}
    if getattr(args, "cwd", None):
        overrides["cwd"] = args.cwd
    if getattr(args, "port", None) is not None:
        overrides["port"] = args.port
    elif getattr(args, "port_range", None):
        overrides["port"] = list(args.port_range)
    if getattr(args, "wait", None) is not None:
        overrides["wait"] = args.wait

    dirs = {
        key: value
        for key, value in (
            ("ssr", getattr(args, "ssr_dir", None)),
            ("static", getattr(args, "static_dir", None)),
            ("ssg", getattr(args, "out_dir", None)),
        )
        if value
    }
    if dirs:
        overrides["dir"] = dirs

    server: Dict[str, Any] = {}
    if getattr(args, "command", None):
        server["command"] = list(args.command)
    if getattr(args, "ready_timeout", None) is not None:
        server["ready_timeout_seconds"] = args.ready_timeout
    if server:
        overrides["server"] = server
    return overrides


def main(args: argparse.Namespace) -> int:
    """Run one generation and report where the document was written."""
    formatter = OutputFormatter(json_mode=getattr(args, "json", False))

    try:
        manager = get_config_manager(args)
        overrides = build_overrides(args)
        setup_logging(args, manager.get_all(overrides))
        config = load_config(manager, overrides)
        result = run_generation(config)
    except SsgError as e:
        formatter.error(e)
        return 1

    formatter.success(
        result.to_dict(),
        f"Wrote {result.index_path} ({result.bytes_written} bytes, port {result.port}, wait {result.strategy})",
    )
    return 0


if __name__ == "__main__":
    parser = argparse.ArgumentParser()
    register_args(parser)
    sys.exit(main(parser.parse_args()))
