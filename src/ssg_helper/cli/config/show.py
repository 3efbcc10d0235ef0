"""
ssg-helper config show command.

SUMMARY: Show current configuration

Displays the merged configuration from bundled defaults, the project config
file, and SSG_* environment variables. Supports filtering by key and multiple
output formats.
"""

from __future__ import annotations

import argparse
import sys

from ssg_helper.cli import OutputFormatter, add_config_flag, add_cwd_flag, add_json_flag, get_config_manager
from ssg_helper.core.exceptions import SsgError
from ssg_helper.core.utils.io import dump_yaml_string

SUMMARY = "Show current configuration"

_MISSING = object()


def _nest_key(key: str, value):
    """Nest a dot-notation key into a YAML/JSON-friendly mapping."""
    parts = [p for p in str(key).split(".") if p]
    out = value
    for part in reversed(parts):
        out = {part: out}
    return out


def register_args(parser: argparse.ArgumentParser) -> None:
    """Register command-specific arguments."""
    parser.add_argument(
        "key",
        nargs="?",
        help="Specific configuration key to show (e.g., 'dir.ssg')",
    )
    parser.add_argument(
        "--format",
        choices=["json", "yaml", "table"],
        default="table",
        help="Output format (default: table)",
    )
    add_json_flag(parser)
    add_cwd_flag(parser)
    add_config_flag(parser)


def _format_value(value, indent: int = 0) -> str:
    """Format a value for table display."""
    prefix = "  " * indent
    if isinstance(value, dict):
        lines = []
        for k, v in value.items():
            formatted = _format_value(v, indent + 1)
            if "\n" in formatted:
                lines.append(f"{prefix}{k}:")
                lines.append(formatted)
            else:
                lines.append(f"{prefix}{k}: {formatted}")
        return "\n".join(lines)
    if isinstance(value, list):
        if not value:
            return "[]"
        return f"[{', '.join(str(v) for v in value)}]"
    if value is None:
        return "null"
    return str(value)


def main(args: argparse.Namespace) -> int:
    """Show configuration - delegates to ConfigManager."""
    formatter = OutputFormatter(json_mode=getattr(args, "json", False))

    try:
        config_manager = get_config_manager(args)
        output_format = "json" if args.json else args.format

        if args.key:
            value = config_manager.get(args.key, _MISSING)
            if value is _MISSING:
                formatter.text(f"Key not found: {args.key}")
                return 1

            if output_format == "json":
                formatter.json_output({args.key: value})
            elif output_format == "yaml":
                formatter.text(dump_yaml_string(_nest_key(args.key, value)).rstrip())
            else:
                formatter.text(f"{args.key}:")
                formatter.text(_format_value(value, indent=1) if isinstance(value, dict) else f"  {_format_value(value)}")
            return 0

        config_data = config_manager.get_all()

        if output_format == "json":
            formatter.json_output(config_data)
        elif output_format == "yaml":
            formatter.text(dump_yaml_string(config_data).rstrip())
        else:
            formatter.text("SSG Configuration")
            formatter.text("=" * 60)
            formatter.text("")
            for section in sorted(config_data):
                value = config_data[section]
                if isinstance(value, dict):
                    formatter.text(f"[{section}]")
                    for k, v in value.items():
                        formatter.text(f"  {k}: {_format_value(v)}")
                    formatter.text("")
                else:
                    formatter.text(f"{section}: {_format_value(value)}")
        return 0

    except SsgError as e:
        formatter.error(e, error_code="config_show_error")
        return 1


if __name__ == "__main__":
    parser = argparse.ArgumentParser()
    register_args(parser)
    cli_args = parser.parse_args()
    sys.exit(main(cli_args))
