"""
ssg-helper CLI package.

Commands are auto-discovered: top-level commands live in ``commands/`` and
grouped commands in domain subfolders (``config/``).

Framework utilities for building CLI commands:
- _output: Output formatting (JSON/text modes)
- _args: Common argument registration helpers
- _utils: Config and logging setup shared by commands
"""
from ._args import (
    add_config_flag,
    add_cwd_flag,
    add_json_flag,
    add_logging_flags,
    add_standard_flags,
)
from ._output import OutputFormatter
from ._utils import get_config_manager, setup_logging

__all__ = [
    # Output formatting
    "OutputFormatter",
    # Argument helpers
    "add_json_flag",
    "add_cwd_flag",
    "add_config_flag",
    "add_logging_flags",
    "add_standard_flags",
    # Utilities
    "get_config_manager",
    "setup_logging",
]
