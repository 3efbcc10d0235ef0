"""Shared CLI utility functions."""
from __future__ import annotations

import argparse
from pathlib import Path
from typing import Any, Dict, Optional

from ssg_helper.core.config import ConfigManager
from ssg_helper.core.stdlib_logging import (
    configure_stdlib_logging,
    suppress_lastresort_in_json_mode,
)

_VERBOSITY_LEVELS = {1: "INFO", 2: "DEBUG"}


def get_config_manager(args: argparse.Namespace) -> ConfigManager:
    cwd = getattr(args, "cwd", None)
    config_file = getattr(args, "config", None)
    return ConfigManager(
        Path(cwd) if cwd else None,
        config_file=Path(config_file) if config_file else None,
    )


def setup_logging(args: argparse.Namespace, config: Optional[Dict[str, Any]] = None) -> None:
    """Configure logging from CLI flags, falling back to the ``logging`` config section."""
    section = (config or {}).get("logging") or {}
    verbosity = int(getattr(args, "verbose", 0) or 0)
    level = _VERBOSITY_LEVELS.get(min(verbosity, 2)) or str(section.get("level") or "WARNING")
    log_file = getattr(args, "log_file", None) or section.get("file")

    if getattr(args, "json", False) and not log_file and not verbosity:
        suppress_lastresort_in_json_mode()
        return
    configure_stdlib_logging(log_path=Path(log_file) if log_file else None, level=level)
