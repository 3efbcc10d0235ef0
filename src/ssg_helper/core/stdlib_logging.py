from __future__ import annotations

import logging
import sys
from pathlib import Path

from ssg_helper.core.utils.io import ensure_directory

_CONFIGURED_TARGET: str | None = None
_SSG_HANDLER: logging.Handler | None = None
_JSON_MODE_NULL_HANDLER_INSTALLED: bool = False

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def _level_from_name(name: str) -> int:
    level = logging.getLevelName(str(name).upper())
    return level if isinstance(level, int) else logging.INFO


def configure_stdlib_logging(*, log_path: Path | None = None, level: str = "WARNING") -> None:
    """Configure Python stdlib logging for the CLI.

    Logs go to ``log_path`` when given, otherwise to stderr (stdout stays
    reserved for command output). Idempotent per-process: reconfiguring with
    the same target only adjusts the level.
    """
    global _CONFIGURED_TARGET, _SSG_HANDLER

    target = str(Path(log_path).resolve()) if log_path else "<stderr>"
    root = logging.getLogger()
    root.setLevel(_level_from_name(level))

    if _CONFIGURED_TARGET == target and _SSG_HANDLER is not None:
        _SSG_HANDLER.setLevel(_level_from_name(level))
        return

    if _SSG_HANDLER is not None:
        root.removeHandler(_SSG_HANDLER)
        _SSG_HANDLER.close()
        _SSG_HANDLER = None

    handler: logging.Handler
    if log_path:
        ensure_directory(Path(target).parent)
        handler = logging.FileHandler(target, encoding="utf-8")
    else:
        handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(_level_from_name(level))
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root.addHandler(handler)

    _SSG_HANDLER = handler
    _CONFIGURED_TARGET = target


def reset_stdlib_logging_for_tests() -> None:
    """Test-only: drop the handler installed by :func:`configure_stdlib_logging`."""
    global _CONFIGURED_TARGET, _SSG_HANDLER
    if _SSG_HANDLER is not None:
        logging.getLogger().removeHandler(_SSG_HANDLER)
        _SSG_HANDLER.close()
    _CONFIGURED_TARGET = None
    _SSG_HANDLER = None


def suppress_lastresort_in_json_mode() -> None:
    """Keep stdlib logging's lastResort handler off stderr in ``--json`` mode.

    Ensures the root logger has at least one handler (a NullHandler) when it
    otherwise has none.
    """
    global _JSON_MODE_NULL_HANDLER_INSTALLED

    root = logging.getLogger()
    if root.handlers or _JSON_MODE_NULL_HANDLER_INSTALLED:
        return
    root.addHandler(logging.NullHandler())
    _JSON_MODE_NULL_HANDLER_INSTALLED = True


__all__ = [
    "configure_stdlib_logging",
    "reset_stdlib_logging_for_tests",
    "suppress_lastresort_in_json_mode",
]
