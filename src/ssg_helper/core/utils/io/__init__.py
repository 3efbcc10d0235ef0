"""I/O utilities.

- Core: atomic writes, directory management
- YAML: read/dump with locking
"""
from __future__ import annotations

from .core import (
    PathLike,
    atomic_write_bytes,
    ensure_directory,
    ensure_parent_dir,
)
from .yaml import dump_yaml_string, read_yaml

__all__ = [
    # core
    "PathLike",
    "ensure_parent_dir",
    "ensure_directory",
    "atomic_write_bytes",
    # yaml
    "read_yaml",
    "dump_yaml_string",
]
