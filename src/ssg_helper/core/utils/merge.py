"""Deep merge used for configuration layering.

Mappings merge recursively; any other value (lists included, so a port range
is never spliced with a lower layer) is replaced by the higher layer.
"""
from __future__ import annotations

from typing import Any, Dict, Mapping


def deep_merge(base: Mapping[str, Any], override: Mapping[str, Any] | None) -> Dict[str, Any]:
    """Recursively merge dictionaries without mutating inputs.

    Args:
        base: Base dictionary (lower priority)
        override: Override dictionary (higher priority)

    Returns:
        New merged dictionary

    Example:
        >>> deep_merge({"dir": {"ssr": "a", "ssg": "b"}}, {"dir": {"ssg": "c"}})
        {'dir': {'ssr': 'a', 'ssg': 'c'}}
    """
    result: Dict[str, Any] = dict(base)
    for key, value in (override or {}).items():
        current = result.get(key)
        if isinstance(current, Mapping) and isinstance(value, Mapping):
            result[key] = deep_merge(current, value)
        elif isinstance(value, list):
            result[key] = list(value)
        else:
            result[key] = value
    return result


__all__ = ["deep_merge"]
