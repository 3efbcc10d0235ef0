"""Schema validation for configuration payloads.

Schemas are JSON Schema documents stored as YAML under
``ssg_helper/data/schemas`` and validated with ``jsonschema``.
"""
from __future__ import annotations

from functools import lru_cache
from typing import Any, Dict, List

from jsonschema import Draft202012Validator

from ssg_helper.core.exceptions import ConfigurationError
from ssg_helper.core.utils.io import read_yaml
from ssg_helper.data import get_data_path


@lru_cache(maxsize=8)
def load_schema(schema_name: str) -> Dict[str, Any]:
    """Load a bundled schema by name.

    Automatically appends ``.yaml`` if no extension is present.

    Raises:
        FileNotFoundError: If schema file doesn't exist.
        ValueError: If schema is not a YAML mapping.
    """
    lowered = schema_name.lower()
    if not (lowered.endswith(".yaml") or lowered.endswith(".yml")):
        schema_name = f"{schema_name}.yaml"

    schema_path = get_data_path("schemas", schema_name)
    if not schema_path.exists():
        raise FileNotFoundError(f"Schema not found: {schema_name} (searched {schema_path.parent})")

    schema = read_yaml(schema_path, default=None, raise_on_error=True)
    if not isinstance(schema, dict):
        raise ValueError(f"Schema must be a YAML mapping, got {type(schema).__name__}")
    return schema


def _format_error_path(path: Any) -> str:
    parts = [str(p) for p in path]
    return ".".join(parts) if parts else "<root>"


def validate_payload_safe(payload: Dict[str, Any], schema_name: str) -> List[str]:
    """Validate a payload and return error messages (empty if valid)."""
    validator = Draft202012Validator(load_schema(schema_name))
    errors = sorted(validator.iter_errors(payload), key=lambda e: list(e.absolute_path))
    return [f"{_format_error_path(err.absolute_path)}: {err.message}" for err in errors]


def validate_payload(payload: Dict[str, Any], schema_name: str) -> None:
    """Validate a payload against a bundled schema.

    Raises:
        ConfigurationError: If validation fails; ``context["errors"]`` lists
            every violation.
    """
    errors = validate_payload_safe(payload, schema_name)
    if errors:
        raise ConfigurationError(
            f"Invalid configuration ({schema_name}): " + "; ".join(errors[:5]),
            context={"schema": schema_name, "errors": errors},
        )


__all__ = ["load_schema", "validate_payload", "validate_payload_safe"]
