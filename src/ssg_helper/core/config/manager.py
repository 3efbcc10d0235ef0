"""
ssg-helper configuration management (YAML layers + environment + overrides).
"""
from __future__ import annotations

import copy
import json
import logging
import os
import re
from pathlib import Path
from typing import Any, Dict, Iterator, List, Mapping, Optional, Tuple

from ssg_helper.core.config.models import (
    FixedDelay,
    GenerationConfig,
    IpcSignal,
    PortRange,
    StdoutSignal,
    resolve_ssr_dir,
)
from ssg_helper.core.exceptions import ConfigurationError
from ssg_helper.core.schemas import validate_payload
from ssg_helper.core.utils.io import read_yaml
from ssg_helper.core.utils.merge import deep_merge
from ssg_helper.data import get_data_path

logger = logging.getLogger(__name__)

PROJECT_CONFIG_NAMES = ("ssg.yaml", "ssg.yml")
SCHEMA_NAME = "config.schema"


def _to_plain(value: Any) -> Any:
    """Convert caller-supplied override values into schema-checkable data."""
    if isinstance(value, Mapping):
        return {str(k): _to_plain(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_to_plain(v) for v in value]
    if isinstance(value, Path):
        return str(value)
    if isinstance(value, PortRange):
        return [value.low, value.high]
    if isinstance(value, FixedDelay):
        return value.milliseconds
    if isinstance(value, (StdoutSignal, IpcSignal)):
        return value.describe()
    return value


class ConfigManager:
    """Load, merge, and validate generation configuration.

    Configuration sources (highest to lowest priority):
    1. Caller overrides (library call or CLI flags)
    2. Environment variables: SSG_* (``__`` separates nesting levels)
    3. Project config: ``--config`` path, else <cwd>/ssg.yaml or <cwd>/ssg.yml
    4. Bundled defaults: ssg_helper.data/config/defaults.yaml

    The deploy-time port override (``PORT`` by default) is not a config
    layer; it is handed to :class:`GenerationConfig` as ``env_port``.
    """

    ENV_PREFIX = "SSG_"

    def __init__(
        self,
        cwd: Optional[Path] = None,
        *,
        config_file: Optional[Path] = None,
        env: Optional[Mapping[str, str]] = None,
    ) -> None:
        self.cwd = Path(cwd).expanduser().resolve() if cwd else Path.cwd()
        self.config_file = Path(config_file).expanduser() if config_file else None
        self.env: Mapping[str, str] = os.environ if env is None else env
        self.defaults_path = get_data_path("config", "defaults.yaml")

    def load_yaml(self, path: Path) -> Dict[str, Any]:
        # Fail closed: configuration must never silently ignore invalid YAML.
        try:
            data = read_yaml(path, default={}, raise_on_error=True)
        except FileNotFoundError as exc:
            raise ConfigurationError(f"Config file not found: {path}", context={"path": str(path)}) from exc
        except Exception as exc:
            raise ConfigurationError(f"Could not parse config file {path}: {exc}", context={"path": str(path)}) from exc
        if not isinstance(data, dict):
            raise ConfigurationError(
                f"Config file must contain a mapping: {path}",
                context={"path": str(path)},
            )
        return data

    def project_config_path(self) -> Optional[Path]:
        if self.config_file is not None:
            path = self.config_file if self.config_file.is_absolute() else self.cwd / self.config_file
            return path
        for name in PROJECT_CONFIG_NAMES:
            candidate = self.cwd / name
            if candidate.exists():
                return candidate
        return None

    # ---------- environment overrides ----------

    def _as_bool(self, v: str) -> Optional[bool]:
        low = v.strip().lower()
        if low in {"true", "false"}:
            return low == "true"
        return None

    def _as_int(self, v: str) -> Optional[int]:
        if re.fullmatch(r"[-+]?\d+", v.strip() or " "):
            return int(v)
        return None

    def _as_float(self, v: str) -> Optional[float]:
        s = v.strip()
        if re.fullmatch(r"[-+]?\d*\.\d+", s) or re.fullmatch(r"[-+]?\d+\.\d*", s):
            return float(s)
        return None

    def _as_json(self, v: str) -> Optional[Any]:
        s = v.strip()
        if (s.startswith("{") and s.endswith("}")) or (s.startswith("[") and s.endswith("]")):
            try:
                return json.loads(s)
            except json.JSONDecodeError:
                return None
        return None

    def _coerce_type(self, value: str) -> Any:
        if value.strip().lower() in {"null", "none"}:
            return None
        for caster in (self._as_bool, self._as_int, self._as_float, self._as_json):
            result = caster(value)
            if result is not None:
                return result
        return value.strip()

    def _parse_env_key(self, raw: str) -> List[str]:
        segs = raw.split("__") if "__" in raw else [raw]
        if any(seg == "" for seg in segs):
            raise ConfigurationError(
                f"Malformed {self.ENV_PREFIX}* key: empty segment in '{raw}'.",
                context={"key": f"{self.ENV_PREFIX}{raw}"},
            )
        return [seg.lower() for seg in segs]

    def _iter_env_overrides(self, known_roots: set[str]) -> Iterator[Tuple[List[str], Any]]:
        for key in sorted(self.env.keys()):
            if not key.startswith(self.ENV_PREFIX):
                continue
            raw = key[len(self.ENV_PREFIX) :]
            if not raw:
                continue
            path = self._parse_env_key(raw)
            if path[0] not in known_roots:
                logger.debug("Ignoring unrelated environment variable %s", key)
                continue
            yield path, self._coerce_type(self.env[key])

    def _set_nested(self, root: Dict[str, Any], path: List[str], value: Any) -> None:
        cur = root
        for part in path[:-1]:
            nxt = cur.get(part)
            if not isinstance(nxt, dict):
                nxt = {}
                cur[part] = nxt
            cur = nxt
        cur[path[-1]] = value

    def apply_env_overrides(self, cfg: Dict[str, Any]) -> Dict[str, Any]:
        out = copy.deepcopy(cfg)
        for path, typed_value in self._iter_env_overrides(set(cfg.keys())):
            logger.debug("Applying environment override %s%s", self.ENV_PREFIX, "__".join(path).upper())
            self._set_nested(out, path, typed_value)
        return out

    # ---------- loading ----------

    def get_all(self, overrides: Optional[Mapping[str, Any]] = None, *, validate: bool = True) -> Dict[str, Any]:
        """Return the merged configuration mapping."""
        cfg = self.load_yaml(self.defaults_path)

        project_path = self.project_config_path()
        if project_path is not None:
            logger.debug("Loading project config %s", project_path)
            cfg = deep_merge(cfg, self.load_yaml(project_path))

        cfg = self.apply_env_overrides(cfg)
        cfg = deep_merge(cfg, _to_plain(overrides or {}))

        if validate:
            validate_payload(cfg, SCHEMA_NAME)
        return cfg

    def get(self, key: str, default: Any = None) -> Any:
        """Look up a dot-notation key (e.g. ``dir.ssg``) in the merged config."""
        cur: Any = self.get_all(validate=False)
        for part in [p for p in key.split(".") if p]:
            if not isinstance(cur, dict) or part not in cur:
                return default
            cur = cur[part]
        return cur

    def _merged_with_cwd(self, overrides: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
        merged = self.get_all(overrides)
        if not merged.get("cwd"):
            merged["cwd"] = str(self.cwd)
        return merged

    def ssr_dir(self, overrides: Optional[Mapping[str, Any]] = None) -> Path:
        """Resolved ``dir.ssr``; wait and port values are not parsed."""
        return resolve_ssr_dir(self._merged_with_cwd(overrides))

    def build(self, overrides: Optional[Mapping[str, Any]] = None) -> GenerationConfig:
        """Merge every layer and build the read-only :class:`GenerationConfig`."""
        return GenerationConfig.from_raw(self._merged_with_cwd(overrides), env=self.env)


__all__ = ["ConfigManager", "PROJECT_CONFIG_NAMES"]
