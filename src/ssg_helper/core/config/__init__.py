"""Configuration loading and the read-only generation settings."""

from .manager import ConfigManager
from .models import (
    MAX_PORT,
    MIN_PORT,
    FixedDelay,
    GenerationConfig,
    IpcSignal,
    PortRange,
    PortSpec,
    ReadinessStrategy,
    StdoutSignal,
    parse_env_port,
    parse_port,
    parse_wait,
    resolve_ssr_dir,
)

__all__ = [
    "ConfigManager",
    "GenerationConfig",
    "StdoutSignal",
    "IpcSignal",
    "FixedDelay",
    "ReadinessStrategy",
    "PortRange",
    "PortSpec",
    "MIN_PORT",
    "MAX_PORT",
    "parse_wait",
    "parse_port",
    "parse_env_port",
    "resolve_ssr_dir",
]
