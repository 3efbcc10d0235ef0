from __future__ import annotations

import math
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Literal, Mapping, Union

from ssg_helper.core.exceptions import ConfigurationError, PortResolutionError

MIN_PORT = 1
MAX_PORT = 65535

ReadinessKind = Literal["stdout", "ipc", "delay"]


@dataclass(frozen=True)
class StdoutSignal:
    """Ready on the first chunk the server writes to standard output."""

    kind: ReadinessKind = field(default="stdout", init=False)

    def describe(self) -> str:
        return "stdout"


@dataclass(frozen=True)
class IpcSignal:
    """Ready on the first inter-process message sent by the server."""

    kind: ReadinessKind = field(default="ipc", init=False)

    def describe(self) -> str:
        return "ipc"


@dataclass(frozen=True)
class FixedDelay:
    """Ready once ``milliseconds`` have elapsed after spawn."""

    milliseconds: float
    kind: ReadinessKind = field(default="delay", init=False)

    def __post_init__(self) -> None:
        value = self.milliseconds
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise ConfigurationError(
                f"Invalid wait delay: {value!r} (expected a number of milliseconds)",
                context={"wait": value},
            )
        if not math.isfinite(value) or value <= 0:
            raise ConfigurationError(
                "Invalid Number parameter. Number parameters must be greater than zero",
                context={"wait": value},
            )

    @property
    def seconds(self) -> float:
        return float(self.milliseconds) / 1000.0

    def describe(self) -> str:
        return f"{self.milliseconds:g}ms"


ReadinessStrategy = Union[StdoutSignal, IpcSignal, FixedDelay]

_STRING_STRATEGIES: dict[str, type] = {
    "stdout": StdoutSignal,
    "ipc": IpcSignal,
}


def parse_wait(raw: Any) -> ReadinessStrategy:
    """Parse the ``wait`` option into a readiness strategy.

    Accepted forms: ``"stdout"``, ``"ipc"``, a positive number of
    milliseconds, or an already-built strategy instance.
    """
    if isinstance(raw, (StdoutSignal, IpcSignal, FixedDelay)):
        return raw
    if isinstance(raw, str):
        strategy_cls = _STRING_STRATEGIES.get(raw)
        if strategy_cls is None:
            allowed = ", ".join(sorted(_STRING_STRATEGIES))
            raise ConfigurationError(
                f"Invalid String parameter {raw!r} for wait. Allowed String parameters: {allowed}",
                context={"wait": raw},
            )
        return strategy_cls()
    if isinstance(raw, (int, float)) and not isinstance(raw, bool):
        return FixedDelay(raw)
    raise ConfigurationError(
        f"Invalid parameters: wait must be 'stdout', 'ipc' or a positive number, got {raw!r}",
        context={"wait": raw},
    )


@dataclass(frozen=True)
class PortRange:
    """Inclusive range searched for a free port."""

    low: int
    high: int

    def __post_init__(self) -> None:
        for bound in (self.low, self.high):
            if isinstance(bound, bool) or not isinstance(bound, int):
                raise PortResolutionError(
                    f"Invalid port range bound: {bound!r}",
                    context={"range": [self.low, self.high]},
                )
        if not (MIN_PORT <= self.low <= self.high <= MAX_PORT):
            raise PortResolutionError(
                f"Invalid port range [{self.low}, {self.high}] "
                f"(expected {MIN_PORT} <= low <= high <= {MAX_PORT})",
                context={"range": [self.low, self.high]},
            )

    def __iter__(self):
        return iter(range(self.low, self.high + 1))


PortSpec = Union[None, int, PortRange]


def _as_int_like(raw: Any) -> int | None:
    if isinstance(raw, bool):
        return None
    if isinstance(raw, int):
        return raw
    if isinstance(raw, float) and raw.is_integer():
        return int(raw)
    if isinstance(raw, str) and raw.strip():
        s = raw.strip()
        if s.lstrip("+-").isdigit():
            return int(s)
    return None


def parse_port(raw: Any) -> PortSpec:
    """Parse the ``port`` option: absent, a number, or a ``[low, high]`` range."""
    if raw is None or isinstance(raw, PortRange):
        return raw
    if isinstance(raw, str) and not raw.strip():
        return None
    if isinstance(raw, (list, tuple)):
        if len(raw) != 2:
            raise PortResolutionError(
                f"Port range must have exactly two elements, got {list(raw)!r}",
                context={"port": list(raw)},
            )
        low, high = (_as_int_like(v) for v in raw)
        if low is None or high is None:
            raise PortResolutionError(
                f"Port range bounds must be integers, got {list(raw)!r}",
                context={"port": list(raw)},
            )
        return PortRange(low, high)
    value = _as_int_like(raw)
    if value is None:
        raise PortResolutionError(f"Invalid port: {raw!r}", context={"port": raw})
    return value


def parse_env_port(raw: str | None) -> int | None:
    """Parse a deploy-time port override taken from the environment.

    Empty, zero and non-numeric values are treated as absent. Any other
    number is returned as-is so range validation can reject it later.
    """
    if raw is None:
        return None
    s = str(raw).strip()
    if not s:
        return None
    try:
        number = float(s)
    except ValueError:
        return None
    if not math.isfinite(number) or number == 0:
        return None
    if not number.is_integer():
        raise PortResolutionError(f"Invalid port from environment: {raw!r}", context={"env_port": raw})
    return int(number)


def _resolve_dir(base: Path, raw: Any, key: str) -> Path:
    text = str(raw or "").strip()
    if not text:
        raise ConfigurationError(f"dir.{key} must be a non-empty path", context={"key": f"dir.{key}"})
    path = Path(os.path.expandvars(text)).expanduser()
    return path if path.is_absolute() else (base / path)


def _resolve_cwd(raw: Mapping[str, Any]) -> Path:
    cwd_raw = raw.get("cwd")
    cwd = Path(os.path.expandvars(str(cwd_raw))).expanduser() if cwd_raw else Path.cwd()
    return cwd.resolve()


def _dirs(raw: Mapping[str, Any]) -> Mapping[str, Any]:
    dirs = raw.get("dir") or {}
    if not isinstance(dirs, Mapping):
        raise ConfigurationError("dir must be a mapping with ssr/static/ssg keys")
    return dirs


def resolve_ssr_dir(raw: Mapping[str, Any]) -> Path:
    """Resolve ``dir.ssr`` from a merged mapping without parsing anything else."""
    if not isinstance(raw, Mapping):
        raise ConfigurationError("Configuration must be a mapping")
    return _resolve_dir(_resolve_cwd(raw), _dirs(raw).get("ssr"), "ssr")


def _as_float(raw: Any, default: float | None) -> float | None:
    if raw is None:
        return default
    if isinstance(raw, bool):
        raise ConfigurationError(f"Expected a number of seconds, got {raw!r}")
    try:
        return float(raw)
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"Expected a number of seconds, got {raw!r}") from exc


@dataclass(frozen=True)
class GenerationConfig:
    """Resolved, read-only settings for one generation run."""

    cwd: Path
    ssr_dir: Path
    static_dir: Path
    output_dir: Path
    port: PortSpec = None
    wait: ReadinessStrategy = field(default_factory=StdoutSignal)
    env_port: int | None = None
    command: tuple[str, ...] = ("node", "{ssr_dir}")
    port_env: str = "PORT"
    host: str = "127.0.0.1"
    ready_timeout_seconds: float | None = None
    capture_timeout_seconds: float = 30.0
    shutdown_timeout_seconds: float = 5.0

    @classmethod
    def from_raw(cls, raw: Mapping[str, Any], *, env: Mapping[str, str] | None = None) -> GenerationConfig:
        """Build a config from a merged configuration mapping.

        ``env`` supplies the deploy-time port override, read from the variable
        named by ``server.port_env``; it defaults to ``os.environ``.
        """
        if not isinstance(raw, Mapping):
            raise ConfigurationError("Configuration must be a mapping")
        env = os.environ if env is None else env

        cwd = _resolve_cwd(raw)
        dirs = _dirs(raw)
        server = raw.get("server") or {}
        capture = raw.get("capture") or {}

        command_raw = server.get("command") or ["node", "{ssr_dir}"]
        if isinstance(command_raw, str) or not all(isinstance(a, str) for a in command_raw):
            raise ConfigurationError(
                f"server.command must be a list of strings, got {command_raw!r}",
                context={"command": command_raw},
            )
        command = tuple(command_raw)
        if not command or not command[0].strip():
            raise ConfigurationError("server.command is empty")

        port_env = str(server.get("port_env") or "PORT").strip()

        ready_timeout = _as_float(server.get("ready_timeout_seconds"), None)
        if ready_timeout is not None and ready_timeout <= 0:
            raise ConfigurationError("server.ready_timeout_seconds must be greater than zero")

        return cls(
            cwd=cwd,
            ssr_dir=_resolve_dir(cwd, dirs.get("ssr"), "ssr"),
            static_dir=_resolve_dir(cwd, dirs.get("static"), "static"),
            output_dir=_resolve_dir(cwd, dirs.get("ssg"), "ssg"),
            port=parse_port(raw.get("port")),
            wait=parse_wait(raw.get("wait", "stdout")),
            env_port=parse_env_port(env.get(port_env)),
            command=command,
            port_env=port_env,
            ready_timeout_seconds=ready_timeout,
            capture_timeout_seconds=_as_float(capture.get("timeout_seconds"), 30.0) or 30.0,
            shutdown_timeout_seconds=_as_float(server.get("shutdown_timeout_seconds"), 5.0) or 5.0,
        )

    @property
    def index_path(self) -> Path:
        return self.output_dir / "index.html"

    def render_command(self, port: int) -> list[str]:
        """Substitute ``{ssr_dir}``, ``{port}`` and ``{cwd}`` into the command template."""
        fmt = {"ssr_dir": str(self.ssr_dir), "port": str(port), "cwd": str(self.cwd)}
        try:
            return [arg.format(**fmt) for arg in self.command]
        except (KeyError, IndexError, ValueError) as exc:
            raise ConfigurationError(
                f"Invalid placeholder in server.command: {exc}",
                context={"command": list(self.command)},
            ) from exc


__all__ = [
    "MIN_PORT",
    "MAX_PORT",
    "StdoutSignal",
    "IpcSignal",
    "FixedDelay",
    "ReadinessStrategy",
    "PortRange",
    "PortSpec",
    "GenerationConfig",
    "parse_wait",
    "parse_port",
    "parse_env_port",
    "resolve_ssr_dir",
]
