"""Spawning and tearing down the SSR server process."""
from __future__ import annotations

import logging
import os
import subprocess
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping, Sequence

import psutil

from ssg_helper.core.exceptions import ServerStartError

logger = logging.getLogger(__name__)


def _popen_kwargs() -> dict[str, Any]:
    if os.name == "posix":
        return {"start_new_session": True}
    if os.name == "nt":
        creationflags = getattr(subprocess, "CREATE_NEW_PROCESS_GROUP", None)
        if isinstance(creationflags, int):
            return {"creationflags": creationflags}
    return {}


def build_env(*, base_env: Mapping[str, str], port_env: str, port: int, extra: Mapping[str, str] | None = None) -> dict[str, str]:
    """Inherited environment plus the port variable (and strategy extras)."""
    env = dict(base_env)
    env.update(extra or {})
    env[port_env] = str(port)
    return env


def _descendants(pid: int) -> list[psutil.Process]:
    try:
        return psutil.Process(pid).children(recursive=True)
    except psutil.Error:
        return []


def _terminate_all(procs: list[psutil.Process], *, timeout_seconds: float) -> None:
    for proc in procs:
        try:
            proc.terminate()
        except psutil.NoSuchProcess:
            continue

    _gone, alive = psutil.wait_procs(procs, timeout=max(0.1, float(timeout_seconds)))
    for proc in alive:
        logger.debug("Process %s ignored SIGTERM; killing", proc.pid)
        try:
            proc.kill()
        except psutil.NoSuchProcess:
            continue
    if alive:
        psutil.wait_procs(alive, timeout=max(0.1, float(timeout_seconds)))


def terminate_process_tree(pid: int, *, timeout_seconds: float) -> int:
    """SIGTERM ``pid`` and its descendants, SIGKILL whatever survives the grace period.

    Meant for processes this interpreter did not spawn; a ``Popen`` child is
    stopped through :meth:`ServerHandle.terminate` so its exit status is kept.

    Returns the number of processes signalled.
    """
    if pid <= 0:
        return 0
    try:
        parent = psutil.Process(pid)
    except psutil.NoSuchProcess:
        return 0

    procs = [parent, *_descendants(pid)]
    _terminate_all(procs, timeout_seconds=timeout_seconds)
    return len(procs)


@dataclass
class ServerHandle:
    """Exclusive ownership of the spawned server process."""

    process: subprocess.Popen[bytes]
    argv: list[str]
    terminations: int = field(default=0)

    @property
    def pid(self) -> int:
        return self.process.pid

    @property
    def terminated(self) -> bool:
        return self.terminations > 0

    def terminate(self, *, timeout_seconds: float = 5.0) -> bool:
        """Terminate the server once; later calls are no-ops.

        Returns True when this call performed the termination.
        """
        if self.terminations:
            return False
        self.terminations += 1
        if self.process.poll() is None:
            # Collected first; orphans are reparented once the server exits.
            descendants = _descendants(self.process.pid)
            self.process.terminate()
            _terminate_all(descendants, timeout_seconds=timeout_seconds)
        try:
            self.process.wait(timeout=max(0.1, float(timeout_seconds)))
        except subprocess.TimeoutExpired:
            self.process.kill()
            self.process.wait()
        logger.info("Server process %s terminated (exit=%s)", self.process.pid, self.process.returncode)
        return True

    def close_pipes(self) -> None:
        if self.process.stdout is not None:
            self.process.stdout.close()


def spawn_server(
    argv: Sequence[str],
    *,
    cwd: Path,
    env: Mapping[str, str],
    extra_popen: Mapping[str, Any] | None = None,
) -> ServerHandle:
    """Start the server detached from the terminal: stdin and stderr discarded.

    ``extra_popen`` carries strategy-specific settings (stdout, pass_fds).
    """
    kwargs: dict[str, Any] = {
        "stdin": subprocess.DEVNULL,
        "stdout": subprocess.DEVNULL,
        "stderr": subprocess.DEVNULL,
    }
    kwargs.update(_popen_kwargs())
    kwargs.update(extra_popen or {})
    try:
        process = subprocess.Popen(  # noqa: S603
            list(argv),
            cwd=str(cwd),
            env=dict(env),
            **kwargs,
        )
    except (FileNotFoundError, PermissionError, NotADirectoryError) as exc:
        raise ServerStartError(
            f"Could not start SSR server {list(argv)!r}: {exc}",
            context={"argv": list(argv), "cwd": str(cwd)},
        ) from exc
    logger.info("Spawned SSR server pid=%s: %s", process.pid, " ".join(argv))
    return ServerHandle(process=process, argv=list(argv))


__all__ = ["ServerHandle", "build_env", "spawn_server", "terminate_process_tree"]
