"""One-shot readiness watchers for the spawned SSR server.

Each watcher completes a single future the first time its signal arrives and
ignores every later event. Helper threads only feed that future; the calling
thread blocks in :meth:`ReadinessWatcher.wait`.
"""
from __future__ import annotations

import logging
import os
import socket
import subprocess
import threading
from concurrent.futures import Future
from concurrent.futures import TimeoutError as FutureTimeoutError
from typing import Any, Dict, Optional

from ssg_helper.core.config.models import FixedDelay, IpcSignal, ReadinessStrategy, StdoutSignal
from ssg_helper.core.exceptions import ConfigurationError, ReadinessTimeoutError

logger = logging.getLogger(__name__)

_CHUNK_SIZE = 4096

# Node.js picks up an IPC channel from these variables (child_process.fork).
IPC_CHANNEL_FD_ENV = "NODE_CHANNEL_FD"
IPC_SERIALIZATION_ENV = "NODE_CHANNEL_SERIALIZATION_MODE"


class ReadinessWatcher:
    """Base class: a future that resolves once, on the first readiness event."""

    kind = "base"

    def __init__(self) -> None:
        self._future: Future[str] = Future()
        self._lock = threading.Lock()
        self._threads: list[threading.Thread] = []

    # ---------- spawn integration ----------

    def popen_kwargs(self) -> Dict[str, Any]:
        """Extra ``subprocess.Popen`` arguments this strategy needs."""
        return {"stdout": subprocess.DEVNULL}

    def child_env(self) -> Dict[str, str]:
        """Extra environment variables for the child process."""
        return {}

    def after_spawn(self) -> None:
        """Release resources the parent no longer needs once the child exists."""

    def arm(self, process: subprocess.Popen[bytes]) -> None:
        raise NotImplementedError

    # ---------- one-shot future ----------

    def _fire(self, reason: str) -> bool:
        with self._lock:
            if self._future.done():
                return False
            self._future.set_result(reason)
        logger.info("Server ready (%s)", reason)
        return True

    @property
    def fired(self) -> bool:
        return self._future.done()

    def wait(self, timeout: Optional[float] = None) -> str:
        """Block until the readiness signal fires.

        Without ``timeout`` this waits indefinitely.

        Raises:
            ReadinessTimeoutError: ``timeout`` elapsed first.
        """
        try:
            return self._future.result(timeout=timeout)
        except FutureTimeoutError as exc:
            raise ReadinessTimeoutError(
                f"Server did not signal readiness via {self.kind} within {timeout:g}s",
                context={"strategy": self.kind, "timeout_seconds": timeout},
            ) from exc

    def _start_thread(self, target: Any, *args: Any) -> None:
        thread = threading.Thread(
            target=target,
            args=args,
            name=f"ssg-readiness-{self.kind}",
            daemon=True,
        )
        self._threads.append(thread)
        thread.start()

    def close(self, timeout: float = 1.0) -> None:
        for thread in self._threads:
            thread.join(timeout=timeout)


class StdoutReadinessWatcher(ReadinessWatcher):
    """Ready on the first chunk of standard output, whatever it contains.

    Output is drained until EOF after firing so the server never blocks on a
    full pipe.
    """

    kind = "stdout"

    def popen_kwargs(self) -> Dict[str, Any]:
        return {"stdout": subprocess.PIPE}

    def arm(self, process: subprocess.Popen[bytes]) -> None:
        if process.stdout is None:
            raise RuntimeError("stdout readiness requires a piped stdout")
        self._start_thread(self._pump, process.stdout.fileno())

    def _pump(self, fd: int) -> None:
        while True:
            try:
                chunk = os.read(fd, _CHUNK_SIZE)
            except OSError:
                break
            if not chunk:
                break
            self._fire("stdout")
        if not self.fired:
            logger.warning("Server stdout closed before any output; readiness will not fire")


class IpcReadinessWatcher(ReadinessWatcher):
    """Ready on the first inter-process message from the server.

    A connected socket pair forms the channel. The child end is inherited by
    the server and announced through ``NODE_CHANNEL_FD``, which is how a Node
    server's ``process.send()`` finds its parent. Messages are
    newline-delimited JSON frames; only the arrival of the first complete
    frame matters.
    """

    kind = "ipc"

    def __init__(self) -> None:
        super().__init__()
        self._parent_sock: Optional[socket.socket] = None
        self._child_sock: Optional[socket.socket] = None

    def _ensure_channel(self) -> None:
        if self._parent_sock is None:
            self._parent_sock, self._child_sock = socket.socketpair()

    @property
    def child_fd(self) -> int:
        self._ensure_channel()
        assert self._child_sock is not None
        return self._child_sock.fileno()

    def popen_kwargs(self) -> Dict[str, Any]:
        return {"stdout": subprocess.DEVNULL, "pass_fds": (self.child_fd,)}

    def child_env(self) -> Dict[str, str]:
        return {
            IPC_CHANNEL_FD_ENV: str(self.child_fd),
            IPC_SERIALIZATION_ENV: "json",
        }

    def after_spawn(self) -> None:
        if self._child_sock is not None:
            self._child_sock.close()
            self._child_sock = None

    def arm(self, process: subprocess.Popen[bytes]) -> None:
        self._ensure_channel()
        assert self._parent_sock is not None
        self._start_thread(self._pump, self._parent_sock)

    def _pump(self, sock: socket.socket) -> None:
        pending = b""
        while True:
            try:
                chunk = sock.recv(_CHUNK_SIZE)
            except OSError:
                break
            if not chunk:
                break
            if self.fired:
                continue
            pending += chunk
            if b"\n" in pending:
                self._fire("ipc")
                pending = b""
        if not self.fired:
            logger.warning("Server IPC channel closed before any message; readiness will not fire")

    def close(self, timeout: float = 1.0) -> None:
        self.after_spawn()
        if self._parent_sock is not None:
            try:
                self._parent_sock.shutdown(socket.SHUT_RDWR)
            except OSError:
                pass
            self._parent_sock.close()
            self._parent_sock = None
        super().close(timeout=timeout)


class DelayReadinessWatcher(ReadinessWatcher):
    """Ready a fixed number of milliseconds after spawn; output is discarded."""

    kind = "delay"

    def __init__(self, delay: FixedDelay) -> None:
        super().__init__()
        self.delay = delay
        self._timer: Optional[threading.Timer] = None

    def arm(self, process: subprocess.Popen[bytes]) -> None:
        self._timer = threading.Timer(self.delay.seconds, self._fire, args=(f"delay {self.delay.describe()}",))
        self._timer.daemon = True
        self._timer.start()

    def close(self, timeout: float = 1.0) -> None:
        if self._timer is not None:
            self._timer.cancel()
        super().close(timeout=timeout)


def create_watcher(strategy: ReadinessStrategy) -> ReadinessWatcher:
    """Return a fresh watcher for ``strategy``.

    Raises:
        ConfigurationError: ``strategy`` is not one of the supported kinds.
    """
    if isinstance(strategy, StdoutSignal):
        return StdoutReadinessWatcher()
    if isinstance(strategy, IpcSignal):
        return IpcReadinessWatcher()
    if isinstance(strategy, FixedDelay):
        return DelayReadinessWatcher(strategy)
    raise ConfigurationError(
        f"Invalid parameters: unsupported readiness strategy {strategy!r}",
        context={"wait": repr(strategy)},
    )


__all__ = [
    "IPC_CHANNEL_FD_ENV",
    "IPC_SERIALIZATION_ENV",
    "ReadinessWatcher",
    "StdoutReadinessWatcher",
    "IpcReadinessWatcher",
    "DelayReadinessWatcher",
    "create_watcher",
]
