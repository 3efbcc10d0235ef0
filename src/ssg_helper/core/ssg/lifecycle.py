"""Server lifecycle: spawn, await readiness, capture once, always terminate.

States::

    IDLE -> SPAWNED -> AWAITING_READY -> CAPTURING -> TERMINATED
                 \\______________\\_____________\\-> FAILED -> TERMINATED

``TERMINATED`` is always the last state, whatever happened before it.
"""
from __future__ import annotations

import logging
import os
import time
from collections.abc import Iterator
from contextlib import contextmanager
from enum import Enum
from typing import Callable, Mapping, Optional

from ssg_helper.core.config.models import GenerationConfig
from ssg_helper.core.ssg.capture import CapturedDocument, Fetcher, capture_index
from ssg_helper.core.ssg.process import ServerHandle, build_env, spawn_server
from ssg_helper.core.ssg.readiness import create_watcher

logger = logging.getLogger(__name__)


class LifecycleState(str, Enum):
    IDLE = "idle"
    SPAWNED = "spawned"
    AWAITING_READY = "awaiting_ready"
    CAPTURING = "capturing"
    TERMINATED = "terminated"
    FAILED = "failed"


class ServerLifecycleController:
    """Owns one SSR server process for the duration of a single capture.

    The readiness strategy is validated on construction, so an unsupported
    strategy fails before anything is spawned.
    """

    def __init__(
        self,
        config: GenerationConfig,
        port: int,
        *,
        fetcher: Fetcher | None = None,
        base_env: Optional[Mapping[str, str]] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.config = config
        self.port = port
        self.fetcher = fetcher
        self.base_env = os.environ if base_env is None else base_env
        self.clock = clock
        self.watcher = create_watcher(config.wait)

        self.state = LifecycleState.IDLE
        self.history: list[LifecycleState] = [LifecycleState.IDLE]
        self.handle: ServerHandle | None = None
        self.error: BaseException | None = None
        self.spawned_at: float | None = None
        self.ready_at: float | None = None
        self.capture_started_at: float | None = None

    def _transition(self, new_state: LifecycleState) -> None:
        logger.debug("Lifecycle %s -> %s", self.state.value, new_state.value)
        self.state = new_state
        self.history.append(new_state)

    @contextmanager
    def _server(self) -> Iterator[ServerHandle]:
        """Spawn the server and guarantee its termination on every exit path."""
        argv = self.config.render_command(self.port)
        env = build_env(
            base_env=self.base_env,
            port_env=self.config.port_env,
            port=self.port,
            extra=self.watcher.child_env(),
        )
        handle: ServerHandle | None = None
        try:
            handle = spawn_server(
                argv,
                cwd=self.config.cwd,
                env=env,
                extra_popen=self.watcher.popen_kwargs(),
            )
            self.handle = handle
            self.spawned_at = self.clock()
            self.watcher.after_spawn()
            self._transition(LifecycleState.SPAWNED)
            yield handle
        except BaseException as exc:
            self.error = exc
            self._transition(LifecycleState.FAILED)
            raise
        finally:
            if handle is not None:
                handle.terminate(timeout_seconds=self.config.shutdown_timeout_seconds)
            self.watcher.close()
            if handle is not None:
                handle.close_pipes()
            self._transition(LifecycleState.TERMINATED)

    def run(self) -> CapturedDocument:
        """Spawn, wait for readiness, capture ``/`` once, then terminate."""
        if self.state is not LifecycleState.IDLE:
            raise RuntimeError(f"Lifecycle controller already used (state={self.state.value})")

        with self._server() as handle:
            self.watcher.arm(handle.process)
            self._transition(LifecycleState.AWAITING_READY)
            logger.info(
                "Waiting for server readiness via %s (timeout=%s)",
                self.watcher.kind,
                self.config.ready_timeout_seconds,
            )
            self.watcher.wait(timeout=self.config.ready_timeout_seconds)
            self.ready_at = self.clock()

            self._transition(LifecycleState.CAPTURING)
            self.capture_started_at = self.clock()
            return capture_index(
                self.port,
                self.config.output_dir,
                host=self.config.host,
                timeout_seconds=self.config.capture_timeout_seconds,
                fetcher=self.fetcher,
            )


__all__ = ["LifecycleState", "ServerLifecycleController"]
