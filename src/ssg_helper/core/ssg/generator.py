"""SSG orchestration: prepare output, resolve port, capture through the SSR server."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping, Optional

from ssg_helper.core.config import ConfigManager, GenerationConfig
from ssg_helper.core.exceptions import PreconditionError
from ssg_helper.core.ssg.capture import Fetcher
from ssg_helper.core.ssg.lifecycle import ServerLifecycleController
from ssg_helper.core.ssg.output import prepare_output_dir
from ssg_helper.core.ssg.ports import resolve_port
from ssg_helper.core.ssg.readiness import create_watcher

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GenerationResult:
    output_dir: Path
    index_path: Path
    port: int
    bytes_written: int
    strategy: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "output_dir": str(self.output_dir),
            "index_path": str(self.index_path),
            "port": self.port,
            "bytes_written": self.bytes_written,
            "strategy": self.strategy,
        }


def check_ssr_dist(ssr_dir: Path) -> None:
    if not ssr_dir.exists():
        raise PreconditionError(
            f"SSR dist path does not exist: {ssr_dir}. Please build SSR first.",
            context={"ssr_dir": str(ssr_dir)},
        )


def check_preconditions(config: GenerationConfig) -> None:
    check_ssr_dist(config.ssr_dir)


def load_config(manager: ConfigManager, overrides: Optional[Mapping[str, Any]] = None) -> GenerationConfig:
    """Build the run configuration, checking the SSR dist first.

    A missing SSR dist is reported before the wait and port values are
    parsed, so it wins over any other configuration error.
    """
    check_ssr_dist(manager.ssr_dir(overrides))
    return manager.build(overrides)


def run_generation(config: GenerationConfig, *, fetcher: Fetcher | None = None) -> GenerationResult:
    """Perform SSG with an already-built configuration.

    Order: SSR dist check, readiness strategy check, output preparation,
    port resolution, then the server lifecycle. Nothing is spawned until
    every earlier step has succeeded.
    """
    check_preconditions(config)
    # Validates the strategy before the output directory is touched.
    create_watcher(config.wait)

    prepare_output_dir(config.output_dir, config.static_dir, protected=[config.ssr_dir])
    port = resolve_port(config.port, env_port=config.env_port, host=config.host)

    controller = ServerLifecycleController(config, port, fetcher=fetcher)
    document = controller.run()
    return GenerationResult(
        output_dir=config.output_dir,
        index_path=document.path,
        port=port,
        bytes_written=document.size,
        strategy=config.wait.describe(),
    )


def generate_ssg(
    overrides: Optional[Mapping[str, Any]] = None,
    *,
    env: Optional[Mapping[str, str]] = None,
    config_file: Optional[Path] = None,
) -> GenerationResult:
    """Perform SSG on an existing SSR dist.

    ``overrides`` uses the configuration keys (``cwd``, ``port``, ``wait``,
    ``dir.ssr``/``dir.static``/``dir.ssg``, ``server.*``, ``capture.*``) and
    is merged over project config, ``SSG_*`` variables and bundled defaults.
    ``env`` (default ``os.environ``) supplies those variables and the
    deploy-time ``PORT`` override.

    Raises:
        SsgError: on any failure; the server process is always terminated
            before the error propagates.
    """
    overrides = dict(overrides or {})
    manager = ConfigManager(overrides.get("cwd"), config_file=config_file, env=env)
    config = load_config(manager, overrides)
    return run_generation(config)


__all__ = ["GenerationResult", "check_preconditions", "check_ssr_dist", "load_config", "run_generation", "generate_ssg"]
