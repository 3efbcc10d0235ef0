"""Static-site generation through a short-lived SSR server.

Primitives for:
- Preparing the output directory from static assets
- Resolving the server port (explicit, deploy-time override, free-port search)
- Spawning the server, awaiting one readiness signal, capturing ``/`` once,
  and always terminating the server afterwards
"""

from .capture import INDEX_FILENAME, CapturedDocument, capture_index, fetch_document
from .generator import GenerationResult, generate_ssg, load_config, run_generation
from .lifecycle import LifecycleState, ServerLifecycleController
from .output import prepare_output_dir
from .ports import find_free_port, resolve_port
from .readiness import ReadinessWatcher, create_watcher

__all__ = [
    "INDEX_FILENAME",
    "CapturedDocument",
    "GenerationResult",
    "LifecycleState",
    "ReadinessWatcher",
    "ServerLifecycleController",
    "capture_index",
    "create_watcher",
    "fetch_document",
    "find_free_port",
    "generate_ssg",
    "load_config",
    "prepare_output_dir",
    "resolve_port",
    "run_generation",
]
