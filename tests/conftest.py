import logging
import os
import sys
from pathlib import Path

import pytest

# Keep the repository free of Python bytecode and __pycache__ artifacts during tests.
sys.dont_write_bytecode = True

TESTS_ROOT = Path(__file__).resolve().parent
REPO_ROOT = TESTS_ROOT.parent
SRC_ROOT = REPO_ROOT / "src"

# Make src/ importable as 'ssg_helper' and tests/ as 'helpers'
for p in (SRC_ROOT, TESTS_ROOT):
    if str(p) not in sys.path:
        sys.path.insert(0, str(p))


from ssg_helper.core.stdlib_logging import reset_stdlib_logging_for_tests


@pytest.fixture(autouse=True)
def isolate_ssg_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Drop SSG_* overrides and the deploy-time PORT leaking in from the host shell."""
    for key in list(os.environ):
        if key.startswith("SSG_") or key == "PORT":
            monkeypatch.delenv(key, raising=False)


@pytest.fixture(autouse=True)
def reset_logging():
    root = logging.getLogger()
    level = root.level
    yield
    reset_stdlib_logging_for_tests()
    root.setLevel(level)


@pytest.fixture
def project(tmp_path: Path) -> Path:
    """A project root with an SSR dist and static assets in the default layout."""
    root = tmp_path / "project"
    static = root / "dist" / "ssr" / "www"
    (static / "css").mkdir(parents=True)
    (static / "css" / "foo.css").write_text("body { color: red; }\n", encoding="utf-8")
    (static / "favicon.ico").write_bytes(b"\x00\x01")
    return root
