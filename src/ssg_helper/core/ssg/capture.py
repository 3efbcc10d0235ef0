"""Capture of the server's rendered root document."""
from __future__ import annotations

import logging
import socket
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Tuple
from urllib.error import HTTPError, URLError
from urllib.request import ProxyHandler, Request, build_opener

from ssg_helper.core.exceptions import CaptureError
from ssg_helper.core.utils.io import atomic_write_bytes

logger = logging.getLogger(__name__)

INDEX_FILENAME = "index.html"

Fetcher = Callable[[str, float], Tuple[int, bytes]]


@dataclass(frozen=True)
class CapturedDocument:
    url: str
    status: int
    body: bytes
    path: Path

    @property
    def size(self) -> int:
        return len(self.body)


def root_url(port: int, *, host: str = "127.0.0.1") -> str:
    return f"http://{host}:{port}/"


def fetch_document(url: str, timeout_seconds: float) -> Tuple[int, bytes]:
    """GET ``url`` once and return ``(status, body)``.

    Proxies from the environment are bypassed; the server is local.

    Raises:
        CaptureError: connection failure, timeout, or a non-2xx status.
    """
    opener = build_opener(ProxyHandler({}))
    req = Request(url, method="GET")
    try:
        with opener.open(req, timeout=timeout_seconds) as resp:
            status = int(resp.status)
            body = resp.read()
    except HTTPError as exc:
        raise CaptureError(
            f"Capture failed: {url} returned HTTP {exc.code}",
            url=url,
            status=exc.code,
        ) from exc
    except URLError as exc:
        raise CaptureError(f"Capture failed: {url} unreachable ({exc.reason})", url=url) from exc
    except (socket.timeout, TimeoutError) as exc:
        raise CaptureError(f"Capture failed: {url} timed out after {timeout_seconds:g}s", url=url) from exc
    except OSError as exc:
        raise CaptureError(f"Capture failed: {url}: {exc}", url=url) from exc

    if not 200 <= status < 300:
        raise CaptureError(f"Capture failed: {url} returned HTTP {status}", url=url, status=status)
    return status, body


def write_document(path: Path, body: bytes) -> int:
    try:
        return atomic_write_bytes(path, body)
    except OSError as exc:
        raise CaptureError(f"Could not write captured document to {path}: {exc}", details=str(exc)) from exc


def capture_index(
    port: int,
    output_dir: Path,
    *,
    host: str = "127.0.0.1",
    timeout_seconds: float = 30.0,
    fetcher: Fetcher | None = None,
) -> CapturedDocument:
    """Fetch ``http://host:port/`` and write the body verbatim to ``output_dir/index.html``."""
    url = root_url(port, host=host)
    status, body = (fetcher or fetch_document)(url, timeout_seconds)
    path = Path(output_dir) / INDEX_FILENAME
    write_document(path, body)
    logger.info("Captured %s (%d bytes) -> %s", url, len(body), path)
    return CapturedDocument(url=url, status=status, body=body, path=path)


__all__ = [
    "INDEX_FILENAME",
    "CapturedDocument",
    "Fetcher",
    "root_url",
    "fetch_document",
    "write_document",
    "capture_index",
]
