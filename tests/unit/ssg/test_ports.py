from __future__ import annotations

import contextlib
import socket
from typing import Iterator

import pytest

from ssg_helper.core.config import PortRange
from ssg_helper.core.exceptions import PortResolutionError
from ssg_helper.core.ssg.ports import find_free_port, is_port_free, resolve_port

pytestmark = pytest.mark.fast


def _free_port() -> int:
    with contextlib.closing(socket.socket(socket.AF_INET, socket.SOCK_STREAM)) as s:
        s.bind(("127.0.0.1", 0))
        return int(s.getsockname()[1])


@contextlib.contextmanager
def _occupied(port: int) -> Iterator[socket.socket]:
    s = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    try:
        s.bind(("127.0.0.1", port))
        s.listen(1)
        yield s
    finally:
        s.close()


def test_explicit_port_wins_over_environment() -> None:
    assert resolve_port(9000, env_port=9100) == 9000


def test_explicit_port_is_returned_even_when_busy() -> None:
    port = _free_port()
    with _occupied(port):
        assert resolve_port(port) == port


def test_environment_port_wins_over_range() -> None:
    assert resolve_port(PortRange(5000, 5010), env_port=9100) == 9100


def test_environment_port_wins_over_absent_port() -> None:
    assert resolve_port(None, env_port=9100) == 9100


def test_zero_port_counts_as_absent() -> None:
    assert resolve_port(0, env_port=9100) == 9100


def test_range_yields_a_free_port_inside_it() -> None:
    port = _free_port()

    resolved = resolve_port(PortRange(port, port))

    assert resolved == port
    assert is_port_free(resolved)


def test_range_skips_occupied_ports() -> None:
    port = _free_port()
    with _occupied(port):
        assert not is_port_free(port)
        with pytest.raises(PortResolutionError, match=rf"No available ports in range \[{port}, {port}\]"):
            resolve_port(PortRange(port, port))


def test_absent_port_finds_any_free_port() -> None:
    port = resolve_port(None)
    assert 1 <= port <= 65535
    assert is_port_free(port)


def test_find_free_port_reports_exhausted_range(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr("ssg_helper.core.ssg.ports.is_port_free", lambda port, host="127.0.0.1": False)

    with pytest.raises(PortResolutionError, match=r"No available ports in range \[5000, 5010\]") as excinfo:
        find_free_port(PortRange(5000, 5010))

    assert excinfo.value.context["range"] == [5000, 5010]


@pytest.mark.parametrize("port", [70000, -1])
def test_out_of_range_explicit_port_is_rejected(port: int) -> None:
    with pytest.raises(PortResolutionError, match="between 1 and 65535"):
        resolve_port(port)


def test_out_of_range_environment_port_is_rejected() -> None:
    with pytest.raises(PortResolutionError, match="between 1 and 65535"):
        resolve_port(None, env_port=70000)
