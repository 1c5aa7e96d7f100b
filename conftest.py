"""Configuración global de pytest.

English: Global pytest configuration.
"""

from __future__ import annotations

import socket
from typing import Any, Iterator

import pytest
import structlog


@pytest.fixture(autouse=True)
def block_network(monkeypatch: pytest.MonkeyPatch) -> None:
    """Impide conexiones de red reales en tests; el motor no hace I/O.

    English:
        Prevents real network connections in tests; the engine does no I/O.
    """

    def guarded_connect(*args: Any, **kwargs: Any) -> None:
        raise RuntimeError("Network access is disabled during tests.")

    def guarded_create_connection(*args: Any, **kwargs: Any) -> None:
        raise RuntimeError("Network access is disabled during tests.")

    monkeypatch.setattr(socket.socket, "connect", guarded_connect, raising=True)
    monkeypatch.setattr(socket, "create_connection", guarded_create_connection, raising=True)


@pytest.fixture(autouse=True)
def reset_structlog() -> Iterator[None]:
    """Restaura la configuración de structlog tras cada test.

    English: Restore structlog defaults after each test.
    """
    yield
    structlog.reset_defaults()
