"""Integration test fixtures: a real uvicorn server on a free local port."""

from __future__ import annotations

import socket

import httpx
import pytest

from crudroute import Router, ServerRegistry
from crudroute.core.config import Settings


def _find_free_port() -> int:
    """Bind to port 0 on localhost to get a free port from the OS."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.bind(("127.0.0.1", 0))
        return s.getsockname()[1]


@pytest.fixture(scope="module")
def live_registry():
    """Start a listening server and yield the registry that owns it.

    The server is stopped by ``shutdown`` when the module's tests are done.
    """
    port = _find_free_port()
    registry = ServerRegistry(
        Settings(http_host="127.0.0.1", http_port=port, no_server=False, log_level="WARNING")
    )
    server = registry.get_or_create()
    if not server.wait_started(timeout=10.0):
        registry.shutdown()
        raise RuntimeError("Integration server did not become ready in time")

    yield registry

    registry.shutdown()


@pytest.fixture
def live_router(live_registry: ServerRegistry):
    router = Router(registry=live_registry)
    yield router
    router.reset_routes()


@pytest.fixture
def http_client(live_router: Router):
    """Yield an ``httpx.Client`` pointed at the live server."""
    server = live_router.server
    with httpx.Client(base_url=f"http://{server.host}:{server.port}") as client:
        yield client
