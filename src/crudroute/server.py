"""Per-port applications and the registry that owns them."""

from __future__ import annotations

import asyncio
import logging
import threading
import time
from collections.abc import Callable, Iterator
from typing import Any

import uvicorn
from sqlalchemy.orm import sessionmaker

from crudroute.api.generic.table import RouteRecord, RouteTable
from crudroute.app import create_app
from crudroute.core.config import Settings, get_settings
from crudroute.db.session import close_db

logger = logging.getLogger(__name__)


class Server:
    """A FastAPI application bound to one port, optionally served by uvicorn.

    The uvicorn server runs on its own event loop in a daemon thread while
    routes are registered from the caller's thread; see ``RouteTable`` for
    how the two share the route list.
    """

    def __init__(self, settings: Settings, *, no_server: bool = False) -> None:
        self.settings = settings
        self.host = settings.http_host
        self.port = settings.http_port
        self.app = create_app(settings)

        self._uvicorn: uvicorn.Server | None = None
        self._thread: threading.Thread | None = None

        if not no_server:
            self.start()

    @property
    def routes(self) -> RouteTable:
        return self.app.state.route_table

    @property
    def session_factory(self) -> sessionmaker | None:
        return getattr(self.app.state, "db_session_factory", None)

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def route(
        self,
        method: str,
        path: str,
        handler: Callable[..., Any],
        *,
        name: str | None = None,
    ) -> RouteRecord:
        return self.routes.add(method, path, handler, name=name)

    def start(self) -> None:
        if self.running:
            return
        logger.info("Listen on %s:%d", self.host, self.port)
        config = uvicorn.Config(
            self.app,
            host=self.host,
            port=self.port,
            log_config=None,
            log_level=self.settings.log_level.lower(),
        )
        self._uvicorn = uvicorn.Server(config)
        self._thread = threading.Thread(
            target=asyncio.run,
            args=(self._uvicorn.serve(),),
            name=f"crudroute-{self.port}",
            daemon=True,
        )
        self._thread.start()

    def wait_started(self, timeout: float = 5.0) -> bool:
        """Block until uvicorn accepts connections; False on timeout."""
        deadline = time.monotonic() + timeout
        while time.monotonic() < deadline:
            if self._uvicorn is not None and self._uvicorn.started:
                return True
            if not self.running:
                return False
            time.sleep(0.05)
        return False

    def stop(self, timeout: float = 5.0) -> None:
        if self._uvicorn is None:
            return
        logger.info("Stop listening on %s:%d", self.host, self.port)
        self._uvicorn.should_exit = True
        if self._thread is not None:
            self._thread.join(timeout=timeout)
        self._uvicorn = None
        self._thread = None

    def close(self) -> None:
        self.stop()
        close_db(self.app)


class ServerRegistry:
    """Owns at most one :class:`Server` per port until :meth:`shutdown`.

    Usage:
        with ServerRegistry(settings) as registry:
            Router({"slug": "/foo", "get": lambda ctx: "Foo"}, registry=registry)
    """

    def __init__(self, settings: Settings | None = None) -> None:
        self.settings = settings or get_settings()
        self._servers: dict[int, Server] = {}

    def __len__(self) -> int:
        return len(self._servers)

    def __contains__(self, port: object) -> bool:
        return port in self._servers

    def __iter__(self) -> Iterator[Server]:
        return iter(list(self._servers.values()))

    def __enter__(self) -> ServerRegistry:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.shutdown()

    def get(self, port: int) -> Server | None:
        return self._servers.get(port)

    def get_or_create(
        self,
        port: int | None = None,
        host: str | None = None,
        *,
        no_server: bool | None = None,
    ) -> Server:
        """Return the server for ``port``, creating it on first use.

        ``host`` and ``no_server`` only apply when the server is created.
        """
        if port is None:
            port = self.settings.http_port
        server = self._servers.get(port)
        if server is not None:
            return server

        update: dict[str, Any] = {"http_port": port}
        if host is not None:
            update["http_host"] = host
        if no_server is None:
            no_server = self.settings.no_server

        server = Server(self.settings.model_copy(update=update), no_server=no_server)
        self._servers[port] = server
        return server

    def shutdown(self) -> None:
        for server in self._servers.values():
            server.close()
        self._servers.clear()
