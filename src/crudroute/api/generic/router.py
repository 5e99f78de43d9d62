"""Registrar binding declarative route configurations to a per-port server."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any, Union

from .responses import request_handler
from .specs import (
    ROUTE_SPEC_TYPES,
    ConcreteRoute,
    RouteConfig,
    RouteSpec,
    expand,
    parse_route_config,
)
from .table import RouteRecord

if TYPE_CHECKING:
    from crudroute.server import Server, ServerRegistry

logger = logging.getLogger(__name__)

RouteInput = Union[Mapping[str, Any], RouteConfig, RouteSpec]


class Router:
    """Register routes, including generated CRUD routes, on a shared server.

    Usage:
        router = Router(registry=registry)
        router.register_routes({"slug": "/foo", "get": lambda ctx: "Foo"})
        router.register_routes(
            {"slug": "/bots", "model": BotModel, "list": BotList,
             "allow": ["READ", "CREATE", "UPDATE", "DELETE"]}
        )

    Every ``Router`` for the same port shares one server and one route table.
    """

    def __init__(
        self,
        conf: RouteInput | None = None,
        *,
        registry: ServerRegistry,
        port: int | None = None,
        host: str | None = None,
        no_server: bool | None = None,
    ) -> None:
        self.server: Server = registry.get_or_create(port=port, host=host, no_server=no_server)
        self.app = self.server.app

        if conf is not None and _has_slug(conf):
            self.register_routes(conf)

    @property
    def routes(self) -> list[RouteRecord]:
        return list(self.server.routes)

    def create_config(self, conf: RouteInput) -> list[ConcreteRoute]:
        """Expand ``conf`` into concrete routes without registering them."""
        return [route for spec in _to_specs(conf) for route in expand(spec)]

    def register_routes(self, conf: RouteInput) -> Router:
        for route in self.create_config(conf):
            logger.info("Register route %s %s", route.method, route.path)
            self.server.route(route.method, route.path, request_handler(route.handler), name=route.name)
        return self

    def remove_route(self, path: str) -> int:
        return self.server.routes.remove_path(path)

    def reset_routes(self) -> int:
        return self.server.routes.reset()


def _to_specs(conf: RouteInput) -> list[RouteSpec]:
    if isinstance(conf, ROUTE_SPEC_TYPES):
        return [conf]
    return parse_route_config(conf)


def _has_slug(conf: RouteInput) -> bool:
    if isinstance(conf, Mapping):
        return bool(conf.get("slug"))
    return bool(getattr(conf, "slug", None))
