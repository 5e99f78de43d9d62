"""Declarative REST and CRUD route registration on FastAPI."""

from __future__ import annotations

from crudroute.api.generic import (
    Deferred,
    Failure,
    Operation,
    RequestContext,
    RouteConfig,
    Router,
    Success,
)
from crudroute.errors import ConflictError, InvalidDataError, NotFoundError, RouteError
from crudroute.server import Server, ServerRegistry

__all__ = [
    "ConflictError",
    "Deferred",
    "Failure",
    "InvalidDataError",
    "NotFoundError",
    "Operation",
    "RequestContext",
    "RouteConfig",
    "RouteError",
    "Router",
    "Server",
    "ServerRegistry",
    "Success",
]
