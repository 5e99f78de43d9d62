"""Generic route registration: declarative configs, CRUD expansion, response shaping."""

from __future__ import annotations

from crudroute.api.generic.responses import (
    Deferred,
    Failure,
    RequestContext,
    Success,
    request_handler,
)
from crudroute.api.generic.router import Router
from crudroute.api.generic.specs import (
    ConcreteRoute,
    CrudFromList,
    CrudFromModel,
    DirectRoute,
    Operation,
    RouteConfig,
    expand,
    parse_route_config,
)
from crudroute.api.generic.table import RouteRecord, RouteTable

__all__ = [
    "ConcreteRoute",
    "CrudFromList",
    "CrudFromModel",
    "Deferred",
    "DirectRoute",
    "Failure",
    "Operation",
    "RequestContext",
    "RouteConfig",
    "RouteRecord",
    "RouteTable",
    "Router",
    "Success",
    "expand",
    "parse_route_config",
    "request_handler",
]
