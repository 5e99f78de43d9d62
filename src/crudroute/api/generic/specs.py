"""Declarative route specifications and their expansion into concrete routes."""

from __future__ import annotations

import dataclasses
import logging
import re
from collections.abc import Callable, Mapping
from enum import Enum
from typing import Any, Union

from pydantic import BaseModel, ConfigDict, Field

from crudroute.collaborators import Model, ModelList

from . import handlers

logger = logging.getLogger(__name__)

HTTP_METHODS = ("get", "post", "put", "patch", "delete")

_PLACEHOLDER = re.compile(r":([A-Za-z_][A-Za-z0-9_]*)")


class Operation(str, Enum):
    """CRUD operations that can appear in an allow-list."""

    READ = "READ"
    CREATE = "CREATE"
    UPDATE = "UPDATE"
    DELETE = "DELETE"


DEFAULT_ALLOW = frozenset({Operation.READ})


class RouteConfig(BaseModel):
    """Inbound route configuration as accepted by ``Router.register_routes``.

    Args:
        slug: Path pattern; ``:param`` and ``{param}`` placeholders are accepted.
        allow: Enabled CRUD operations. ``None`` means read-only.
        model: Model class for single-entity routes.
        list: List class for the collection route.
        get/post/put/patch/delete: Handlers for a plain (non-CRUD) route.
    """

    slug: str | None = None
    allow: list[Operation] | None = None
    model: Any = None
    list_: Any = Field(default=None, alias="list")
    get: Any = None
    post: Any = None
    put: Any = None
    patch: Any = None
    delete: Any = None

    model_config = ConfigDict(arbitrary_types_allowed=True, populate_by_name=True)


@dataclasses.dataclass(frozen=True)
class DirectRoute:
    slug: str
    handlers: Mapping[str, Any]


@dataclasses.dataclass(frozen=True)
class CrudFromModel:
    slug: str
    model: type[Model]
    allow: frozenset[Operation] = DEFAULT_ALLOW


@dataclasses.dataclass(frozen=True)
class CrudFromList:
    slug: str
    list: type[ModelList]
    allow: frozenset[Operation] = DEFAULT_ALLOW


RouteSpec = Union[DirectRoute, CrudFromModel, CrudFromList]
ROUTE_SPEC_TYPES = (DirectRoute, CrudFromModel, CrudFromList)


@dataclasses.dataclass(frozen=True)
class ConcreteRoute:
    method: str
    path: str
    handler: Any
    name: str


def to_route_path(slug: str) -> str:
    """Convert ``/items/:id`` placeholders to Starlette's ``/items/{id}``."""
    path = _PLACEHOLDER.sub(r"{\1}", slug)
    if not path.startswith("/"):
        path = "/" + path
    return path


def collection_path(slug: str) -> str:
    # Only one trailing slash is stripped
    path = to_route_path(slug)
    if path.endswith("/"):
        path = path[:-1]
    return path or "/"


def item_path(slug: str) -> str:
    return collection_path(slug).rstrip("/") + "/{id}"


def resource_name(slug: str) -> str:
    segments = [s for s in collection_path(slug).split("/") if s and "{" not in s]
    name = segments[-1] if segments else "root"
    return re.sub(r"\W", "_", name).lower()


def parse_route_config(conf: Mapping[str, Any] | RouteConfig) -> list[RouteSpec]:
    """Turn an inbound config into tagged route specs.

    A config without a slug yields no specs. A config naming both ``model``
    and ``list`` yields one spec for each, model first.
    """
    if not isinstance(conf, RouteConfig):
        conf = RouteConfig.model_validate(dict(conf))

    if not conf.slug:
        logger.debug("Skipping route config without slug")
        return []

    allow = frozenset(conf.allow) if conf.allow is not None else DEFAULT_ALLOW

    if conf.model is None and conf.list_ is None:
        route_handlers = {}
        for method in HTTP_METHODS:
            handler = getattr(conf, method)
            if handler is not None:
                route_handlers[method] = handler
        return [DirectRoute(slug=conf.slug, handlers=route_handlers)]

    specs: list[RouteSpec] = []
    if conf.model is not None:
        specs.append(CrudFromModel(slug=conf.slug, model=conf.model, allow=allow))
    if conf.list_ is not None:
        specs.append(CrudFromList(slug=conf.slug, list=conf.list_, allow=allow))
    return specs


def expand(spec: RouteSpec) -> list[ConcreteRoute]:
    """Expand one spec into the concrete routes it stands for."""
    if isinstance(spec, DirectRoute):
        return _expand_direct(spec)
    if isinstance(spec, CrudFromModel):
        return _expand_model(spec)
    if isinstance(spec, CrudFromList):
        return _expand_list(spec)
    raise TypeError(f"Unsupported route spec: {type(spec).__name__}")


def _expand_direct(spec: DirectRoute) -> list[ConcreteRoute]:
    path = to_route_path(spec.slug)
    name = resource_name(spec.slug)
    return [
        ConcreteRoute(method.upper(), path, spec.handlers[method], f"{method}_{name}")
        for method in HTTP_METHODS
        if method in spec.handlers
    ]


def _expand_model(spec: CrudFromModel) -> list[ConcreteRoute]:
    collection = collection_path(spec.slug)
    item = item_path(spec.slug)
    name = resource_name(spec.slug)
    model = spec.model

    builders: list[tuple[Operation, str, str, Callable[[type[Model]], Any], str]] = [
        (Operation.READ, "GET", item, handlers.read_one, "get"),
        (Operation.CREATE, "POST", collection, handlers.create_one, "create"),
        (Operation.UPDATE, "PUT", item, handlers.replace_one, "replace"),
        (Operation.UPDATE, "PATCH", item, handlers.update_one, "update"),
        (Operation.DELETE, "DELETE", item, handlers.delete_one, "delete"),
    ]
    return [
        ConcreteRoute(method, path, build(model), f"{verb}_{name}")
        for operation, method, path, build, verb in builders
        if operation in spec.allow
    ]


def _expand_list(spec: CrudFromList) -> list[ConcreteRoute]:
    if Operation.READ not in spec.allow:
        return []
    name = resource_name(spec.slug)
    return [
        ConcreteRoute(
            "GET", collection_path(spec.slug), handlers.read_all(spec.list), f"list_{name}"
        )
    ]
