"""Handler builders for model and list backed CRUD routes.

Each builder returns a coroutine function of a ``RequestContext``, so every
collaborator failure surfaces as a deferred failure in the response adapter.
"""

from __future__ import annotations

import inspect
from collections.abc import Mapping
from typing import Any

from starlette.status import HTTP_415_UNSUPPORTED_MEDIA_TYPE

from crudroute.collaborators import Model, ModelList
from crudroute.errors import InvalidDataError, RouteError


async def resolve(value: Any) -> Any:
    if inspect.isawaitable(value):
        return await value
    return value


def payload(ctx) -> dict[str, Any]:
    """The request body as field values; only JSON objects are accepted."""
    body = ctx.body
    if body is None:
        return {}
    if isinstance(body, Mapping):
        return dict(body)
    if isinstance(body, (bytes, bytearray)):
        raise RouteError("Request body must be JSON", HTTP_415_UNSUPPORTED_MEDIA_TYPE)
    raise InvalidDataError("Request body must be a JSON object")


def read_one(model_cls: type[Model]):
    async def handler(ctx) -> Any:
        model = model_cls()
        await resolve(model.fetch(ctx.params["id"]))
        return model.get()

    return handler


def create_one(model_cls: type[Model]):
    async def handler(ctx) -> Any:
        model = model_cls()
        model.set(payload(ctx))
        saved = await resolve(model.save())
        return model.get() if saved is None else saved

    return handler


def replace_one(model_cls: type[Model]):
    async def handler(ctx) -> Any:
        model = model_cls()
        model.replace(payload(ctx))
        # The path id wins over any id in the body
        model.set("id", ctx.params["id"])
        saved = await resolve(model.save())
        return model.get() if saved is None else saved

    return handler


def update_one(model_cls: type[Model]):
    async def handler(ctx) -> Any:
        item_id = ctx.params["id"]
        values = payload(ctx)
        model = model_cls()
        await resolve(model.fetch(item_id))
        model.set(values)
        model.set("id", item_id)
        saved = await resolve(model.save())
        return model.get() if saved is None else saved

    return handler


def delete_one(model_cls: type[Model]):
    async def handler(ctx) -> Any:
        model = model_cls()
        deleted = await resolve(model.delete(ctx.params["id"]))
        return "" if deleted is None else deleted

    return handler


def read_all(list_cls: type[ModelList]):
    async def handler(ctx) -> Any:
        items = list_cls()
        await resolve(items.fetch())
        return list(items.to_array())

    return handler
