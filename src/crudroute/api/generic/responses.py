"""Adapt route handlers to Starlette responses.

A handler takes a :class:`RequestContext` (or is a constant) and returns a
value. The value is tagged as one of three outcomes before it is rendered:

* :class:`Success` - a plain value, rendered with status 200.
* :class:`Deferred` - an awaitable; its result is rendered, and any exception
  it raises becomes an error response.
* :class:`Failure` - an error, rendered as its status code and message.

Exceptions raised synchronously by the handler are not caught here; they go
through FastAPI's own exception handling.
"""

from __future__ import annotations

import dataclasses
import inspect
import json
import logging
from collections.abc import Awaitable, Callable
from typing import Any, Union

from fastapi import HTTPException, Request
from fastapi.encoders import jsonable_encoder
from pydantic import BaseModel
from starlette.responses import JSONResponse, PlainTextResponse, Response
from starlette.status import (
    HTTP_204_NO_CONTENT,
    HTTP_400_BAD_REQUEST,
    HTTP_500_INTERNAL_SERVER_ERROR,
)

logger = logging.getLogger(__name__)

_BODY_METHODS = {"POST", "PUT", "PATCH", "DELETE"}
# Media ranges covering JSON, most specific first
_JSON_RANGES = {"application/json": 2, "application/*": 1, "*/*": 0}


@dataclasses.dataclass(frozen=True)
class Success:
    value: Any


@dataclasses.dataclass(frozen=True)
class Deferred:
    awaitable: Awaitable[Any]


@dataclasses.dataclass(frozen=True)
class Failure:
    error: BaseException


Outcome = Union[Success, Deferred, Failure]


@dataclasses.dataclass
class RequestContext:
    """Per-request view handed to route handlers."""

    request: Request
    params: dict[str, Any]
    query: dict[str, str]
    body: Any = None
    response: Response | None = None

    @classmethod
    async def from_request(cls, request: Request) -> "RequestContext":
        return cls(
            request=request,
            params=dict(request.path_params),
            query=dict(request.query_params),
            body=await _read_body(request),
        )

    def send(self, response: Response) -> None:
        """Answer with ``response`` when the handler returns nothing."""
        self.response = response


async def _read_body(request: Request) -> Any:
    if request.method not in _BODY_METHODS:
        return None
    raw = await request.body()
    if not raw:
        return None
    content_type = request.headers.get("content-type", "")
    if "json" not in content_type:
        return raw
    try:
        return json.loads(raw)
    except ValueError:
        raise HTTPException(
            status_code=HTTP_400_BAD_REQUEST, detail="Malformed JSON body"
        ) from None


def classify(result: Any) -> Outcome:
    if isinstance(result, (Success, Deferred, Failure)):
        return result
    if inspect.isawaitable(result):
        return Deferred(result)
    return Success(result)


def accepts_json(request: Request) -> bool:
    """True unless the Accept header rules JSON out.

    The most specific range covering JSON decides, and a quality of 0 refuses it.
    """
    accept = request.headers.get("accept")
    if not accept:
        return True
    best: tuple[int, float] | None = None
    for media_range in accept.split(","):
        media_type, _, params = media_range.partition(";")
        media_type = media_type.strip().lower()
        if media_type.endswith("+json"):
            specificity = 2
        elif media_type in _JSON_RANGES:
            specificity = _JSON_RANGES[media_type]
        else:
            continue
        quality = _quality(params)
        if best is None or specificity > best[0]:
            best = (specificity, quality)
    return best is not None and best[1] > 0


def _quality(params: str) -> float:
    for param in params.split(";"):
        key, _, value = param.partition("=")
        if key.strip().lower() == "q":
            try:
                return float(value.strip())
            except ValueError:
                return 1.0
    return 1.0


def _is_structured(value: Any) -> bool:
    if isinstance(value, (dict, list, tuple, BaseModel)):
        return True
    return dataclasses.is_dataclass(value) and not isinstance(value, type)


def render(ctx: RequestContext, value: Any) -> Response:
    """Render a successful handler value."""
    if value is None:
        if ctx.response is not None:
            return ctx.response
        logger.debug("Handler for %s %s returned nothing", ctx.request.method, ctx.request.url.path)
        return Response(status_code=HTTP_204_NO_CONTENT)
    if isinstance(value, Response):
        return value
    if isinstance(value, str):
        if value == "":
            return Response(status_code=HTTP_204_NO_CONTENT, media_type="text/plain")
        return PlainTextResponse(value)
    if isinstance(value, (bytes, bytearray)):
        return Response(bytes(value), media_type="application/octet-stream")
    if _is_structured(value):
        # Structured payloads are always sent as JSON
        return JSONResponse(jsonable_encoder(value))
    if accepts_json(ctx.request):
        return JSONResponse(jsonable_encoder(value))
    return PlainTextResponse(str(value))


def error_message(error: BaseException) -> str:
    message = getattr(error, "message", None)
    if isinstance(message, str):
        return message
    detail = getattr(error, "detail", None)
    if isinstance(detail, str):
        return detail
    return str(error)


def error_status(error: BaseException) -> int:
    status_code = getattr(error, "status_code", None)
    if isinstance(status_code, int) and 100 <= status_code <= 599:
        return status_code
    return HTTP_500_INTERNAL_SERVER_ERROR


def render_error(ctx: RequestContext, error: BaseException) -> Response:
    status_code = error_status(error)
    if status_code >= HTTP_500_INTERNAL_SERVER_ERROR:
        logger.error(
            "Handler for %s %s failed",
            ctx.request.method,
            ctx.request.url.path,
            exc_info=(type(error), error, error.__traceback__),
        )
    else:
        logger.info(
            "Handler for %s %s answered %d: %s",
            ctx.request.method,
            ctx.request.url.path,
            status_code,
            error_message(error),
        )
    return PlainTextResponse(error_message(error), status_code=status_code)


def request_handler(fn: Any) -> Callable[[Request], Awaitable[Response]]:
    """Wrap ``fn`` into a Starlette endpoint.

    Args:
        fn: Callable of a ``RequestContext``, or a constant value to answer with.

    Returns:
        An async endpoint taking the request and returning a response.
    """

    async def endpoint(request: Request) -> Response:
        ctx = await RequestContext.from_request(request)
        outcome = classify(fn(ctx) if callable(fn) else fn)

        if isinstance(outcome, Deferred):
            try:
                value = await outcome.awaitable
            except Exception as exc:
                return render_error(ctx, exc)
            outcome = value if isinstance(value, (Success, Failure)) else Success(value)

        if isinstance(outcome, Failure):
            return render_error(ctx, outcome.error)
        return render(ctx, outcome.value)

    return endpoint
