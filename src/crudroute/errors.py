"""Errors raised by route handlers and collaborators.

The response adapter does not require these types: any exception carrying a
``status_code`` and a ``message`` (or ``detail``) is mapped the same way.
"""

from __future__ import annotations

from starlette.status import (
    HTTP_400_BAD_REQUEST,
    HTTP_404_NOT_FOUND,
    HTTP_409_CONFLICT,
    HTTP_500_INTERNAL_SERVER_ERROR,
)


class RouteError(Exception):
    """Base error carrying the HTTP status the failed request should answer with."""

    status_code: int = HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class NotFoundError(RouteError):
    status_code = HTTP_404_NOT_FOUND


class ConflictError(RouteError):
    status_code = HTTP_409_CONFLICT


class InvalidDataError(RouteError):
    status_code = HTTP_400_BAD_REQUEST
