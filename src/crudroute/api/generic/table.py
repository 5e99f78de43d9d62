"""Ordered table of the routes bound at runtime on one application."""

from __future__ import annotations

import dataclasses
import itertools
import logging
import threading
from collections.abc import Callable, Iterator
from typing import Any

from fastapi import FastAPI
from fastapi.routing import APIRoute

from .specs import to_route_path

logger = logging.getLogger(__name__)


@dataclasses.dataclass(frozen=True)
class RouteRecord:
    id: int
    method: str
    path: str
    name: str | None
    route: APIRoute = dataclasses.field(repr=False, compare=False)


class RouteTable:
    """Dynamically bound routes of a FastAPI app, in registration order.

    Routes mounted by the app itself (health, docs) never enter the table,
    so ``reset`` leaves them in place.

    Mutations run on the caller's thread while uvicorn may be matching
    requests on its own. Additions append to the router's list; removals
    build a new list and swap it in, so a request being matched sees either
    the old or the new table, never a partly filtered one.
    """

    def __init__(self, app: FastAPI) -> None:
        self._app = app
        self._records: list[RouteRecord] = []
        self._ids = itertools.count(1)
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[RouteRecord]:
        return iter(list(self._records))

    def add(
        self,
        method: str,
        path: str,
        endpoint: Callable[..., Any],
        *,
        name: str | None = None,
    ) -> RouteRecord:
        method = method.upper()
        path = to_route_path(path)
        with self._lock:
            self._app.router.add_api_route(path, endpoint, methods=[method], name=name)
            record = RouteRecord(
                id=next(self._ids),
                method=method,
                path=path,
                name=name,
                route=self._app.router.routes[-1],
            )
            self._records.append(record)
        self._invalidate_schema()
        return record

    def find(self, path: str) -> list[RouteRecord]:
        path = to_route_path(path)
        return [record for record in self._records if record.path == path]

    def remove(self, record: RouteRecord) -> bool:
        if record not in self._records:
            return False
        self._drop([record])
        return True

    def remove_path(self, path: str) -> int:
        """Remove every record bound to ``path``; returns how many were removed."""
        matches = self.find(path)
        self._drop(matches)
        return len(matches)

    def reset(self) -> int:
        """Remove every dynamically bound record."""
        records = list(self._records)
        self._drop(records)
        return len(records)

    def _drop(self, records: list[RouteRecord]) -> None:
        if not records:
            return
        doomed = {id(record.route) for record in records}
        removed = {record.id for record in records}
        with self._lock:
            routes = self._app.router.routes
            self._app.router.routes = [route for route in routes if id(route) not in doomed]
            self._records = [record for record in self._records if record.id not in removed]
        for record in records:
            logger.info("Remove route %s %s", record.method, record.path)
        self._invalidate_schema()

    def _invalidate_schema(self) -> None:
        # FastAPI caches the generated OpenAPI document
        self._app.openapi_schema = None
