"""SQLAlchemy-backed implementations of the model and list contracts."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any, ClassVar

import sqlalchemy as sa
from sqlalchemy.exc import IntegrityError, StatementError
from sqlalchemy.orm import sessionmaker
from starlette.concurrency import run_in_threadpool

from crudroute.errors import ConflictError, InvalidDataError, NotFoundError

_UNSET = object()


def entity_to_dict(item: Any) -> dict[str, Any]:
    """Column attributes of a mapped instance as a plain dict."""
    mapper = sa.inspect(item).mapper
    return {attr.key: getattr(item, attr.key) for attr in mapper.column_attrs}


def _columns(entity: type) -> dict[str, sa.Column]:
    return {attr.key: attr.columns[0] for attr in sa.inspect(entity).column_attrs}


class SqlModel:
    """Single entity of ``entity`` loaded and persisted through ``session_factory``.

    Subclass with ``entity`` and ``session_factory`` set, or use :func:`sql_model`.
    Blocking session work runs in Starlette's threadpool.
    """

    entity: ClassVar[type]
    session_factory: ClassVar[sessionmaker]
    id_field: ClassVar[str] = "id"
    # Written by the entity itself, never from request data
    managed_fields: ClassVar[tuple[str, ...]] = ("create_at", "last_update_at")

    def __init__(self) -> None:
        self._data: dict[str, Any] = {}
        self._replacing = False

    def get(self, key: str | None = None) -> Any:
        if key is None:
            return dict(self._data)
        return self._data.get(key)

    def set(self, data: Mapping[str, Any] | str, value: Any = _UNSET) -> None:
        if isinstance(data, str):
            if value is _UNSET:
                raise TypeError("set(key, value) requires a value")
            self._data[data] = value
        else:
            self._data.update(data)

    def replace(self, data: Mapping[str, Any]) -> None:
        self._data = dict(data)
        self._replacing = True

    async def fetch(self, item_id: Any) -> SqlModel:
        self._data = await run_in_threadpool(self._load, item_id)
        self._replacing = False
        return self

    async def save(self) -> dict[str, Any]:
        self._data = await run_in_threadpool(self._persist)
        self._replacing = False
        return dict(self._data)

    async def delete(self, item_id: Any) -> None:
        await run_in_threadpool(self._remove, item_id)
        self._data = {}

    def _not_found(self, item_id: Any) -> NotFoundError:
        return NotFoundError(f"{self.entity.__name__} {item_id} not found")

    def _load(self, item_id: Any) -> dict[str, Any]:
        with self.session_factory() as session:
            item = session.get(self.entity, item_id)
            if item is None:
                raise self._not_found(item_id)
            return entity_to_dict(item)

    def _persist(self) -> dict[str, Any]:
        columns = {
            key: column
            for key, column in _columns(self.entity).items()
            if key not in self.managed_fields
        }
        values = {key: value for key, value in self._data.items() if key in columns}

        with self.session_factory() as session:
            item_id = values.get(self.id_field)
            item = session.get(self.entity, item_id) if item_id is not None else None
            if item is None:
                item = self.entity(**values)
                session.add(item)
            else:
                if self._replacing:
                    values = {**_cleared_values(columns, values), **values}
                for key, value in values.items():
                    setattr(item, key, value)
            try:
                session.commit()
            except IntegrityError as exc:
                session.rollback()
                raise ConflictError(
                    f"Record conflicts with an existing entry: {exc.orig}"
                ) from None
            except StatementError as exc:
                session.rollback()
                raise InvalidDataError(
                    f"Invalid value for {self.entity.__name__}: {exc.orig}"
                ) from None
            session.refresh(item)
            return entity_to_dict(item)

    def _remove(self, item_id: Any) -> None:
        with self.session_factory() as session:
            item = session.get(self.entity, item_id)
            if item is None:
                raise self._not_found(item_id)
            session.delete(item)
            session.commit()


def _cleared_values(columns: dict[str, sa.Column], provided: Mapping[str, Any]) -> dict[str, Any]:
    """Values that reset the columns a replacement left out.

    Scalar defaults win, then NULL for nullable columns; anything else keeps
    its stored value.
    """
    cleared: dict[str, Any] = {}
    for key, column in columns.items():
        if key in provided or column.primary_key:
            continue
        default = column.default
        if default is not None and default.is_scalar:
            cleared[key] = default.arg
        elif column.nullable:
            cleared[key] = None
    return cleared


class SqlList:
    """All rows of ``entity``, optionally ordered by ``(column, direction)`` pairs."""

    entity: ClassVar[type]
    session_factory: ClassVar[sessionmaker]
    order_by: ClassVar[Sequence[tuple[str, str]]] = ()

    def __init__(self) -> None:
        self._items: list[dict[str, Any]] = []

    def __len__(self) -> int:
        return len(self._items)

    async def fetch(self) -> SqlList:
        self._items = await run_in_threadpool(self._load)
        return self

    def to_array(self) -> list[dict[str, Any]]:
        return list(self._items)

    def _load(self) -> list[dict[str, Any]]:
        query = sa.select(self.entity)
        order_clauses = []
        for col_name, direction in self.order_by:
            column = getattr(self.entity, col_name)
            order_clauses.append(column.desc() if direction == "desc" else column.asc())
        if order_clauses:
            query = query.order_by(*order_clauses)

        with self.session_factory() as session:
            return [entity_to_dict(item) for item in session.execute(query).scalars()]


def sql_model(entity: type, session_factory: sessionmaker, *, name: str | None = None) -> type[SqlModel]:
    """Create a :class:`SqlModel` subclass bound to ``entity``."""
    return type(
        name or f"{entity.__name__}Model",
        (SqlModel,),
        {"entity": entity, "session_factory": session_factory},
    )


def sql_list(
    entity: type,
    session_factory: sessionmaker,
    *,
    order_by: Sequence[tuple[str, str]] = (),
    name: str | None = None,
) -> type[SqlList]:
    """Create a :class:`SqlList` subclass bound to ``entity``."""
    return type(
        name or f"{entity.__name__}List",
        (SqlList,),
        {"entity": entity, "session_factory": session_factory, "order_by": tuple(order_by)},
    )
