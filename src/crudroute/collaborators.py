"""Structural contracts for the classes passed as ``model`` and ``list``.

Both are instantiated with no arguments once per request. ``fetch``, ``save``
and ``delete`` may be plain methods or coroutines; results are awaited when
awaitable.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class Model(Protocol):
    def fetch(self, item_id: Any) -> Any: ...

    def get(self, key: str | None = None) -> Any: ...

    def set(self, data: Mapping[str, Any] | str, value: Any = ...) -> None: ...

    def replace(self, data: Mapping[str, Any]) -> None: ...

    def save(self) -> Any: ...

    def delete(self, item_id: Any) -> Any: ...


@runtime_checkable
class ModelList(Protocol):
    def fetch(self) -> Any: ...

    def to_array(self) -> Sequence[Any]: ...
