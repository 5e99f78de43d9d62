"""Shared test fixtures."""

from __future__ import annotations

import itertools

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from crudroute import NotFoundError, Router, ServerRegistry
from crudroute.core.config import Settings


@pytest.fixture(scope="session", autouse=True)
def set_test_env(monkeypatch_session):
    """Keep routers created from default settings from binding a socket."""
    monkeypatch_session.setenv("CRUDROUTE_NO_SERVER", "true")
    monkeypatch_session.setenv("CRUDROUTE_LOG_LEVEL", "WARNING")
    from crudroute.core.config import get_settings
    get_settings.cache_clear()


@pytest.fixture(scope="session")
def monkeypatch_session():
    """Session-scoped monkeypatch for environment setup."""
    from _pytest.monkeypatch import MonkeyPatch
    mp = MonkeyPatch()
    yield mp
    mp.undo()


@pytest.fixture
def settings() -> Settings:
    return Settings(no_server=True, http_port=18080, log_level="WARNING")


@pytest.fixture
def registry(settings: Settings):
    registry = ServerRegistry(settings)
    yield registry
    registry.shutdown()


@pytest.fixture
def router(registry: ServerRegistry) -> Router:
    return Router(registry=registry)


@pytest.fixture
def app(router: Router) -> FastAPI:
    return router.app


@pytest.fixture
def client(app: FastAPI) -> TestClient:
    return TestClient(app)


class MemoryStore:
    """Rows shared by every instance of the memory model built on it."""

    def __init__(self) -> None:
        self.rows: dict[str, dict] = {}
        self.ids = itertools.count(1)


def make_memory_model(store: MemoryStore) -> type:
    class MemoryModel:
        def __init__(self) -> None:
            self.data: dict = {}

        async def fetch(self, item_id):
            row = store.rows.get(item_id)
            if row is None:
                raise NotFoundError(f"Item {item_id} not found")
            self.data = dict(row)

        def get(self, key=None):
            if key is None:
                return dict(self.data)
            return self.data.get(key)

        def set(self, data, value=None):
            if isinstance(data, str):
                self.data[data] = value
            else:
                self.data.update(data)

        def replace(self, data):
            self.data = dict(data)

        async def save(self):
            if self.data.get("id") is None:
                self.data["id"] = str(next(store.ids))
            store.rows[self.data["id"]] = dict(self.data)
            return dict(self.data)

        async def delete(self, item_id):
            if store.rows.pop(item_id, None) is None:
                raise NotFoundError(f"Item {item_id} not found")

    return MemoryModel


def make_memory_list(store: MemoryStore) -> type:
    class MemoryList:
        def __init__(self) -> None:
            self.items: list = []

        async def fetch(self):
            self.items = [dict(row) for row in store.rows.values()]

        def to_array(self):
            return self.items

    return MemoryList


@pytest.fixture
def memory_store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture
def memory_model(memory_store: MemoryStore) -> type:
    return make_memory_model(memory_store)


@pytest.fixture
def memory_list(memory_store: MemoryStore) -> type:
    return make_memory_list(memory_store)
