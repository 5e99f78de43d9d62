"""Tests for SQLAlchemy-backed models and lists behind generated CRUD routes."""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import Boolean, String, Text
from sqlalchemy.orm import Mapped, mapped_column, sessionmaker

from crudroute import Router
from crudroute.db.base import Base, TimestampedIdBase
from crudroute.db.resources import SqlList, SqlModel, sql_list, sql_model
from crudroute.db.session import create_db_engine, create_session_factory


class Gizmo(TimestampedIdBase):
    """Minimal entity for exercising the SQL collaborators."""

    __tablename__ = "gizmos"

    name: Mapped[str] = mapped_column(String(128), unique=True)
    active: Mapped[bool] = mapped_column(Boolean, default=True)
    note: Mapped[str | None] = mapped_column(Text)


# --- Fixtures ---


@pytest.fixture
def gizmo_engine():
    engine = create_db_engine("sqlite://")
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def gizmo_sessions(gizmo_engine) -> sessionmaker:
    return create_session_factory(gizmo_engine)


@pytest.fixture
def gizmo_client(router: Router, client: TestClient, gizmo_sessions: sessionmaker) -> TestClient:
    router.register_routes(
        {
            "slug": "/gizmos/",
            "model": sql_model(Gizmo, gizmo_sessions),
            "list": sql_list(Gizmo, gizmo_sessions, order_by=[("name", "asc")]),
            "allow": ["READ", "CREATE", "UPDATE", "DELETE"],
        }
    )
    return client


def _create(client: TestClient, **fields) -> dict:
    response = client.post("/gizmos", json=fields)
    assert response.status_code == 200
    return response.json()


# --- Tests ---


class TestBoundClasses:
    def test_factories_bind_entity_and_sessions(self, gizmo_sessions: sessionmaker) -> None:
        model_cls = sql_model(Gizmo, gizmo_sessions)
        list_cls = sql_list(Gizmo, gizmo_sessions, order_by=[("name", "desc")])

        assert issubclass(model_cls, SqlModel)
        assert issubclass(list_cls, SqlList)
        assert model_cls.__name__ == "GizmoModel"
        assert list_cls.__name__ == "GizmoList"
        assert model_cls.entity is Gizmo
        assert list_cls.order_by == (("name", "desc"),)

    def test_set_and_get(self, gizmo_sessions: sessionmaker) -> None:
        model = sql_model(Gizmo, gizmo_sessions)()

        model.set({"name": "a", "active": False})
        model.set("note", "hello")

        assert model.get() == {"name": "a", "active": False, "note": "hello"}
        assert model.get("note") == "hello"
        assert model.get("missing") is None

    def test_set_key_requires_value(self, gizmo_sessions: sessionmaker) -> None:
        model = sql_model(Gizmo, gizmo_sessions)()

        with pytest.raises(TypeError):
            model.set("name")


class TestSqlCrud:
    def test_create_assigns_id_and_defaults(self, gizmo_client: TestClient) -> None:
        body = _create(gizmo_client, name="g1", note="hi")

        assert len(body["id"]) == 32
        assert body["name"] == "g1"
        assert body["active"] is True
        assert body["note"] == "hi"
        assert body["create_at"] is not None

    def test_read_one(self, gizmo_client: TestClient) -> None:
        created = _create(gizmo_client, name="g1")

        response = gizmo_client.get(f"/gizmos/{created['id']}")

        assert response.status_code == 200
        assert response.json()["name"] == "g1"

    def test_read_missing_is_not_found(self, gizmo_client: TestClient) -> None:
        response = gizmo_client.get("/gizmos/doesnotexist")

        assert response.status_code == 404
        assert response.text == "Gizmo doesnotexist not found"

    def test_list_is_ordered(self, gizmo_client: TestClient) -> None:
        _create(gizmo_client, name="charlie")
        _create(gizmo_client, name="alpha")
        _create(gizmo_client, name="bravo")

        response = gizmo_client.get("/gizmos")

        assert response.status_code == 200
        assert [item["name"] for item in response.json()] == ["alpha", "bravo", "charlie"]

    def test_patch_merges(self, gizmo_client: TestClient) -> None:
        created = _create(gizmo_client, name="g1", note="keep me")

        response = gizmo_client.patch(f"/gizmos/{created['id']}", json={"active": False})

        assert response.status_code == 200
        body = response.json()
        assert body["active"] is False
        assert body["note"] == "keep me"
        assert body["name"] == "g1"

    def test_put_replaces(self, gizmo_client: TestClient) -> None:
        created = _create(gizmo_client, name="g1", note="dropped", active=False)

        response = gizmo_client.put(f"/gizmos/{created['id']}", json={"name": "g2"})

        assert response.status_code == 200
        body = response.json()
        assert body["id"] == created["id"]
        assert body["name"] == "g2"
        assert body["note"] is None
        assert body["active"] is True
        assert body["create_at"] == created["create_at"]

    def test_put_unknown_id_inserts(self, gizmo_client: TestClient) -> None:
        response = gizmo_client.put("/gizmos/fresh", json={"name": "new"})

        assert response.status_code == 200
        assert gizmo_client.get("/gizmos/fresh").json()["name"] == "new"

    def test_delete(self, gizmo_client: TestClient) -> None:
        created = _create(gizmo_client, name="g1")

        deleted = gizmo_client.delete(f"/gizmos/{created['id']}")

        assert deleted.status_code == 204
        assert gizmo_client.get(f"/gizmos/{created['id']}").status_code == 404
        assert gizmo_client.get("/gizmos").json() == []

    def test_delete_missing_is_not_found(self, gizmo_client: TestClient) -> None:
        assert gizmo_client.delete("/gizmos/doesnotexist").status_code == 404

    def test_duplicate_is_conflict(self, gizmo_client: TestClient) -> None:
        _create(gizmo_client, name="g1")

        response = gizmo_client.post("/gizmos", json={"name": "g1"})

        assert response.status_code == 409
        assert response.text.startswith("Record conflicts with an existing entry")

    def test_unknown_fields_are_ignored(self, gizmo_client: TestClient) -> None:
        body = _create(gizmo_client, name="g1", colour="red")

        assert "colour" not in body

    def test_put_accepts_fetched_representation(self, gizmo_client: TestClient) -> None:
        created = _create(gizmo_client, name="g1", note="old")
        fetched = gizmo_client.get(f"/gizmos/{created['id']}").json()
        fetched["note"] = "new"

        response = gizmo_client.put(f"/gizmos/{created['id']}", json=fetched)

        assert response.status_code == 200
        body = response.json()
        assert body["note"] == "new"
        assert body["create_at"] == created["create_at"]

    def test_timestamps_in_body_are_ignored(self, gizmo_client: TestClient) -> None:
        body = _create(gizmo_client, name="g1", create_at="not a date")

        assert body["create_at"] != "not a date"

    def test_invalid_value_is_bad_request(self, gizmo_client: TestClient) -> None:
        response = gizmo_client.post("/gizmos", json={"name": "g1", "active": "notabool"})

        assert response.status_code == 400
        assert response.text.startswith("Invalid value for Gizmo")
        assert "INSERT" not in response.text
        assert gizmo_client.get("/gizmos").json() == []
