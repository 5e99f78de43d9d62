from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy import Engine, create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

if TYPE_CHECKING:
    from fastapi import FastAPI

_SQLITE_MEMORY_URLS = {"sqlite://", "sqlite+pysqlite://"}


def create_db_engine(database_url: str) -> Engine:
    """Create an engine; in-memory SQLite shares one connection across threads."""
    if not database_url.startswith("sqlite"):
        return create_engine(database_url)
    if ":memory:" in database_url or database_url in _SQLITE_MEMORY_URLS:
        return create_engine(
            database_url,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    return create_engine(database_url, connect_args={"check_same_thread": False})


def create_session_factory(engine: Engine) -> sessionmaker:
    # Loaded rows are turned into dicts after commit, so keep them readable
    return sessionmaker(
        autocommit=False,
        autoflush=False,
        expire_on_commit=False,
        bind=engine,
    )


def init_db(app: FastAPI, database_url: str) -> sessionmaker:
    """Create the engine and session factory for ``app`` and keep them in ``app.state``.

    Called while the app is assembled, so models can be bound to the factory
    before the server starts.
    """
    engine = create_db_engine(database_url)
    session_factory = create_session_factory(engine)
    app.state.db_engine = engine
    app.state.db_session_factory = session_factory
    return session_factory


def close_db(app: FastAPI) -> None:
    """Dispose database engine at shutdown."""
    if hasattr(app.state, "db_engine"):
        app.state.db_engine.dispose()
