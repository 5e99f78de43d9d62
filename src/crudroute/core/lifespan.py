from __future__ import annotations

from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI

from crudroute.db.session import close_db

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Application starting with %d dynamic routes", len(app.state.route_table))
    yield
    close_db(app)
    logger.info("Application shutting down")
