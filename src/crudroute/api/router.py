from __future__ import annotations

from fastapi import APIRouter

from crudroute.api.routes import health

# Statically mounted routes; runtime-bound routes live in the app's RouteTable
router = APIRouter()
router.include_router(health.router)
