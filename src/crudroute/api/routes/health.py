from __future__ import annotations

from fastapi import APIRouter, Request

router = APIRouter(tags=["health"])


@router.get("/healthz")
def health_check(request: Request) -> dict[str, str | int]:
    return {"status": "ok", "routes": len(request.app.state.route_table)}
