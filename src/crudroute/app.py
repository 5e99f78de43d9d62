from __future__ import annotations

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.trustedhost import TrustedHostMiddleware

from crudroute.api.generic.table import RouteTable
from crudroute.api.router import router as api_router
from crudroute.core.config import Settings, get_settings
from crudroute.core.lifespan import lifespan
from crudroute.core.logging import configure_logging
from crudroute.db.session import init_db
from crudroute.middleware.request_log import RequestLogMiddleware


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or get_settings()
    configure_logging(settings.log_level)

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        debug=settings.debug,
        openapi_url=settings.openapi_url if settings.docs_enabled else None,
        docs_url=settings.docs_url if settings.docs_enabled else None,
        redoc_url=settings.redoc_url if settings.docs_enabled else None,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.route_table = RouteTable(app)

    app.add_middleware(RequestLogMiddleware, header_name=settings.request_id_header)

    if settings.allowed_hosts:
        app.add_middleware(TrustedHostMiddleware, allowed_hosts=settings.allowed_hosts)

    if settings.allow_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=settings.allow_origins,
            allow_credentials=settings.cors_allow_credentials,
            allow_methods=settings.cors_allow_methods,
            allow_headers=settings.cors_allow_headers,
        )

    if settings.database_url:
        init_db(app, settings.database_url)

    app.include_router(api_router)

    return app
