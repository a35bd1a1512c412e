from __future__ import annotations

import os

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from rms.api.error_handling import register_exception_handlers
from rms.api.middleware.access_log import AccessLogMiddleware
from rms.api.middleware.request_id import REQUEST_ID_HEADER, RequestIDMiddleware
from rms.api.routes import (
    auth,
    billing,
    health,
    inventory,
    kitchen,
    menu,
    metrics,
    orders,
    purchase_orders,
    stations,
    suppliers,
    tables,
    users,
)
from rms.infrastructure.observability.logging_config import configure_logging
from rms.infrastructure.observability.otel import configure_otel

ROUTERS = (
    health.router,
    metrics.router,
    auth.router,
    users.router,
    users.audit_router,
    menu.router,
    tables.router,
    orders.router,
    kitchen.router,
    stations.router,
    billing.router,
    inventory.router,
    suppliers.router,
    purchase_orders.router,
)


def _cors_allow_origins() -> list[str]:
    if os.getenv("APP_ENV", "dev").lower() in {"dev", "test"}:
        return ["*"]
    raw_value = os.getenv("CORS_ALLOW_ORIGINS", "http://localhost:3000")
    return [origin.strip() for origin in raw_value.split(",") if origin.strip()]


def create_app() -> FastAPI:
    configure_logging()

    app = FastAPI(title="RMS Backend", version="0.1.0")
    register_exception_handlers(app)
    for router in ROUTERS:
        app.include_router(router)

    # added last runs first: CORS, then request id, then access log
    app.add_middleware(AccessLogMiddleware)
    app.add_middleware(RequestIDMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=_cors_allow_origins(),
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=[REQUEST_ID_HEADER],
    )

    configure_otel(app)
    return app


app = create_app()
