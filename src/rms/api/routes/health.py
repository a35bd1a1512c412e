from __future__ import annotations

from fastapi import APIRouter, Response, status

from rms.infrastructure.cache.redis_client import ping_redis, redis_configured
from rms.infrastructure.db.session import ping_database

router = APIRouter(tags=["health"])


@router.get("/health/live")
def live() -> dict[str, str]:
    return {"status": "ok"}


@router.get("/health/ready")
def ready(response: Response) -> dict[str, object]:
    checks: dict[str, bool] = {"database": ping_database(timeout_seconds=1.0)}
    # event publishing is optional; only gate readiness on redis when it is configured
    if redis_configured():
        checks["redis"] = ping_redis(timeout_seconds=1.0)

    if all(checks.values()):
        return {"status": "ok", "checks": checks}

    response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    return {"status": "unavailable", "checks": checks}
