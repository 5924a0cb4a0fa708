"""
Health check endpoint.

GET /health reports MongoDB and Redis reachability.
- MongoDB down: "unhealthy", 503. Nothing works without it.
- Redis down or not configured: "degraded", 200. Redis only backs the
  per-user lease.
"""

from __future__ import annotations

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from pymongo.errors import PyMongoError
from redis.exceptions import RedisError

from schemas.dto.responses.common import HealthResponse
from shared.logging import get_logger

log = get_logger(__name__)

router = APIRouter(tags=["health"])


@router.get("/health", response_model=HealthResponse)
async def health_check(request: Request) -> JSONResponse:
    checks: dict[str, str] = {}
    overall = "healthy"

    try:
        await request.app.state.db.client.admin.command("ping")
        checks["mongodb"] = "ok"
    except PyMongoError as e:
        log.warning("health_mongodb_failed", error=str(e))
        checks["mongodb"] = "error"
        overall = "unhealthy"

    redis = request.app.state.redis
    if redis is None:
        checks["redis"] = "not_configured"
    else:
        try:
            await redis.ping()
            checks["redis"] = "ok"
        except (RedisError, OSError) as e:
            log.warning("health_redis_failed", error=str(e))
            checks["redis"] = "error"
    if checks["redis"] != "ok" and overall == "healthy":
        overall = "degraded"

    return JSONResponse(
        status_code=503 if overall == "unhealthy" else 200,
        content=HealthResponse(status=overall, checks=checks).model_dump(),
    )
