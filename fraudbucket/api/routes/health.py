"""Health check routes."""

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from fraudbucket import __version__
from fraudbucket.core.database import check_database

router = APIRouter(prefix="/health", tags=["Health"])


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    version: str


class ReadyResponse(BaseModel):
    """Readiness check response."""

    status: str
    database: str
    redis: str


@router.get(
    "",
    response_model=HealthResponse,
    summary="Health check",
    description="Check if the service is running.",
)
async def health_check() -> HealthResponse:
    """Return service health status."""
    return HealthResponse(status="healthy", version=__version__)


@router.get(
    "/ready",
    response_model=ReadyResponse,
    summary="Readiness check",
    description="Check that the database and Redis are reachable.",
    responses={503: {"model": ReadyResponse}},
)
async def readiness_check(request: Request) -> JSONResponse:
    """Return service readiness status."""
    engine = getattr(request.app.state, "engine", None)
    redis = getattr(request.app.state, "redis", None)

    database_ok = engine is not None and await check_database(engine)
    redis_ok = redis is not None and await redis.ping()

    ready = database_ok and redis_ok
    body = ReadyResponse(
        status="ready" if ready else "not_ready",
        database="connected" if database_ok else "unavailable",
        redis="connected" if redis_ok else "unavailable",
    )
    return JSONResponse(status_code=200 if ready else 503, content=body.model_dump())


@router.get(
    "/live",
    summary="Liveness check",
    description="Kubernetes liveness probe endpoint.",
)
async def liveness_check() -> dict:
    """Return liveness status."""
    return {"status": "alive"}
