# =============================================================================
# app/routers/health.py - Health Check Endpoints
# =============================================================================
# Liveness, plus a readiness check covering everything an import needs:
# the suppliers table, the images bucket and the Celery broker.
# =============================================================================

from datetime import datetime, timezone

import redis
from fastapi import APIRouter
from pydantic import BaseModel

from app.config import settings
from lib.supabase_client import SupabaseClient

router = APIRouter()

API_VERSION = "1.0.0"
HEALTHY = "healthy"


class HealthResponse(BaseModel):
    status: str
    timestamp: str
    environment: str
    version: str


class ChecksResponse(BaseModel):
    """One entry per dependency: "healthy" or "unhealthy: <reason>"."""
    database: str = "unknown"
    storage: str = "unknown"
    broker: str = "unknown"

    @property
    def all_healthy(self) -> bool:
        return all(value == HEALTHY for value in (self.database, self.storage, self.broker))


class ReadinessResponse(BaseModel):
    status: str
    checks: ChecksResponse
    timestamp: str


class LivenessResponse(BaseModel):
    status: str
    timestamp: str


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _unhealthy(error: Exception) -> str:
    return f"unhealthy: {str(error)[:50]}"


def _check_database() -> str:
    try:
        SupabaseClient.get_client().table("suppliers").select("id").limit(1).execute()
        return HEALTHY
    except Exception as e:
        return _unhealthy(e)


def _check_storage() -> str:
    try:
        buckets = {bucket.name for bucket in SupabaseClient.get_client().storage.list_buckets()}
    except Exception as e:
        return _unhealthy(e)

    missing = [
        name for name in (settings.SUPPLIER_IMAGES_BUCKET, settings.IMPORT_FILES_BUCKET)
        if name not in buckets
    ]
    if missing:
        return f"unhealthy: missing bucket {', '.join(missing)}"
    return HEALTHY


def _check_broker() -> str:
    try:
        redis.Redis.from_url(settings.REDIS_URL, socket_connect_timeout=2).ping()
        return HEALTHY
    except redis.RedisError as e:
        return _unhealthy(e)


# =============================================================================
# Endpoints
# =============================================================================

@router.get("/health", response_model=HealthResponse)
async def health_check():
    """Basic health status for load balancers and monitoring."""
    return HealthResponse(
        status=HEALTHY,
        timestamp=_now(),
        environment=settings.ENVIRONMENT,
        version=API_VERSION,
    )


@router.get("/health/ready", response_model=ReadinessResponse)
async def readiness_check():
    """
    Readiness check.

    "degraded" means imports will fail: previews may still work, but
    queuing or running an import needs all three dependencies.
    """
    checks = ChecksResponse(
        database=_check_database(),
        storage=_check_storage(),
        broker=_check_broker(),
    )

    return ReadinessResponse(
        status="ready" if checks.all_healthy else "degraded",
        checks=checks,
        timestamp=_now(),
    )


@router.get("/health/live", response_model=LivenessResponse)
async def liveness_check():
    return LivenessResponse(status="alive", timestamp=_now())
