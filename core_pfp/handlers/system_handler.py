"""Health, debug and metrics endpoints."""
from __future__ import annotations

import logging
import time
from datetime import datetime, timezone

from fastapi import APIRouter, Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from core_pfp.config import get_settings
from core_pfp.models import DebugResponse, HealthResponse

router = APIRouter(prefix="/api", tags=["system"])
settings = get_settings()
logger = logging.getLogger(__name__)

_STARTED_AT = time.monotonic()

ENDPOINTS = [
    "/api/health",
    "/api/debug",
    "/api/metrics",
    "/api/generate-avatar",
    "/api/apply-style",
]


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


@router.get("/health", response_model=HealthResponse)
async def health():
    return HealthResponse(uptime=int(time.monotonic() - _STARTED_AT), timestamp=_now_iso())


@router.get("/debug", response_model=DebugResponse, response_model_by_alias=True)
async def debug():
    return DebugResponse(
        message="CORE PFP Generator API",
        endpoints=ENDPOINTS,
        timestamp=_now_iso(),
        node_env=settings.environment,
        version=settings.version,
    )


@router.get("/metrics")
async def metrics():
    return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)
