"""Liveness endpoint: GET /v1/health."""

from __future__ import annotations

import time
from datetime import datetime, timezone
from typing import List

from fastapi import APIRouter
from pydantic import BaseModel, Field

from conceptforge import __version__
from conceptforge.core.config import STAGE_NAMES

router = APIRouter(prefix="/v1", tags=["health"])

_STARTED_AT = time.monotonic()


class HealthResponse(BaseModel):
    status: str = Field(..., description="'healthy' while the process serves requests")
    version: str
    timestamp: str = Field(..., description="ISO 8601, UTC")
    uptimeSeconds: float
    stages: List[str] = Field(..., description="Pipeline stages this build can run")


@router.get("/health", response_model=HealthResponse)
def health_check() -> HealthResponse:
    return HealthResponse(
        status="healthy",
        version=__version__,
        timestamp=datetime.now(timezone.utc).isoformat(),
        uptimeSeconds=round(time.monotonic() - _STARTED_AT, 3),
        stages=list(STAGE_NAMES),
    )
