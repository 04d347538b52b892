"""
VendorHub Media Backend — Health Check Route
==============================================

What:  Health check endpoint for monitoring and load balancer probes.
How:   Verifies the uploads directory is writable and reports uptime.

Status levels:
    - healthy:   Uploads directory writable (HTTP 200)
    - unhealthy: Uploads directory missing or read-only (HTTP 200, flagged)
"""

import logging
import os
import time

from fastapi import APIRouter

from vendorhub import __version__
from vendorhub.schemas.upload import HealthResponse
from vendorhub.services.file_service import file_service

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

_start_time = time.time()


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Service health check",
)
async def health_check() -> HealthResponse:
    storage_status = "writable"
    overall = "healthy"

    root = file_service.storage_root
    if not (root.is_dir() and os.access(root, os.W_OK)):
        storage_status = "unavailable"
        overall = "unhealthy"
        logger.warning("Health check: storage root not writable: %s", root)

    return HealthResponse(
        status=overall,
        version=__version__,
        storage=storage_status,
        uptime_seconds=round(time.time() - _start_time, 2),
    )
