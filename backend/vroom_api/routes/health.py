"""
Vroom Route API — Health Check Route
=====================================

What:  Health check endpoint for monitoring and container probes.
How:   Reports whether the configured VROOM binary could be run right now.
       No process is spawned; only the file checks from VroomService are used.

Status levels:
    - healthy:   Binary exists and is executable
    - unhealthy: Binary missing or not executable (requests to /route will fail)
"""

import logging
import time

from fastapi import APIRouter, Depends

from vroom_api import __version__
from vroom_api.exceptions import BinaryNotExecutableError, BinaryNotFoundError
from vroom_api.schemas.route import HealthResponse
from vroom_api.services.vroom_service import VroomService, get_vroom_service

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

_start_time = time.time()


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Service health check",
    description="Returns the health status of the service and its VROOM binary.",
)
async def health_check(
    service: VroomService = Depends(get_vroom_service),
) -> HealthResponse:
    binary_status = "available"
    try:
        service.check_binary()
    except BinaryNotFoundError:
        binary_status = "missing"
    except BinaryNotExecutableError:
        binary_status = "not_executable"

    if binary_status != "available":
        logger.warning("Health check: VROOM binary %s (%s)", binary_status, service.binary.path)

    return HealthResponse(
        status="healthy" if binary_status == "available" else "unhealthy",
        version=__version__,
        binary=binary_status,
        uptime_seconds=round(time.time() - _start_time, 2),
    )
