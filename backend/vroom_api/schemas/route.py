"""
Vroom Route API — Pydantic Models
==================================

What:  Value objects passed between the route, the service and the runner,
       plus the response shapes documented in OpenAPI.
How:   All request-side models are frozen; none of them outlive a request
       except VroomBinary, which is built once from configuration.
"""

import os
from pathlib import Path
from typing import List

from pydantic import BaseModel, Field


# ══════════════════════════════════════════════════════════════════════════
# Domain Values
# ══════════════════════════════════════════════════════════════════════════


class VroomBinary(BaseModel):
    """
    What:  Location of the VROOM executable.
    Who:   Built by create_app() from settings.vroom_binlocation and injected
           into VroomService.

    The file is checked on every request (exists, executable) because it may
    be replaced or have its permissions changed while the server runs.
    """
    path: str = Field(description="Filesystem path to the VROOM binary")

    model_config = {"frozen": True}

    @property
    def name(self) -> str:
        """File name, used to invoke the binary relative to its directory."""
        return Path(self.path).name

    @property
    def directory(self) -> str:
        """Working directory for the spawned process."""
        return str(Path(self.path).absolute().parent)

    def exists(self) -> bool:
        return Path(self.path).exists()

    def is_executable(self) -> bool:
        return os.access(self.path, os.X_OK)


class RouteRequest(BaseModel):
    """
    What:  One routing request as received on GET /route.

    Locations are "longitude,latitude" strings, passed through to VROOM
    untouched. Only their count is validated (by VroomService).
    """
    locations: List[str] = Field(
        default_factory=list,
        description="Ordered list of 'lon,lat' coordinates",
    )
    start_at_first: bool = Field(default=True, description="Start the route at the first location")
    end_at_last: bool = Field(default=False, description="End the route at the last location")
    include_geometry: bool = Field(default=False, description="Include route geometry in the output")

    model_config = {"frozen": True}


# ══════════════════════════════════════════════════════════════════════════
# Response Models
# ══════════════════════════════════════════════════════════════════════════


class RequestError(BaseModel):
    """
    What:  The error body returned for every failed request.

    Example:
        {"message": "Must send more than one location"}
    """
    message: str = Field(description="Human-readable error description")


class HealthResponse(BaseModel):
    """
    What:  Health check response showing service and binary status.
    Who:   Returned by GET /health for monitoring and container probes.
    """
    status: str = Field(description="Overall service status: healthy, unhealthy")
    version: str = Field(description="Application version")
    binary: str = Field(description="VROOM binary status: available, missing, not_executable")
    uptime_seconds: float = Field(description="Seconds since service started")
