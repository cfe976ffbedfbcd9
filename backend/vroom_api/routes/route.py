"""
Vroom Route API — Route Handler
================================

What:  Handles GET /route: locations + options in, VROOM's JSON out.
How:   Collects query parameters into a RouteRequest and delegates to
       VroomService. Errors propagate to the global exception handlers;
       anything that is not already a VroomApiError is wrapped in
       UnclassifiedError first.

Request Flow:
    1. FastAPI parses repeated `loc` params and the three boolean flags
    2. VroomService checks the binary and the location count
    3. VroomService runs VROOM and parses its output
    4. The parsed document is returned as-is with HTTP 200

Example:
    GET /route?loc=2.35,48.85&loc=2.29,48.86&endAtLast=true&includeGeometry=true
"""

import logging
from typing import List

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse

from vroom_api.exceptions import UnclassifiedError, VroomApiError
from vroom_api.schemas.route import RequestError, RouteRequest
from vroom_api.services.vroom_service import VroomService, get_vroom_service

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Route"])


@router.get(
    "/route",
    response_class=JSONResponse,
    responses={
        200: {"description": "VROOM solution document, passed through unchanged"},
        400: {"description": "Invalid request, unusable binary or bad VROOM output", "model": RequestError},
    },
    summary="Optimize a route through the given locations",
    description=(
        "Runs the VROOM binary for the supplied 'lon,lat' locations and returns its "
        "JSON output verbatim. At least two locations are required."
    ),
)
async def route(
    loc: List[str] = Query(
        default=[],
        description="Location as 'longitude,latitude'; repeat for each stop",
    ),
    start_at_first: bool = Query(
        default=True,
        alias="startAtFirst",
        description="Start the route at the first location",
    ),
    end_at_last: bool = Query(
        default=False,
        alias="endAtLast",
        description="End the route at the last location",
    ),
    include_geometry: bool = Query(
        default=False,
        alias="includeGeometry",
        description="Include route geometry in the output",
    ),
    service: VroomService = Depends(get_vroom_service),
) -> JSONResponse:
    request = RouteRequest(
        locations=loc,
        start_at_first=start_at_first,
        end_at_last=end_at_last,
        include_geometry=include_geometry,
    )
    logger.debug("Route request with %d locations", len(request.locations))

    try:
        document = await service.solve(request)
        return JSONResponse(content=document)
    except VroomApiError:
        raise
    except Exception as e:
        # Handled inside the middleware stack, so the response keeps its
        # X-Request-ID header and access-log line.
        raise UnclassifiedError(e) from e
