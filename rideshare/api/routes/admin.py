"""
Admin / observability endpoints
===============================

GET   /api/v1/admin/rides                  -- list every ride
PATCH /api/v1/admin/rides/{ride_id}/block  -- block a pending ride
PATCH /api/v1/admin/rides/{ride_id}/cancel -- cancel a pending ride
GET   /api/v1/admin/health                 -- simple health check
"""

from fastapi import APIRouter, Depends, Request

from rideshare.api.dependencies import get_ride_service
from rideshare.api.middleware import limiter
from rideshare.api.schemas import ErrorResponse, HealthResponse, RideResponse
from rideshare.services.rides import RideService

router = APIRouter(
    prefix="/admin",
    tags=["admin"],
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)


@router.get(
    "/rides",
    response_model=list[RideResponse],
    summary="List all rides",
)
@limiter.limit("100/minute")
async def list_rides(
    request: Request,
    service: RideService = Depends(get_ride_service),
):
    return [RideResponse.from_entity(r) for r in await service.list_rides()]


@router.patch(
    "/rides/{ride_id}/block",
    response_model=RideResponse,
    summary="Block a ride",
)
@limiter.limit("100/minute")
async def block_ride(
    request: Request,
    ride_id: int,
    service: RideService = Depends(get_ride_service),
):
    return RideResponse.from_entity(await service.block_ride(ride_id))


@router.patch(
    "/rides/{ride_id}/cancel",
    response_model=RideResponse,
    summary="Cancel a ride on the driver's behalf",
)
@limiter.limit("100/minute")
async def cancel_ride(
    request: Request,
    ride_id: int,
    service: RideService = Depends(get_ride_service),
):
    return RideResponse.from_entity(await service.admin_cancel_ride(ride_id))


@router.get("/health", response_model=HealthResponse, summary="Health check")
async def health():
    return HealthResponse()
