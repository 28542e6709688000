"""
Ride endpoints
==============

POST  /api/v1/rides                       -- driver offers a ride (201)
GET   /api/v1/rides/nearby                -- pending rides near a pickup/destination
GET   /api/v1/rides/{ride_id}             -- ride details, fare and seats
GET   /api/v1/rides/{ride_id}/places      -- reverse-geocoded start / end names
POST  /api/v1/rides/{ride_id}/eligibility -- may this passenger join?
POST  /api/v1/rides/{ride_id}/join/order  -- eligibility + payment order
POST  /api/v1/rides/{ride_id}/join/verify -- verify payment and join
PATCH /api/v1/rides/{ride_id}/leave       -- passenger leaves the roster
PATCH /api/v1/rides/{ride_id}/schedule    -- driver edits date / time
PATCH /api/v1/rides/{ride_id}/start       -- driver starts the trip
PATCH /api/v1/rides/{ride_id}/complete    -- driver completes the trip
PATCH /api/v1/rides/{ride_id}/cancel      -- driver cancels the ride
"""

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import JSONResponse

from rideshare.api.dependencies import get_ride_service
from rideshare.api.middleware import limiter
from rideshare.api.schemas import (
    DriverActionRequest,
    EligibilityResponse,
    ErrorResponse,
    JoinOrderResponse,
    JoinRequest,
    JoinVerifyRequest,
    NearbyRideResponse,
    PassengerRequest,
    PlacesResponse,
    RescheduleRequest,
    RideCreateRequest,
    RideResponse,
)
from rideshare.config import settings
from rideshare.domain.fare import format_amount
from rideshare.services.rides import RideService

router = APIRouter(
    prefix="/rides",
    tags=["rides"],
    responses={
        402: {"model": ErrorResponse},
        403: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        423: {"model": ErrorResponse},
    },
)


@router.post(
    "",
    status_code=201,
    response_model=RideResponse,
    summary="Offer a ride",
    description=(
        "Computes the fuel cost split and platform fee once and stores "
        "them with the ride.  Later joins do not change the split."
    ),
)
@limiter.limit("100/minute")
async def create_ride(
    request: Request,
    body: RideCreateRequest,
    service: RideService = Depends(get_ride_service),
):
    ride = await service.create_ride(**body.model_dump())
    return RideResponse.from_entity(ride)


@router.get(
    "/nearby",
    response_model=list[NearbyRideResponse],
    summary="Find joinable rides near a pickup and destination",
)
@limiter.limit("100/minute")
async def find_nearby_rides(
    request: Request,
    pickup: str = Query(..., description="Pickup as 'lat,lng'."),
    destination: str = Query(..., description="Destination as 'lat,lng'."),
    service: RideService = Depends(get_ride_service),
):
    matches = await service.find_nearby_rides(pickup, destination)
    return [NearbyRideResponse.from_match(m) for m in matches]


@router.get("/{ride_id}", response_model=RideResponse, summary="Get a ride")
@limiter.limit("100/minute")
async def get_ride(
    request: Request,
    ride_id: int,
    service: RideService = Depends(get_ride_service),
):
    return RideResponse.from_entity(await service.get_ride(ride_id))


@router.get(
    "/{ride_id}/places",
    response_model=PlacesResponse,
    summary="Display names of the start and end points",
)
@limiter.limit("100/minute")
async def get_places(
    request: Request,
    ride_id: int,
    service: RideService = Depends(get_ride_service),
):
    return PlacesResponse(**await service.describe_places(ride_id))


# ── Joining ───────────────────────────────────────────────────────────


@router.post(
    "/{ride_id}/eligibility",
    response_model=EligibilityResponse,
    summary="Check whether a passenger may join",
)
@limiter.limit("100/minute")
async def check_eligibility(
    request: Request,
    ride_id: int,
    body: JoinRequest,
    service: RideService = Depends(get_ride_service),
):
    result = await service.check_join(
        ride_id, body.passenger_id, body.pickup_location, body.dropoff_location
    )
    return EligibilityResponse.from_result(result)


@router.post(
    "/{ride_id}/join/order",
    response_model=JoinOrderResponse,
    summary="Create a payment order for joining",
    responses={409: {"model": EligibilityResponse}},
)
@limiter.limit("100/minute")
async def create_join_order(
    request: Request,
    ride_id: int,
    body: JoinRequest,
    service: RideService = Depends(get_ride_service),
):
    outcome = await service.create_join_order(
        ride_id, body.passenger_id, body.pickup_location, body.dropoff_location
    )
    if outcome.order is None:
        return JSONResponse(
            status_code=409,
            content=EligibilityResponse.from_result(outcome.eligibility).model_dump(),
        )
    order = outcome.order
    return JoinOrderResponse(
        order_id=order.order_ref,
        ride_id=order.ride_id,
        passenger_id=order.passenger_id,
        amount=order.amount,
        amount_display=format_amount(order.amount),
        currency=order.currency,
        key_id=settings.razorpay_key_id or None,
    )


@router.post(
    "/{ride_id}/join/verify",
    response_model=RideResponse,
    summary="Verify the payment and join the ride",
)
@limiter.limit("100/minute")
async def verify_and_join(
    request: Request,
    ride_id: int,
    body: JoinVerifyRequest,
    service: RideService = Depends(get_ride_service),
):
    ride = await service.confirm_join(
        ride_id,
        body.passenger_id,
        order_ref=body.order_id,
        payment_id=body.payment_id,
        signature=body.signature,
        pickup=body.pickup_location,
        dropoff=body.dropoff_location,
    )
    return RideResponse.from_entity(ride)


@router.patch(
    "/{ride_id}/leave",
    response_model=RideResponse,
    summary="Leave a joined ride",
)
@limiter.limit("100/minute")
async def leave_ride(
    request: Request,
    ride_id: int,
    body: PassengerRequest,
    service: RideService = Depends(get_ride_service),
):
    return RideResponse.from_entity(
        await service.leave_ride(ride_id, body.passenger_id)
    )


# ── Driver actions ────────────────────────────────────────────────────


@router.patch(
    "/{ride_id}/schedule",
    response_model=RideResponse,
    summary="Change the departure date / time of a pending ride",
)
@limiter.limit("100/minute")
async def reschedule_ride(
    request: Request,
    ride_id: int,
    body: RescheduleRequest,
    service: RideService = Depends(get_ride_service),
):
    ride = await service.reschedule_ride(
        ride_id, body.driver_id, body.departure_date, body.departure_time
    )
    return RideResponse.from_entity(ride)


@router.patch("/{ride_id}/start", response_model=RideResponse, summary="Start a ride")
@limiter.limit("100/minute")
async def start_ride(
    request: Request,
    ride_id: int,
    body: DriverActionRequest,
    service: RideService = Depends(get_ride_service),
):
    return RideResponse.from_entity(await service.start_ride(ride_id, body.driver_id))


@router.patch(
    "/{ride_id}/complete", response_model=RideResponse, summary="Complete a ride"
)
@limiter.limit("100/minute")
async def complete_ride(
    request: Request,
    ride_id: int,
    body: DriverActionRequest,
    service: RideService = Depends(get_ride_service),
):
    return RideResponse.from_entity(
        await service.complete_ride(ride_id, body.driver_id)
    )


@router.patch(
    "/{ride_id}/cancel",
    response_model=RideResponse,
    summary="Cancel a ride",
    description="Only PENDING rides can be cancelled, and only by their driver.",
)
@limiter.limit("100/minute")
async def cancel_ride(
    request: Request,
    ride_id: int,
    body: DriverActionRequest,
    service: RideService = Depends(get_ride_service),
):
    return RideResponse.from_entity(await service.cancel_ride(ride_id, body.driver_id))
