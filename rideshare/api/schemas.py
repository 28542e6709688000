"""Pydantic request / response schemas for the REST API."""

from __future__ import annotations

from datetime import date, datetime, time
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from rideshare.domain import capacity
from rideshare.domain.eligibility import EligibilityResult
from rideshare.domain.entities import RideOffer
from rideshare.domain.errors import InvalidInput
from rideshare.domain.fare import format_amount
from rideshare.domain.location import parse_location
from rideshare.domain.search import RideMatch


# ── Requests ──────────────────────────────────────────────────────────


class RideCreateRequest(BaseModel):
    driver_id: int
    vehicle_id: int
    start_point: str = Field(..., description="Start as 'lat,lng'.")
    end_point: str = Field(..., description="End as 'lat,lng'.")
    distance_km: float = Field(..., ge=0)
    fuel_price: float = Field(..., ge=0, description="Price per unit of fuel.")
    passenger_count: int = Field(..., ge=0, le=10)
    departure_date: Optional[date] = None
    departure_time: Optional[time] = None
    route_geometry: Optional[str] = None

    @field_validator("start_point", "end_point")
    @classmethod
    def _check_location(cls, value: str) -> str:
        try:
            parse_location(value)
        except InvalidInput as exc:
            raise ValueError(str(exc)) from exc
        return value


class JoinRequest(BaseModel):
    """Pickup / drop-off are validated by the eligibility check, not here."""

    passenger_id: int
    pickup_location: str
    dropoff_location: str


class JoinVerifyRequest(JoinRequest):
    order_id: str = Field(..., max_length=64)
    payment_id: str = Field(..., max_length=64)
    signature: str = Field(..., max_length=256)


class PassengerRequest(BaseModel):
    passenger_id: int


class DriverActionRequest(BaseModel):
    driver_id: int


class RescheduleRequest(DriverActionRequest):
    departure_date: Optional[date] = None
    departure_time: Optional[time] = None


# ── Responses ─────────────────────────────────────────────────────────


class PassengerStop(BaseModel):
    passenger_id: int
    pickup: Optional[str] = None
    dropoff: Optional[str] = None


class RideResponse(BaseModel):
    id: int
    driver_id: int
    vehicle_id: int
    departure_date: Optional[date] = None
    departure_time: Optional[time] = None
    start_point: str
    end_point: str
    distance_km: float
    fuel_price: float
    total_fuel_cost: float
    cost_per_person: float
    cost_per_person_display: str
    platform_fee: float
    total_people: int
    available_seats: int
    passengers: list[int] = []
    stops: list[PassengerStop] = []
    status: str
    created_at: Optional[datetime] = None

    @classmethod
    def from_entity(cls, ride: RideOffer) -> RideResponse:
        stops = [
            PassengerStop(
                passenger_id=pid,
                pickup=str(ride.pickup_points[pid]) if pid in ride.pickup_points else None,
                dropoff=str(ride.dropoff_points[pid]) if pid in ride.dropoff_points else None,
            )
            for pid in ride.passengers
        ]
        return cls(
            id=ride.id,
            driver_id=ride.driver_id,
            vehicle_id=ride.vehicle_id,
            departure_date=ride.departure_date,
            departure_time=ride.departure_time,
            start_point=str(ride.start_point),
            end_point=str(ride.end_point),
            distance_km=ride.distance_km,
            fuel_price=ride.fuel_price,
            total_fuel_cost=ride.total_fuel_cost,
            cost_per_person=ride.cost_per_person,
            cost_per_person_display=format_amount(ride.cost_per_person),
            platform_fee=ride.platform_fee,
            total_people=ride.total_people,
            available_seats=capacity.available_seats(ride),
            passengers=list(ride.passengers),
            stops=stops,
            status=ride.status.value,
            created_at=ride.created_at,
        )


class NearbyRideResponse(BaseModel):
    ride: RideResponse
    pickup_distance_km: float
    dropoff_distance_km: float

    @classmethod
    def from_match(cls, match: RideMatch) -> NearbyRideResponse:
        return cls(
            ride=RideResponse.from_entity(match.ride),
            pickup_distance_km=match.pickup_distance_km,
            dropoff_distance_km=match.dropoff_distance_km,
        )


class EligibilityResponse(BaseModel):
    allowed: bool
    reason_code: str

    @classmethod
    def from_result(cls, result: EligibilityResult) -> EligibilityResponse:
        return cls(allowed=result.allowed, reason_code=result.reason_code.value)


class JoinOrderResponse(BaseModel):
    order_id: str
    ride_id: int
    passenger_id: int
    amount: float
    amount_display: str
    currency: str
    key_id: Optional[str] = None


class PlacesResponse(BaseModel):
    start: str
    end: str


class HealthResponse(BaseModel):
    status: str = "ok"


class ErrorResponse(BaseModel):
    detail: str
