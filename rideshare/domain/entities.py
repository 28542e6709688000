"""
Domain entities.

Patterns used
-------------
- **State Pattern** on ``RideOffer``: status changes go through
  ``transition_to`` which enforces the lifecycle in ``lifecycle.py``.
- The roster is three parallel collections keyed by passenger id:
  ``passengers`` (join order), ``pickup_points`` and ``dropoff_points``.
  Seat bookkeeping lives in ``capacity.py``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, time
from typing import Optional

from .enums import RideStatus
from .lifecycle import transition
from .location import Location


@dataclass
class Vehicle:
    id: Optional[int] = None
    owner_id: int = 0
    name: str = ""
    mileage: float = 1.0


@dataclass
class RideOffer:
    id: Optional[int] = None
    driver_id: int = 0
    vehicle_id: int = 0
    departure_date: Optional[date] = None
    departure_time: Optional[time] = None
    start_point: Location = field(default_factory=lambda: Location(0, 0))
    end_point: Location = field(default_factory=lambda: Location(0, 0))
    route_geometry: Optional[str] = None

    # Fare snapshot, computed once at creation
    distance_km: float = 0.0
    fuel_price: float = 0.0
    total_fuel_cost: float = 0.0
    cost_per_person: float = 0.0
    platform_fee: float = 0.0
    total_people: int = 1

    passengers: list[int] = field(default_factory=list)
    pickup_points: dict[int, Location] = field(default_factory=dict)
    dropoff_points: dict[int, Location] = field(default_factory=dict)

    status: RideStatus = RideStatus.PENDING
    h3_cell: Optional[str] = None
    created_at: Optional[datetime] = None

    def transition_to(self, new_status: RideStatus) -> None:
        """Move to *new_status* if the transition is legal, else raise."""
        transition(self, new_status)

    def has_passenger(self, passenger_id: int) -> bool:
        return passenger_id in self.passengers
