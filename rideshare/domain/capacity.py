"""
Seat bookkeeping for a ride.

The driver occupies one of ``total_people`` seats, so a ride holds at
most ``total_people - 1`` passengers.  ``available_seats`` clamps at zero
instead of raising when a roster is already over capacity; that case is
logged as a data-integrity problem for upstream to repair.

Callers must hold the ride lock around ``can_add_passenger`` +
``add_passenger`` (see ``RideService.confirm_join``).
"""

from __future__ import annotations

import logging

from .entities import RideOffer
from .errors import CapacityExceeded, PassengerNotFound
from .location import Location

logger = logging.getLogger(__name__)


def available_seats(ride: RideOffer) -> int:
    free = ride.total_people - 1 - len(ride.passengers)
    if free < 0:
        logger.warning(
            "Ride %s roster over capacity: %d passengers, total_people=%d",
            ride.id,
            len(ride.passengers),
            ride.total_people,
        )
    return max(0, free)


def is_full(ride: RideOffer) -> bool:
    return available_seats(ride) == 0


def can_add_passenger(ride: RideOffer, passenger_id: int) -> bool:
    if available_seats(ride) == 0:
        return False
    return not ride.has_passenger(passenger_id)


def add_passenger(
    ride: RideOffer, passenger_id: int, pickup: Location, dropoff: Location
) -> None:
    if not can_add_passenger(ride, passenger_id):
        raise CapacityExceeded(
            f"Cannot add passenger {passenger_id} to ride {ride.id}: "
            f"{available_seats(ride)} seats left"
        )
    ride.passengers.append(passenger_id)
    ride.pickup_points[passenger_id] = pickup
    ride.dropoff_points[passenger_id] = dropoff


def remove_passenger(ride: RideOffer, passenger_id: int) -> None:
    if not ride.has_passenger(passenger_id):
        raise PassengerNotFound(
            f"Passenger {passenger_id} is not on ride {ride.id}"
        )
    ride.passengers.remove(passenger_id)
    ride.pickup_points.pop(passenger_id, None)
    ride.dropoff_points.pop(passenger_id, None)
