"""
Ride lifecycle (State Pattern).

    Pending ──> Started ──> Completed
       │
       ├──> Cancelled   (driver or admin)
       └──> Blocked     (admin)

Only ``Pending`` rides accept new joins, leaves and schedule edits.
A passenger leaving is a roster change, not a ride transition.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from .enums import RIDE_TRANSITIONS, RideStatus
from .errors import InvalidTransition

if TYPE_CHECKING:
    from .entities import RideOffer

logger = logging.getLogger(__name__)


def can_transition(current: RideStatus, new_status: RideStatus) -> bool:
    return new_status in RIDE_TRANSITIONS.get(current, set())


def transition(ride: RideOffer, new_status: RideStatus) -> None:
    """Move *ride* to *new_status* if the transition is legal, else raise."""
    if not can_transition(ride.status, new_status):
        raise InvalidTransition(
            f"Cannot transition ride {ride.id} from {ride.status.value} "
            f"to {new_status.value}"
        )
    logger.info(
        "Ride %s: %s -> %s", ride.id, ride.status.value, new_status.value
    )
    ride.status = new_status


def is_terminal(status: RideStatus) -> bool:
    return not RIDE_TRANSITIONS.get(status)


def accepts_changes(ride: RideOffer) -> bool:
    return ride.status == RideStatus.PENDING


def require_pending(ride: RideOffer, action: str) -> None:
    """Guard for joins, leaves and edits: raise unless the ride is Pending."""
    if not accepts_changes(ride):
        raise InvalidTransition(
            f"Cannot {action} ride {ride.id} in status {ride.status.value}"
        )


def start(ride: RideOffer) -> None:
    transition(ride, RideStatus.STARTED)


def complete(ride: RideOffer) -> None:
    transition(ride, RideStatus.COMPLETED)


def cancel(ride: RideOffer) -> None:
    transition(ride, RideStatus.CANCELLED)


def block(ride: RideOffer) -> None:
    transition(ride, RideStatus.BLOCKED)
