"""
Join eligibility.

A single pure decision combining identity verification, ride status,
location validity and seat availability.  Checks run in a fixed order so
that legitimacy problems are reported before availability ones: an
unverified user asking to join a full ride hears ``USER_NOT_VERIFIED``,
not ``RIDE_FULL``.

    1. USER_NOT_VERIFIED
    2. RIDE_NOT_PENDING
    3. INVALID_LOCATION
    4. ALREADY_JOINED
    5. RIDE_FULL
    6. OK

Denials are returned as values; "not eligible" is a normal outcome.
"""

from __future__ import annotations

from dataclasses import dataclass

from .capacity import can_add_passenger
from .entities import RideOffer
from .enums import VERIFIED, ReasonCode
from .lifecycle import accepts_changes
from .location import is_valid_location


@dataclass(frozen=True)
class EligibilityResult:
    allowed: bool
    reason_code: ReasonCode

    @classmethod
    def ok(cls) -> EligibilityResult:
        return cls(True, ReasonCode.OK)

    @classmethod
    def deny(cls, reason: ReasonCode) -> EligibilityResult:
        return cls(False, reason)


def evaluate_join(
    ride: RideOffer,
    passenger_id: int,
    verification_status: str,
    pickup_location: str,
    dropoff_location: str,
) -> EligibilityResult:
    if verification_status != VERIFIED:
        return EligibilityResult.deny(ReasonCode.USER_NOT_VERIFIED)
    if not accepts_changes(ride):
        return EligibilityResult.deny(ReasonCode.RIDE_NOT_PENDING)
    if not (
        is_valid_location(pickup_location) and is_valid_location(dropoff_location)
    ):
        return EligibilityResult.deny(ReasonCode.INVALID_LOCATION)
    if ride.has_passenger(passenger_id):
        return EligibilityResult.deny(ReasonCode.ALREADY_JOINED)
    if not can_add_passenger(ride, passenger_id):
        return EligibilityResult.deny(ReasonCode.RIDE_FULL)
    return EligibilityResult.ok()
