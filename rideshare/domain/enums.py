"""Domain enumerations and state-transition rules."""

import enum


class RideStatus(str, enum.Enum):
    PENDING = "Pending"
    STARTED = "Started"
    COMPLETED = "Completed"
    CANCELLED = "Cancelled"
    BLOCKED = "Blocked"


# State machine: maps current status -> set of valid next statuses
RIDE_TRANSITIONS: dict[RideStatus, set[RideStatus]] = {
    RideStatus.PENDING: {
        RideStatus.STARTED,
        RideStatus.CANCELLED,
        RideStatus.BLOCKED,
    },
    RideStatus.STARTED: {RideStatus.COMPLETED},
    RideStatus.COMPLETED: set(),
    RideStatus.CANCELLED: set(),
    RideStatus.BLOCKED: set(),
}


class ReasonCode(str, enum.Enum):
    OK = "OK"
    RIDE_NOT_PENDING = "RIDE_NOT_PENDING"
    RIDE_FULL = "RIDE_FULL"
    USER_NOT_VERIFIED = "USER_NOT_VERIFIED"
    ALREADY_JOINED = "ALREADY_JOINED"
    INVALID_LOCATION = "INVALID_LOCATION"


# Identity provider statuses are opaque; only this value grants joining.
VERIFIED = "Verified"


class PaymentStatus(str, enum.Enum):
    CREATED = "CREATED"
    PAID = "PAID"
    REFUND_DUE = "REFUND_DUE"
