"""
Exception hierarchy shared by the domain core and the service layer.

Eligibility denials are *not* exceptions; see ``eligibility.py``.
"""


class RideError(Exception):
    """Base class for every error raised by this package."""


class InvalidInput(RideError):
    """Malformed numeric or location parameters supplied by the caller."""


class InvalidTransition(RideError):
    """Raised when a ride status change violates the state machine."""


class CapacityExceeded(RideError):
    """A passenger was added to a ride with no free seat left."""


class PassengerNotFound(RideError):
    """The passenger is not on the ride's roster."""


class NotFound(RideError):
    """A ride, vehicle, user or payment order does not exist."""


class PaymentVerificationFailed(RideError):
    """The gateway rejected the payment signature or the order mismatched."""


class RideLocked(RideError):
    """The ride-scoped lock could not be acquired within the retry budget."""


class PermissionDenied(RideError):
    """The caller is not allowed to act on this ride (e.g. not its driver)."""


class JoinDenied(RideError):
    """A paid join was rejected when re-checked under the ride lock."""

    def __init__(self, result):
        self.result = result
        super().__init__(f"Join denied: {result.reason_code.value}")
