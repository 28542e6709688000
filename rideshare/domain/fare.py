"""
Fuel Cost-Sharing Calculator
============================

Formula
-------
fuel_needed     = distance_km / mileage
total_fuel_cost = fuel_needed x fuel_price
total_people    = passenger_count + 1          (the driver shares the cost)
cost_per_person = total_fuel_cost / total_people

* Values are kept at full precision.  Rounding to 2 decimals is a display
  concern only (``format_amount``); stored amounts are never rounded.
* **Platform fee** is charged to the driver at ride creation:
  ``ceil(total_fuel_cost x rate)`` without a subscription, 0 with one.
  It is not part of the passenger split.

Complexity: O(1) per calculation.
"""

from __future__ import annotations

import math
from abc import ABC, abstractmethod
from dataclasses import dataclass

from .errors import InvalidInput


@dataclass(frozen=True)
class Fare:
    distance_km: float
    fuel_needed: float
    total_fuel_cost: float
    cost_per_person: float
    total_people: int

    def display(self) -> dict[str, str]:
        return {
            "total_fuel_cost": format_amount(self.total_fuel_cost),
            "cost_per_person": format_amount(self.cost_per_person),
        }


def format_amount(value: float) -> str:
    """Render an amount with 2 decimals for display."""
    return f"{value:.2f}"


def _require_number(name: str, value: float, *, positive: bool = False) -> None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise InvalidInput(f"{name} must be a number, got {value!r}")
    if not math.isfinite(value):
        raise InvalidInput(f"{name} must be finite, got {value!r}")
    if positive and value <= 0:
        raise InvalidInput(f"{name} must be > 0, got {value!r}")
    if value < 0:
        raise InvalidInput(f"{name} must be >= 0, got {value!r}")


def compute_fare(
    distance_km: float,
    mileage_km_per_unit: float,
    fuel_price_per_unit: float,
    passenger_count: int,
) -> Fare:
    """Split the fuel cost of a trip evenly between driver and passengers."""
    _require_number("distance_km", distance_km)
    _require_number("mileage_km_per_unit", mileage_km_per_unit, positive=True)
    _require_number("fuel_price_per_unit", fuel_price_per_unit)
    if isinstance(passenger_count, bool) or not isinstance(passenger_count, int):
        raise InvalidInput(
            f"passenger_count must be an integer, got {passenger_count!r}"
        )
    if passenger_count < 0:
        raise InvalidInput(f"passenger_count must be >= 0, got {passenger_count}")

    fuel_needed = distance_km / mileage_km_per_unit
    total_fuel_cost = fuel_needed * fuel_price_per_unit
    total_people = passenger_count + 1
    return Fare(
        distance_km=float(distance_km),
        fuel_needed=fuel_needed,
        total_fuel_cost=total_fuel_cost,
        cost_per_person=total_fuel_cost / total_people,
        total_people=total_people,
    )


# ── Platform fee strategies ───────────────────────────────────────────


class PlatformFeePolicy(ABC):
    @abstractmethod
    def fee(self, total_fuel_cost: float) -> float: ...


class StandardPlatformFee(PlatformFeePolicy):
    def __init__(self, rate: float = 0.10):
        self.rate = rate

    def fee(self, total_fuel_cost: float) -> float:
        return float(math.ceil(total_fuel_cost * self.rate))


class SubscriberPlatformFee(PlatformFeePolicy):
    """Subscribed drivers ride fee-free."""

    def fee(self, total_fuel_cost: float) -> float:
        return 0.0


# ── Calculator facade ─────────────────────────────────────────────────


@dataclass(frozen=True)
class FareQuote:
    fare: Fare
    platform_fee: float


class FareCalculator:
    """High-level API used by the ride service at creation time."""

    def __init__(self, platform_fee_rate: float = 0.10):
        if not 0 <= platform_fee_rate <= 1:
            raise InvalidInput(
                f"platform_fee_rate must be within [0, 1], got {platform_fee_rate}"
            )
        self.platform_fee_rate = platform_fee_rate

    def fee_policy(self, subscribed: bool) -> PlatformFeePolicy:
        if subscribed:
            return SubscriberPlatformFee()
        return StandardPlatformFee(self.platform_fee_rate)

    def quote(
        self,
        distance_km: float,
        mileage_km_per_unit: float,
        fuel_price_per_unit: float,
        passenger_count: int,
        subscribed: bool = False,
    ) -> FareQuote:
        fare = compute_fare(
            distance_km, mileage_km_per_unit, fuel_price_per_unit, passenger_count
        )
        fee = self.fee_policy(subscribed).fee(fare.total_fuel_cost)
        return FareQuote(fare=fare, platform_fee=fee)
