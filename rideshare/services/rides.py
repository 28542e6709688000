"""
Ride Service
============

Composes the pure domain core with persistence, the ride lock, the
payment gateway and the geocoder.  Route handlers call this and nothing
else.

Join flow
---------
1. ``create_join_order`` -- eligibility check, then a gateway order for the
   passenger's ``cost_per_person``.
2. ``confirm_join``      -- verify the payment signature, then under the
   ride lock: re-read the ride and the order (FOR UPDATE), re-evaluate
   eligibility, ``add_passenger``, save and commit.  The lock spans the
   whole read-check-write so two concurrent joins cannot both take the
   last seat, and a repeated confirmation of a settled order is answered
   with the ride instead of a refund.

Every other roster or status mutation uses the same lock via ``_mutate``.
Commits happen inside the lock, before it is released.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, time
from typing import AsyncContextManager, Callable, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from rideshare.domain import capacity, lifecycle
from rideshare.domain.eligibility import EligibilityResult, evaluate_join
from rideshare.domain.entities import RideOffer
from rideshare.domain.enums import PaymentStatus, ReasonCode
from rideshare.domain.errors import (
    CapacityExceeded,
    InvalidInput,
    JoinDenied,
    NotFound,
    PaymentVerificationFailed,
    PermissionDenied,
)
from rideshare.domain.fare import FareCalculator
from rideshare.domain.location import parse_location
from rideshare.domain.search import RideMatch, candidate_cells, rank_rides, ride_h3_cell
from rideshare.infrastructure.geocoding import Geocoder
from rideshare.infrastructure.payments import PaymentGateway
from rideshare.infrastructure.repositories import (
    PaymentOrderRepository,
    RideRepository,
    UserRepository,
    VehicleRepository,
)

logger = logging.getLogger(__name__)

LockFactory = Callable[[int], AsyncContextManager]


@dataclass(frozen=True)
class JoinOrder:
    order_ref: str
    ride_id: int
    passenger_id: int
    amount: float
    currency: str


@dataclass(frozen=True)
class JoinOrderResult:
    eligibility: EligibilityResult
    order: Optional[JoinOrder] = None


class RideService:
    def __init__(
        self,
        session: AsyncSession,
        lock_for: LockFactory,
        gateway: Optional[PaymentGateway] = None,
        geocoder: Optional[Geocoder] = None,
        calculator: Optional[FareCalculator] = None,
        *,
        currency: str = "INR",
        h3_resolution: int = 7,
        search_ring_size: int = 2,
        search_radius_km: float = 10.0,
    ):
        self.session = session
        self.lock_for = lock_for
        self.gateway = gateway
        self.geocoder = geocoder
        self.calculator = calculator or FareCalculator()
        self.currency = currency
        self.h3_resolution = h3_resolution
        self.search_ring_size = search_ring_size
        self.search_radius_km = search_radius_km

        self.rides = RideRepository(session)
        self.vehicles = VehicleRepository(session)
        self.users = UserRepository(session)
        self.orders = PaymentOrderRepository(session)

    # ── Queries ───────────────────────────────────────────────────────

    async def get_ride(self, ride_id: int) -> RideOffer:
        ride = await self.rides.get(ride_id)
        if ride is None:
            raise NotFound(f"Ride {ride_id} not found")
        return ride

    async def list_rides(self) -> list[RideOffer]:
        return await self.rides.list_all()

    async def find_nearby_rides(self, pickup: str, destination: str) -> list[RideMatch]:
        origin = parse_location(pickup)
        target = parse_location(destination)
        cells = candidate_cells(origin, self.h3_resolution, self.search_ring_size)
        rides = await self.rides.list_pending_in_cells(cells)
        return rank_rides(rides, origin, target, self.search_radius_km)

    async def describe_places(self, ride_id: int) -> dict[str, str]:
        ride = await self.get_ride(ride_id)
        if self.geocoder is None:
            return {"start": str(ride.start_point), "end": str(ride.end_point)}
        start = await self.geocoder.reverse_geocode(
            ride.start_point.latitude, ride.start_point.longitude
        )
        end = await self.geocoder.reverse_geocode(
            ride.end_point.latitude, ride.end_point.longitude
        )
        return {"start": start, "end": end}

    # ── Ride creation ─────────────────────────────────────────────────

    async def create_ride(
        self,
        *,
        driver_id: int,
        vehicle_id: int,
        start_point: str,
        end_point: str,
        distance_km: float,
        fuel_price: float,
        passenger_count: int,
        departure_date: Optional[date] = None,
        departure_time: Optional[time] = None,
        route_geometry: Optional[str] = None,
    ) -> RideOffer:
        vehicle = await self.vehicles.get(vehicle_id)
        if vehicle is None:
            raise NotFound(f"Vehicle {vehicle_id} not found")
        if vehicle.owner_id != driver_id:
            raise PermissionDenied(
                f"Vehicle {vehicle_id} does not belong to driver {driver_id}"
            )

        start = parse_location(start_point)
        end = parse_location(end_point)
        subscribed = await self.users.is_subscribed(driver_id)
        quote = self.calculator.quote(
            distance_km, vehicle.mileage, fuel_price, passenger_count, subscribed
        )

        ride = RideOffer(
            driver_id=driver_id,
            vehicle_id=vehicle_id,
            departure_date=departure_date,
            departure_time=departure_time,
            start_point=start,
            end_point=end,
            route_geometry=route_geometry,
            distance_km=quote.fare.distance_km,
            fuel_price=float(fuel_price),
            total_fuel_cost=quote.fare.total_fuel_cost,
            cost_per_person=quote.fare.cost_per_person,
            platform_fee=quote.platform_fee,
            total_people=quote.fare.total_people,
            h3_cell=ride_h3_cell(start, self.h3_resolution),
        )
        ride = await self.rides.add(ride)
        await self.session.commit()
        logger.info(
            "Ride %s created by driver %s: %.2f km, %d seats, fee %.2f",
            ride.id,
            driver_id,
            ride.distance_km,
            ride.total_people - 1,
            ride.platform_fee,
        )
        return ride

    # ── Joining ───────────────────────────────────────────────────────

    async def check_join(
        self, ride_id: int, passenger_id: int, pickup: str, dropoff: str
    ) -> EligibilityResult:
        ride = await self.get_ride(ride_id)
        self._require_not_driver(ride, passenger_id)
        status = await self.users.get_verification_status(passenger_id)
        return evaluate_join(ride, passenger_id, status, pickup, dropoff)

    async def create_join_order(
        self, ride_id: int, passenger_id: int, pickup: str, dropoff: str
    ) -> JoinOrderResult:
        result = await self.check_join(ride_id, passenger_id, pickup, dropoff)
        if not result.allowed:
            return JoinOrderResult(result)

        ride = await self.get_ride(ride_id)
        order_ref = await self._gateway().create_order(
            ride.cost_per_person, self.currency, f"ride_{ride_id}_{passenger_id}"
        )
        await self.orders.create(
            order_ref=order_ref,
            ride_id=ride_id,
            passenger_id=passenger_id,
            amount=ride.cost_per_person,
            currency=self.currency,
        )
        await self.session.commit()
        return JoinOrderResult(
            result,
            JoinOrder(
                order_ref=order_ref,
                ride_id=ride_id,
                passenger_id=passenger_id,
                amount=ride.cost_per_person,
                currency=self.currency,
            ),
        )

    async def confirm_join(
        self,
        ride_id: int,
        passenger_id: int,
        *,
        order_ref: str,
        payment_id: str,
        signature: str,
        pickup: str,
        dropoff: str,
    ) -> RideOffer:
        order = await self.orders.get_by_ref(order_ref)
        if order is None or order.ride_id != ride_id or order.passenger_id != passenger_id:
            raise PaymentVerificationFailed(
                f"Order {order_ref} does not belong to this ride and passenger"
            )

        if order.status == PaymentStatus.PAID:
            ride = await self.get_ride(ride_id)
            if ride.has_passenger(passenger_id):
                return ride
        if order.status != PaymentStatus.CREATED:
            raise PaymentVerificationFailed(f"Order {order_ref} already settled")

        if not await self._gateway().verify_payment(order_ref, payment_id, signature):
            raise PaymentVerificationFailed(f"Invalid signature for order {order_ref}")

        status = await self.users.get_verification_status(passenger_id)

        async with self.lock_for(ride_id):
            ride = await self.rides.get_for_update(ride_id)
            if ride is None:
                raise NotFound(f"Ride {ride_id} not found")

            # A concurrent confirmation of the same order may have settled it
            order = await self.orders.get_for_update(order_ref)
            if order.status == PaymentStatus.PAID and ride.has_passenger(passenger_id):
                return ride
            if order.status != PaymentStatus.CREATED:
                raise PaymentVerificationFailed(f"Order {order_ref} already settled")
            self._require_not_driver(ride, passenger_id)

            result = evaluate_join(ride, passenger_id, status, pickup, dropoff)
            if not result.allowed:
                order.status = PaymentStatus.REFUND_DUE
                order.payment_id = payment_id
                await self.session.commit()
                logger.warning(
                    "Ride %s: paid join by %s rejected (%s), order %s due refund",
                    ride_id,
                    passenger_id,
                    result.reason_code.value,
                    order_ref,
                )
                if result.reason_code == ReasonCode.RIDE_FULL:
                    raise CapacityExceeded(f"Ride {ride_id} filled up before joining")
                raise JoinDenied(result)

            capacity.add_passenger(
                ride, passenger_id, parse_location(pickup), parse_location(dropoff)
            )
            await self.rides.save(ride)
            order.status = PaymentStatus.PAID
            order.payment_id = payment_id
            await self.session.commit()

        logger.info(
            "Passenger %s joined ride %s (%d seats left)",
            passenger_id,
            ride_id,
            capacity.available_seats(ride),
        )
        return ride

    async def leave_ride(self, ride_id: int, passenger_id: int) -> RideOffer:
        def leave(ride: RideOffer) -> None:
            lifecycle.require_pending(ride, "leave")
            capacity.remove_passenger(ride, passenger_id)

        ride = await self._mutate(ride_id, leave)
        logger.info("Passenger %s left ride %s", passenger_id, ride_id)
        return ride

    # ── Driver actions ────────────────────────────────────────────────

    async def reschedule_ride(
        self,
        ride_id: int,
        driver_id: int,
        departure_date: Optional[date],
        departure_time: Optional[time],
    ) -> RideOffer:
        if departure_date is None and departure_time is None:
            raise InvalidInput("Nothing to change: give a date, a time or both")

        def reschedule(ride: RideOffer) -> None:
            self._require_driver(ride, driver_id)
            lifecycle.require_pending(ride, "edit")
            if departure_date is not None:
                ride.departure_date = departure_date
            if departure_time is not None:
                ride.departure_time = departure_time

        return await self._mutate(ride_id, reschedule)

    async def start_ride(self, ride_id: int, driver_id: int) -> RideOffer:
        return await self._driver_transition(ride_id, driver_id, lifecycle.start)

    async def complete_ride(self, ride_id: int, driver_id: int) -> RideOffer:
        return await self._driver_transition(ride_id, driver_id, lifecycle.complete)

    async def cancel_ride(self, ride_id: int, driver_id: int) -> RideOffer:
        return await self._driver_transition(ride_id, driver_id, lifecycle.cancel)

    # ── Admin actions ─────────────────────────────────────────────────

    async def block_ride(self, ride_id: int) -> RideOffer:
        return await self._mutate(ride_id, lifecycle.block)

    async def admin_cancel_ride(self, ride_id: int) -> RideOffer:
        return await self._mutate(ride_id, lifecycle.cancel)

    # ── Internals ─────────────────────────────────────────────────────

    def _gateway(self) -> PaymentGateway:
        if self.gateway is None:
            raise RuntimeError("No payment gateway configured")
        return self.gateway

    @staticmethod
    def _require_driver(ride: RideOffer, driver_id: int) -> None:
        if ride.driver_id != driver_id:
            raise PermissionDenied(f"User {driver_id} is not the driver of ride {ride.id}")

    @staticmethod
    def _require_not_driver(ride: RideOffer, passenger_id: int) -> None:
        if ride.driver_id == passenger_id:
            raise PermissionDenied(f"Driver cannot join their own ride {ride.id}")

    async def _driver_transition(
        self, ride_id: int, driver_id: int, action: Callable[[RideOffer], None]
    ) -> RideOffer:
        def apply(ride: RideOffer) -> None:
            self._require_driver(ride, driver_id)
            action(ride)

        return await self._mutate(ride_id, apply)

    async def _mutate(
        self, ride_id: int, change: Callable[[RideOffer], None]
    ) -> RideOffer:
        """Lock the ride, re-read it, apply *change*, save and commit."""
        async with self.lock_for(ride_id):
            ride = await self.rides.get_for_update(ride_id)
            if ride is None:
                raise NotFound(f"Ride {ride_id} not found")
            change(ride)
            await self.rides.save(ride)
            await self.session.commit()
        return ride
