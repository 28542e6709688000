"""
Repository Pattern -- abstracts DB access so domain logic stays DB-agnostic.

Each repository receives an ``AsyncSession`` (unit-of-work) and exposes
domain-relevant queries only.  ``RideRepository`` is also the validated
boundary between loosely-shaped rows and the strict ``RideOffer`` the
domain works with: rows are normalised once here and nowhere else.
"""

from __future__ import annotations

from typing import Iterable, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from .models import PaymentOrderModel, RideModel, UserModel, VehicleModel
from rideshare.domain.entities import RideOffer, Vehicle
from rideshare.domain.enums import PaymentStatus, RideStatus
from rideshare.domain.errors import NotFound
from rideshare.domain.location import Location, parse_location


# ── Row <-> entity mapping ────────────────────────────────────────────


def _points_from_row(raw: Optional[list]) -> dict[int, Location]:
    return {
        int(item["passenger_id"]): parse_location(item["location"])
        for item in raw or []
    }


def _points_to_row(
    passengers: list[int], points: dict[int, Location]
) -> list[dict]:
    return [
        {"passenger_id": pid, "location": str(points[pid])}
        for pid in passengers
        if pid in points
    ]


def ride_to_entity(row: RideModel) -> RideOffer:
    return RideOffer(
        id=row.id,
        driver_id=row.driver_id,
        vehicle_id=row.vehicle_id,
        departure_date=row.departure_date,
        departure_time=row.departure_time,
        start_point=parse_location(row.start_point),
        end_point=parse_location(row.end_point),
        route_geometry=row.route_geometry,
        distance_km=row.distance_km,
        fuel_price=row.fuel_price,
        total_fuel_cost=row.total_fuel_cost,
        cost_per_person=row.cost_per_person,
        platform_fee=row.platform_fee or 0.0,
        total_people=row.total_people,
        passengers=[int(pid) for pid in row.passengers or []],
        pickup_points=_points_from_row(row.pickup_points),
        dropoff_points=_points_from_row(row.dropoff_points),
        status=RideStatus(row.status),
        h3_cell=row.h3_cell,
        created_at=row.created_at,
    )


def _apply_entity(row: RideModel, ride: RideOffer) -> None:
    """Copy the mutable parts of *ride* onto *row*.

    Fare fields are a creation-time snapshot and are not written back.
    JSON columns are reassigned, never mutated in place, so the ORM sees
    the change.
    """
    row.departure_date = ride.departure_date
    row.departure_time = ride.departure_time
    row.status = ride.status
    row.passengers = list(ride.passengers)
    row.pickup_points = _points_to_row(ride.passengers, ride.pickup_points)
    row.dropoff_points = _points_to_row(ride.passengers, ride.dropoff_points)


class RideRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def add(self, ride: RideOffer) -> RideOffer:
        row = RideModel(
            driver_id=ride.driver_id,
            vehicle_id=ride.vehicle_id,
            departure_date=ride.departure_date,
            departure_time=ride.departure_time,
            start_point=str(ride.start_point),
            end_point=str(ride.end_point),
            route_geometry=ride.route_geometry,
            h3_cell=ride.h3_cell,
            distance_km=ride.distance_km,
            fuel_price=ride.fuel_price,
            total_fuel_cost=ride.total_fuel_cost,
            cost_per_person=ride.cost_per_person,
            platform_fee=ride.platform_fee,
            total_people=ride.total_people,
            passengers=list(ride.passengers),
            pickup_points=_points_to_row(ride.passengers, ride.pickup_points),
            dropoff_points=_points_to_row(ride.passengers, ride.dropoff_points),
            status=ride.status,
        )
        self.session.add(row)
        await self.session.flush()
        await self.session.refresh(row)  # load server-side created_at
        ride.id = row.id
        ride.created_at = row.created_at
        return ride

    async def get(self, ride_id: int) -> Optional[RideOffer]:
        row = await self.session.get(RideModel, ride_id)
        return ride_to_entity(row) if row else None

    async def get_for_update(self, ride_id: int) -> Optional[RideOffer]:
        """SELECT ... FOR UPDATE, bypassing any stale identity-map copy."""
        result = await self.session.execute(
            select(RideModel)
            .where(RideModel.id == ride_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        row = result.scalar_one_or_none()
        return ride_to_entity(row) if row else None

    async def save(self, ride: RideOffer) -> RideOffer:
        row = await self.session.get(RideModel, ride.id)
        if row is None:
            raise NotFound(f"Ride {ride.id} not found")
        _apply_entity(row, ride)
        await self.session.flush()
        return ride

    async def list_pending_in_cells(self, cells: Iterable[str]) -> list[RideOffer]:
        result = await self.session.execute(
            select(RideModel)
            .where(RideModel.status == RideStatus.PENDING)
            .where(RideModel.h3_cell.in_(list(cells)))
            .order_by(RideModel.created_at)
        )
        return [ride_to_entity(r) for r in result.scalars().all()]

    async def list_all(self, status: Optional[RideStatus] = None) -> list[RideOffer]:
        query = select(RideModel).order_by(RideModel.id)
        if status is not None:
            query = query.where(RideModel.status == status)
        result = await self.session.execute(query)
        return [ride_to_entity(r) for r in result.scalars().all()]


class VehicleRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def get(self, vehicle_id: int) -> Optional[Vehicle]:
        row = await self.session.get(VehicleModel, vehicle_id)
        if row is None:
            return None
        return Vehicle(
            id=row.id, owner_id=row.owner_id, name=row.name, mileage=row.mileage
        )


class UserRepository:
    """Identity / verification provider backed by the ``users`` table."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_id(self, user_id: int) -> Optional[UserModel]:
        return await self.session.get(UserModel, user_id)

    async def get_verification_status(self, user_id: int) -> str:
        user = await self.get_by_id(user_id)
        if user is None:
            raise NotFound(f"User {user_id} not found")
        return user.verification_status

    async def is_subscribed(self, user_id: int) -> bool:
        user = await self.get_by_id(user_id)
        if user is None:
            raise NotFound(f"User {user_id} not found")
        return bool(user.is_subscribed)


class PaymentOrderRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(
        self,
        *,
        order_ref: str,
        ride_id: int,
        passenger_id: int,
        amount: float,
        currency: str,
    ) -> PaymentOrderModel:
        order = PaymentOrderModel(
            order_ref=order_ref,
            ride_id=ride_id,
            passenger_id=passenger_id,
            amount=amount,
            currency=currency,
            status=PaymentStatus.CREATED,
        )
        self.session.add(order)
        await self.session.flush()
        return order

    async def get_by_ref(self, order_ref: str) -> Optional[PaymentOrderModel]:
        result = await self.session.execute(
            select(PaymentOrderModel).where(PaymentOrderModel.order_ref == order_ref)
        )
        return result.scalar_one_or_none()

    async def get_for_update(self, order_ref: str) -> Optional[PaymentOrderModel]:
        """Re-read the order under lock, discarding the identity-map copy."""
        result = await self.session.execute(
            select(PaymentOrderModel)
            .where(PaymentOrderModel.order_ref == order_ref)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()
