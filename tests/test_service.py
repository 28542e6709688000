"""
Ride service tests against a real (SQLite) database.

Covers ride creation, the pay-then-join flow, leaving, rescheduling,
driver and admin lifecycle actions, place names and nearby search.
"""

from __future__ import annotations

from datetime import date, time

import pytest

from rideshare.domain.enums import PaymentStatus, ReasonCode, RideStatus
from rideshare.domain.errors import (
    InvalidInput,
    InvalidTransition,
    JoinDenied,
    NotFound,
    PassengerNotFound,
    PaymentVerificationFailed,
    PermissionDenied,
)
from rideshare.infrastructure.repositories import PaymentOrderRepository
from tests.conftest import (
    DRIVER_ID,
    KOCHI,
    OTHER_DRIVER_ID,
    PASSENGER_IDS,
    THRISSUR,
    UNVERIFIED_ID,
    VEHICLE_ID,
    create_sample_ride,
    make_service,
)

PASSENGER = PASSENGER_IDS[0]


async def _join(session_factory, locks, gateway, ride_id, passenger_id=PASSENGER):
    async with session_factory() as session:
        service = make_service(session, locks, gateway)
        outcome = await service.create_join_order(ride_id, passenger_id, THRISSUR, KOCHI)
        ref = outcome.order.order_ref
        ride = await service.confirm_join(
            ride_id,
            passenger_id,
            order_ref=ref,
            payment_id="pay_1",
            signature=f"sig_{ref}",
            pickup=THRISSUR,
            dropoff=KOCHI,
        )
    return ride, ref


# ── Creation ──────────────────────────────────────────────────────────


class TestCreateRide:
    @pytest.mark.asyncio
    async def test_fare_is_stored_with_the_ride(self, session_factory, seeded, locks):
        ride = await create_sample_ride(session_factory, locks, passenger_count=3)

        assert ride.id is not None
        assert ride.status == RideStatus.PENDING
        assert ride.total_fuel_cost == pytest.approx(500.0)
        assert ride.cost_per_person == pytest.approx(125.0)
        assert ride.total_people == 4
        assert ride.platform_fee == 50.0
        assert ride.h3_cell is not None
        assert ride.created_at is not None

    @pytest.mark.asyncio
    async def test_subscribed_driver_pays_no_fee(self, session_factory, seeded, locks):
        ride = await create_sample_ride(
            session_factory, locks, driver_id=OTHER_DRIVER_ID, vehicle_id=2
        )
        # 100 km at 12.5 km/l = 8 l
        assert ride.total_fuel_cost == pytest.approx(800.0)
        assert ride.cost_per_person == pytest.approx(200.0)
        assert ride.platform_fee == 0.0

    @pytest.mark.asyncio
    async def test_vehicle_must_belong_to_driver(self, session_factory, seeded, locks):
        with pytest.raises(PermissionDenied):
            await create_sample_ride(
                session_factory, locks, driver_id=OTHER_DRIVER_ID, vehicle_id=VEHICLE_ID
            )

    @pytest.mark.asyncio
    async def test_unknown_vehicle(self, session_factory, seeded, locks):
        with pytest.raises(NotFound):
            await create_sample_ride(session_factory, locks, vehicle_id=99)

    @pytest.mark.asyncio
    async def test_invalid_location_rejected(self, session_factory, seeded, locks):
        async with session_factory() as session:
            with pytest.raises(InvalidInput):
                await make_service(session, locks).create_ride(
                    driver_id=DRIVER_ID,
                    vehicle_id=VEHICLE_ID,
                    start_point="not a place",
                    end_point=KOCHI,
                    distance_km=10,
                    fuel_price=100,
                    passenger_count=2,
                )

    @pytest.mark.asyncio
    async def test_unknown_ride(self, session_factory, seeded, locks):
        async with session_factory() as session:
            with pytest.raises(NotFound):
                await make_service(session, locks).get_ride(999)


# ── Joining ───────────────────────────────────────────────────────────


class TestJoin:
    @pytest.mark.asyncio
    async def test_pay_then_join(self, session_factory, seeded, locks, gateway):
        ride = await create_sample_ride(session_factory, locks)
        joined, ref = await _join(session_factory, locks, gateway, ride.id)

        assert joined.passengers == [PASSENGER]
        assert str(joined.pickup_points[PASSENGER]) == THRISSUR
        # Fare stays fixed once passengers join
        assert joined.cost_per_person == pytest.approx(125.0)
        assert gateway.created[0][1] == pytest.approx(125.0)

        async with session_factory() as session:
            order = await PaymentOrderRepository(session).get_by_ref(ref)
            stored = await make_service(session, locks).get_ride(ride.id)
        assert order.status == PaymentStatus.PAID
        assert order.payment_id == "pay_1"
        assert stored.passengers == [PASSENGER]

    @pytest.mark.asyncio
    async def test_unverified_user_gets_no_order(
        self, session_factory, seeded, locks, gateway
    ):
        ride = await create_sample_ride(session_factory, locks)
        async with session_factory() as session:
            outcome = await make_service(session, locks, gateway).create_join_order(
                ride.id, UNVERIFIED_ID, THRISSUR, KOCHI
            )
        assert outcome.order is None
        assert outcome.eligibility.reason_code == ReasonCode.USER_NOT_VERIFIED
        assert gateway.created == []

    @pytest.mark.asyncio
    async def test_unknown_passenger(self, session_factory, seeded, locks):
        ride = await create_sample_ride(session_factory, locks)
        async with session_factory() as session:
            with pytest.raises(NotFound):
                await make_service(session, locks).check_join(
                    ride.id, 404, THRISSUR, KOCHI
                )

    @pytest.mark.asyncio
    async def test_driver_cannot_join_own_ride(
        self, session_factory, seeded, locks, gateway
    ):
        ride = await create_sample_ride(session_factory, locks)
        async with session_factory() as session:
            service = make_service(session, locks, gateway)
            with pytest.raises(PermissionDenied):
                await service.check_join(ride.id, DRIVER_ID, THRISSUR, KOCHI)
            with pytest.raises(PermissionDenied):
                await service.create_join_order(ride.id, DRIVER_ID, THRISSUR, KOCHI)
        assert gateway.created == []

    @pytest.mark.asyncio
    async def test_bad_signature_does_not_join(
        self, session_factory, seeded, locks, gateway
    ):
        ride = await create_sample_ride(session_factory, locks)
        async with session_factory() as session:
            service = make_service(session, locks, gateway)
            outcome = await service.create_join_order(ride.id, PASSENGER, THRISSUR, KOCHI)
            with pytest.raises(PaymentVerificationFailed):
                await service.confirm_join(
                    ride.id,
                    PASSENGER,
                    order_ref=outcome.order.order_ref,
                    payment_id="pay_x",
                    signature="forged",
                    pickup=THRISSUR,
                    dropoff=KOCHI,
                )
            assert (await service.get_ride(ride.id)).passengers == []

    @pytest.mark.asyncio
    async def test_order_for_another_passenger_rejected(
        self, session_factory, seeded, locks, gateway
    ):
        ride = await create_sample_ride(session_factory, locks)
        async with session_factory() as session:
            service = make_service(session, locks, gateway)
            outcome = await service.create_join_order(ride.id, PASSENGER, THRISSUR, KOCHI)
            ref = outcome.order.order_ref
            with pytest.raises(PaymentVerificationFailed):
                await service.confirm_join(
                    ride.id,
                    PASSENGER_IDS[1],
                    order_ref=ref,
                    payment_id="pay_x",
                    signature=f"sig_{ref}",
                    pickup=THRISSUR,
                    dropoff=KOCHI,
                )

    @pytest.mark.asyncio
    async def test_confirm_is_idempotent(self, session_factory, seeded, locks, gateway):
        ride = await create_sample_ride(session_factory, locks)
        _, ref = await _join(session_factory, locks, gateway, ride.id)

        async with session_factory() as session:
            again = await make_service(session, locks, gateway).confirm_join(
                ride.id,
                PASSENGER,
                order_ref=ref,
                payment_id="pay_1",
                signature=f"sig_{ref}",
                pickup=THRISSUR,
                dropoff=KOCHI,
            )
        assert again.passengers == [PASSENGER]

    @pytest.mark.asyncio
    async def test_ride_started_after_payment(
        self, session_factory, seeded, locks, gateway
    ):
        ride = await create_sample_ride(session_factory, locks)
        async with session_factory() as session:
            service = make_service(session, locks, gateway)
            outcome = await service.create_join_order(ride.id, PASSENGER, THRISSUR, KOCHI)
            ref = outcome.order.order_ref
            await service.start_ride(ride.id, DRIVER_ID)

            with pytest.raises(JoinDenied) as exc_info:
                await service.confirm_join(
                    ride.id,
                    PASSENGER,
                    order_ref=ref,
                    payment_id="pay_1",
                    signature=f"sig_{ref}",
                    pickup=THRISSUR,
                    dropoff=KOCHI,
                )
            assert exc_info.value.result.reason_code == ReasonCode.RIDE_NOT_PENDING
            order = await PaymentOrderRepository(session).get_by_ref(ref)
            assert order.status == PaymentStatus.REFUND_DUE


# ── Leaving and rescheduling ──────────────────────────────────────────


class TestRosterAndSchedule:
    @pytest.mark.asyncio
    async def test_leave_frees_seat(self, session_factory, seeded, locks, gateway):
        ride = await create_sample_ride(session_factory, locks, passenger_count=1)
        await _join(session_factory, locks, gateway, ride.id)

        async with session_factory() as session:
            left = await make_service(session, locks).leave_ride(ride.id, PASSENGER)
        assert left.passengers == []
        assert left.pickup_points == {}

    @pytest.mark.asyncio
    async def test_leave_when_not_joined(self, session_factory, seeded, locks):
        ride = await create_sample_ride(session_factory, locks)
        async with session_factory() as session:
            with pytest.raises(PassengerNotFound):
                await make_service(session, locks).leave_ride(ride.id, PASSENGER)

    @pytest.mark.asyncio
    async def test_reschedule(self, session_factory, seeded, locks):
        ride = await create_sample_ride(session_factory, locks)
        async with session_factory() as session:
            updated = await make_service(session, locks).reschedule_ride(
                ride.id, DRIVER_ID, date(2026, 12, 24), time(7, 30)
            )
        assert updated.departure_date == date(2026, 12, 24)
        assert updated.departure_time == time(7, 30)

    @pytest.mark.asyncio
    async def test_reschedule_needs_a_change(self, session_factory, seeded, locks):
        ride = await create_sample_ride(session_factory, locks)
        async with session_factory() as session:
            with pytest.raises(InvalidInput):
                await make_service(session, locks).reschedule_ride(
                    ride.id, DRIVER_ID, None, None
                )

    @pytest.mark.asyncio
    async def test_reschedule_started_ride(self, session_factory, seeded, locks):
        ride = await create_sample_ride(session_factory, locks)
        async with session_factory() as session:
            service = make_service(session, locks)
            await service.start_ride(ride.id, DRIVER_ID)
            with pytest.raises(InvalidTransition):
                await service.reschedule_ride(ride.id, DRIVER_ID, None, time(9, 0))


# ── Lifecycle ─────────────────────────────────────────────────────────


class TestLifecycleActions:
    @pytest.mark.asyncio
    async def test_start_then_complete(self, session_factory, seeded, locks):
        ride = await create_sample_ride(session_factory, locks)
        async with session_factory() as session:
            service = make_service(session, locks)
            assert (await service.start_ride(ride.id, DRIVER_ID)).status == RideStatus.STARTED
            done = await service.complete_ride(ride.id, DRIVER_ID)
        assert done.status == RideStatus.COMPLETED

        async with session_factory() as session:
            stored = await make_service(session, locks).get_ride(ride.id)
        assert stored.status == RideStatus.COMPLETED

    @pytest.mark.asyncio
    async def test_only_driver_may_start(self, session_factory, seeded, locks):
        ride = await create_sample_ride(session_factory, locks)
        async with session_factory() as session:
            with pytest.raises(PermissionDenied):
                await make_service(session, locks).start_ride(ride.id, OTHER_DRIVER_ID)

    @pytest.mark.asyncio
    async def test_cancel_started_ride_fails(self, session_factory, seeded, locks):
        ride = await create_sample_ride(session_factory, locks)
        async with session_factory() as session:
            service = make_service(session, locks)
            await service.start_ride(ride.id, DRIVER_ID)
            with pytest.raises(InvalidTransition):
                await service.cancel_ride(ride.id, DRIVER_ID)

    @pytest.mark.asyncio
    async def test_admin_block_and_cancel(self, session_factory, seeded, locks):
        blocked = await create_sample_ride(session_factory, locks)
        cancelled = await create_sample_ride(session_factory, locks)
        async with session_factory() as session:
            service = make_service(session, locks)
            assert (await service.block_ride(blocked.id)).status == RideStatus.BLOCKED
            assert (
                await service.admin_cancel_ride(cancelled.id)
            ).status == RideStatus.CANCELLED
            with pytest.raises(InvalidTransition):
                await service.block_ride(blocked.id)

    @pytest.mark.asyncio
    async def test_mutating_unknown_ride(self, session_factory, seeded, locks):
        async with session_factory() as session:
            with pytest.raises(NotFound):
                await make_service(session, locks).block_ride(12345)


# ── Search and place names ────────────────────────────────────────────


class TestQueries:
    @pytest.mark.asyncio
    async def test_find_nearby(self, session_factory, seeded, locks):
        ride = await create_sample_ride(session_factory, locks)
        closed = await create_sample_ride(session_factory, locks)
        async with session_factory() as session:
            service = make_service(session, locks)
            await service.block_ride(closed.id)
            matches = await service.find_nearby_rides(THRISSUR, KOCHI)
        assert [m.ride.id for m in matches] == [ride.id]
        assert matches[0].pickup_distance_km == pytest.approx(0.0, abs=1e-6)

    @pytest.mark.asyncio
    async def test_nearby_with_bad_location(self, session_factory, seeded, locks):
        async with session_factory() as session:
            with pytest.raises(InvalidInput):
                await make_service(session, locks).find_nearby_rides("x", KOCHI)

    @pytest.mark.asyncio
    async def test_describe_places(self, session_factory, seeded, locks):
        ride = await create_sample_ride(session_factory, locks)
        async with session_factory() as session:
            places = await make_service(session, locks).describe_places(ride.id)
        assert places == {"start": "Thrissur, Kerala", "end": "Kochi, Kerala"}

    @pytest.mark.asyncio
    async def test_list_rides(self, session_factory, seeded, locks):
        await create_sample_ride(session_factory, locks)
        await create_sample_ride(session_factory, locks)
        async with session_factory() as session:
            rides = await make_service(session, locks).list_rides()
        assert len(rides) == 2
