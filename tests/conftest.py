"""
Shared test fixtures.

Uses a per-test SQLite database file (via aiosqlite) so tests run without
Docker / PostgreSQL / Redis.  Every session gets its own connection,
which lets the concurrency tests run real interleaved transactions.
Redis locks are replaced by in-process ``asyncio.Lock`` objects and the
payment gateway / geocoder by fakes.
"""

import asyncio
from collections import defaultdict
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from rideshare.domain.fare import FareCalculator
from rideshare.infrastructure.database import Base
from rideshare.infrastructure.geocoding import Geocoder
from rideshare.infrastructure.models import UserModel, VehicleModel
from rideshare.infrastructure.payments import PaymentGateway
from rideshare.services.rides import RideService

THRISSUR = "10.5276,76.2144"
KOCHI = "9.9312,76.2673"

DRIVER_ID = 1
OTHER_DRIVER_ID = 2
PASSENGER_IDS = (3, 4, 5)
UNVERIFIED_ID = 6
VEHICLE_ID = 1  # owned by DRIVER_ID, 20 km per litre


# ── Fakes ─────────────────────────────────────────────────────────────


class LocalRideLocks:
    """In-process stand-in for the Redis ride locks."""

    def __init__(self):
        self._locks: dict[int, asyncio.Lock] = defaultdict(asyncio.Lock)

    def __call__(self, ride_id: int) -> asyncio.Lock:
        return self._locks[ride_id]


class FakeGateway(PaymentGateway):
    """Accepts the signature ``sig_<order_ref>`` and nothing else."""

    def __init__(self):
        self.created: list[tuple[str, float, str, str]] = []

    async def create_order(self, amount: float, currency: str, receipt: str) -> str:
        order_ref = f"order_{len(self.created) + 1}"
        self.created.append((order_ref, amount, currency, receipt))
        return order_ref

    async def verify_payment(
        self, order_ref: str, payment_id: str, signature: str
    ) -> bool:
        return signature == f"sig_{order_ref}"


class FakeGeocoder(Geocoder):
    NAMES = {THRISSUR: "Thrissur, Kerala", KOCHI: "Kochi, Kerala"}

    async def reverse_geocode(self, lat: float, lng: float) -> str:
        key = f"{lat},{lng}"
        return self.NAMES.get(key, key)


# ── Fixtures ──────────────────────────────────────────────────────────


@pytest_asyncio.fixture
async def session_factory(tmp_path) -> AsyncGenerator[async_sessionmaker, None]:
    """Create tables in a fresh database file, yield a session factory."""
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'rides.db'}", echo=False
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    await engine.dispose()


@pytest_asyncio.fixture
async def seeded(session_factory) -> None:
    """Two drivers, three verified passengers, one unverified user, one car."""
    async with session_factory() as session:
        session.add_all(
            [
                UserModel(id=DRIVER_ID, name="Driver", email="driver@example.com",
                          verification_status="Verified"),
                UserModel(id=OTHER_DRIVER_ID, name="Subscriber",
                          email="sub@example.com", verification_status="Verified",
                          is_subscribed=True),
                UserModel(id=UNVERIFIED_ID, name="Newcomer",
                          email="new@example.com", verification_status="Pending"),
            ]
            + [
                UserModel(id=pid, name=f"Passenger {pid}",
                          email=f"p{pid}@example.com",
                          verification_status="Verified")
                for pid in PASSENGER_IDS
            ]
        )
        await session.flush()
        session.add_all(
            [
                VehicleModel(id=VEHICLE_ID, owner_id=DRIVER_ID, name="Swift",
                             mileage=20.0),
                VehicleModel(id=2, owner_id=OTHER_DRIVER_ID, name="Innova",
                             mileage=12.5),
            ]
        )
        await session.commit()


@pytest.fixture
def locks() -> LocalRideLocks:
    return LocalRideLocks()


@pytest.fixture
def gateway() -> FakeGateway:
    return FakeGateway()


def make_service(session, locks, gateway=None) -> RideService:
    return RideService(
        session,
        locks,
        gateway=gateway,
        geocoder=FakeGeocoder(),
        calculator=FareCalculator(0.10),
        search_radius_km=10.0,
    )


async def create_sample_ride(
    session_factory, locks, passenger_count: int = 3, driver_id: int = DRIVER_ID,
    vehicle_id: int = VEHICLE_ID,
):
    """100 km at 20 km/l and 100/l: total 500, split by passenger_count + 1."""
    async with session_factory() as session:
        return await make_service(session, locks).create_ride(
            driver_id=driver_id,
            vehicle_id=vehicle_id,
            start_point=THRISSUR,
            end_point=KOCHI,
            distance_km=100.0,
            fuel_price=100.0,
            passenger_count=passenger_count,
        )


@pytest_asyncio.fixture
async def client(session_factory, seeded, locks, gateway):
    """AsyncClient with DB, locks, gateway and geocoder overridden."""
    from rideshare.api.app import create_app
    from rideshare.api.dependencies import (
        get_db,
        get_geocoder,
        get_lock_factory,
        get_payment_gateway,
    )
    from rideshare.api.middleware import limiter

    async def _test_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app = create_app()
    app.dependency_overrides[get_db] = _test_db
    app.dependency_overrides[get_lock_factory] = lambda: locks
    app.dependency_overrides[get_payment_gateway] = lambda: gateway
    app.dependency_overrides[get_geocoder] = lambda: FakeGeocoder()

    limiter.enabled = False
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    limiter.enabled = True
