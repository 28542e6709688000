"""FastAPI dependency injection helpers."""

from functools import lru_cache

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from rideshare.config import settings
from rideshare.domain.fare import FareCalculator
from rideshare.infrastructure.database import async_session_factory
from rideshare.infrastructure.geocoding import Geocoder, NominatimGeocoder
from rideshare.infrastructure.locks import ride_lock
from rideshare.infrastructure.payments import PaymentGateway, RazorpayGateway
from rideshare.infrastructure.redis_client import get_redis
from rideshare.services.rides import LockFactory, RideService


async def get_db() -> AsyncSession:  # type: ignore[misc]
    """Yield an async DB session; commit on success, rollback on error."""
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def get_lock_factory() -> LockFactory:
    """Redis-backed ride locks with the configured TTL and backoff."""
    redis = await get_redis()

    def lock_for(ride_id: int):
        return ride_lock(
            redis,
            ride_id,
            ttl_seconds=settings.ride_lock_ttl_seconds,
            retry_attempts=settings.lock_retry_attempts,
            retry_base_delay=settings.lock_retry_base_delay,
        )

    return lock_for


@lru_cache
def get_payment_gateway() -> PaymentGateway:
    return RazorpayGateway(settings.razorpay_key_id, settings.razorpay_key_secret)


@lru_cache
def get_geocoder() -> Geocoder:
    return NominatimGeocoder(
        url=settings.nominatim_url,
        timeout=settings.geocoder_timeout_seconds,
        user_agent=settings.geocoder_user_agent,
    )


def get_ride_service(
    db: AsyncSession = Depends(get_db),
    lock_for: LockFactory = Depends(get_lock_factory),
    gateway: PaymentGateway = Depends(get_payment_gateway),
    geocoder: Geocoder = Depends(get_geocoder),
) -> RideService:
    return RideService(
        db,
        lock_for,
        gateway=gateway,
        geocoder=geocoder,
        calculator=FareCalculator(settings.platform_fee_rate),
        currency=settings.currency,
        h3_resolution=settings.h3_resolution,
        search_ring_size=settings.search_ring_size,
        search_radius_km=settings.search_radius_km,
    )
