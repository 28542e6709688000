"""
FastAPI application factory.

* Registers routes for rides and admin.
* Maps domain errors to HTTP status codes.
* Applies rate-limiting middleware.
* Closes the Redis pool on shutdown.
* Swagger / OpenAPI UI available at ``/docs``.
"""

from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from rideshare.api.middleware import limiter
from rideshare.api.routes import admin, rides
from rideshare.api.schemas import EligibilityResponse, ErrorResponse
from rideshare.domain.errors import (
    CapacityExceeded,
    InvalidInput,
    InvalidTransition,
    JoinDenied,
    NotFound,
    PassengerNotFound,
    PaymentVerificationFailed,
    PermissionDenied,
    RideError,
    RideLocked,
)
from rideshare.infrastructure import redis_client

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

# Most specific first; the first isinstance match wins.
ERROR_STATUS: list[tuple[type[RideError], int]] = [
    (InvalidInput, 422),
    (InvalidTransition, 409),
    (CapacityExceeded, 409),
    (PassengerNotFound, 404),
    (NotFound, 404),
    (PermissionDenied, 403),
    (PaymentVerificationFailed, 402),
    (RideLocked, 423),
]


def status_for(exc: RideError) -> int:
    for exc_type, status in ERROR_STATUS:
        if isinstance(exc, exc_type):
            return status
    return 400


async def _ride_error_handler(request: Request, exc: RideError) -> JSONResponse:
    if isinstance(exc, JoinDenied):
        return JSONResponse(
            status_code=409,
            content=EligibilityResponse.from_result(exc.result).model_dump(),
        )
    status = status_for(exc)
    logger.info("%s %s -> %d: %s", request.method, request.url.path, status, exc)
    return JSONResponse(
        status_code=status, content=ErrorResponse(detail=str(exc)).model_dump()
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    await redis_client.close_pool()


def create_app() -> FastAPI:
    app = FastAPI(
        title="Ride-Share Economics & Capacity API",
        description=(
            "Offers rides with a fair fuel-cost split, tracks seats, "
            "enforces the ride lifecycle and decides who may join.  "
            "Joins are serialised per ride with a distributed lock."
        ),
        version="1.0.0",
        lifespan=lifespan,
    )

    # Rate limiter
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

    # Domain errors
    app.add_exception_handler(RideError, _ride_error_handler)

    # Routers
    app.include_router(rides.router, prefix="/api/v1")
    app.include_router(admin.router, prefix="/api/v1")

    return app
