"""
SQLAlchemy ORM models.

Tables
------
* ``users``           -- drivers and passengers, with verification status
* ``vehicles``        -- driver-owned vehicles and their fuel mileage
* ``rides``           -- ride offers with fare snapshot and roster
* ``payment_orders``  -- gateway orders for passengers joining a ride

The roster is stored as JSON: ``passengers`` is the ordered list of user
ids; ``pickup_points`` / ``dropoff_points`` are lists of
``{"passenger_id": ..., "location": "lat,lng"}`` objects.

Indexes
-------
B-Tree on ``status``, ``driver_id`` and ``h3_cell`` for the
look-ups used by the search and join flows.
"""

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    Date,
    DateTime,
    Enum,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    Time,
    func,
)

from .database import Base
from rideshare.domain.enums import PaymentStatus, RideStatus


class UserModel(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(120), nullable=False)
    email = Column(String(255), unique=True, nullable=False)
    verification_status = Column(String(20), default="Pending", nullable=False)
    is_subscribed = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class VehicleModel(Base):
    __tablename__ = "vehicles"

    id = Column(Integer, primary_key=True, autoincrement=True)
    owner_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    name = Column(String(120), nullable=False)
    mileage = Column(Float, nullable=False)  # km per unit of fuel
    license_plate = Column(String(20), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (Index("idx_vehicles_owner", "owner_id"),)


class RideModel(Base):
    __tablename__ = "rides"

    id = Column(Integer, primary_key=True, autoincrement=True)
    driver_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    vehicle_id = Column(Integer, ForeignKey("vehicles.id"), nullable=False)

    departure_date = Column(Date, nullable=True)
    departure_time = Column(Time, nullable=True)
    start_point = Column(String(64), nullable=False)  # "lat,lng"
    end_point = Column(String(64), nullable=False)
    route_geometry = Column(Text, nullable=True)
    h3_cell = Column(String(20), nullable=True)

    # Fare snapshot (full precision, never recomputed)
    distance_km = Column(Float, nullable=False)
    fuel_price = Column(Float, nullable=False)
    total_fuel_cost = Column(Float, nullable=False)
    cost_per_person = Column(Float, nullable=False)
    platform_fee = Column(Float, default=0.0, nullable=False)
    total_people = Column(Integer, nullable=False)

    passengers = Column(JSON, default=list, nullable=False)
    pickup_points = Column(JSON, default=list, nullable=False)
    dropoff_points = Column(JSON, default=list, nullable=False)

    status = Column(
        Enum(RideStatus, values_callable=lambda e: [m.value for m in e]),
        default=RideStatus.PENDING,
        nullable=False,
    )

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    __table_args__ = (
        Index("idx_rides_status", "status"),
        Index("idx_rides_driver", "driver_id"),
        Index("idx_rides_cell", "h3_cell"),
    )


class PaymentOrderModel(Base):
    __tablename__ = "payment_orders"

    id = Column(Integer, primary_key=True, autoincrement=True)
    order_ref = Column(String(64), unique=True, nullable=False)
    ride_id = Column(Integer, ForeignKey("rides.id"), nullable=False)
    passenger_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    amount = Column(Float, nullable=False)
    currency = Column(String(3), nullable=False)
    status = Column(Enum(PaymentStatus), default=PaymentStatus.CREATED, nullable=False)
    payment_id = Column(String(64), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    __table_args__ = (Index("idx_payment_orders_ride", "ride_id"),)
