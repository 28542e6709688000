"""
Seed script -- populates the database with sample data for reviewers.

Run after migrations:
    python seed.py

Creates:
  - 6 sample users (2 drivers, 4 passengers; one passenger unverified)
  - 3 sample vehicles
  - 4 sample rides around Thrissur (Pending, Started, Completed, one full)
"""

import asyncio
from datetime import date, time, timedelta

from sqlalchemy import text

from rideshare.config import settings
from rideshare.domain import capacity
from rideshare.domain.entities import RideOffer
from rideshare.domain.enums import RideStatus
from rideshare.domain.fare import FareCalculator
from rideshare.domain.location import parse_location
from rideshare.domain.search import ride_h3_cell
from rideshare.infrastructure.database import async_session_factory, engine
from rideshare.infrastructure.models import UserModel, VehicleModel
from rideshare.infrastructure.repositories import RideRepository


USERS = [
    {"name": "Arjun Menon", "email": "arjun@example.com", "verified": "Verified", "subscribed": True},
    {"name": "Lakshmi Nair", "email": "lakshmi@example.com", "verified": "Verified", "subscribed": False},
    {"name": "Rahul Varma", "email": "rahul@example.com", "verified": "Verified", "subscribed": False},
    {"name": "Anjali Pillai", "email": "anjali@example.com", "verified": "Verified", "subscribed": False},
    {"name": "Nikhil Das", "email": "nikhil@example.com", "verified": "Verified", "subscribed": False},
    {"name": "Meera Krishnan", "email": "meera@example.com", "verified": "Pending", "subscribed": False},
]

VEHICLES = [
    # (owner index, name, km per litre, plate)
    (0, "Maruti Swift", 20.0, "KL-08-AB-1234"),
    (0, "Toyota Innova", 12.0, "KL-08-CD-5678"),
    (1, "Hyundai i20", 18.0, "KL-07-EF-9012"),
]

# Thrissur town centre and nearby destinations
THRISSUR = "10.5276,76.2144"
RIDES = [
    # (driver idx, vehicle idx, start, end, km, fuel price, max passengers, status, roster idxs)
    (0, 0, THRISSUR, "9.9312,76.2673", 80.0, 102.5, 3, RideStatus.PENDING, [2]),
    (0, 1, "10.5300,76.2200", "10.8505,76.2711", 42.0, 98.0, 5, RideStatus.STARTED, [3, 4]),
    (1, 2, "10.5250,76.2100", "11.2588,75.7804", 120.0, 101.0, 2, RideStatus.PENDING, [3, 4]),
    (1, 2, THRISSUR, "10.0159,76.3419", 70.0, 100.0, 3, RideStatus.COMPLETED, [2]),
]


async def seed():
    calculator = FareCalculator(settings.platform_fee_rate)

    async with async_session_factory() as session:
        # Check if already seeded
        result = await session.execute(text("SELECT count(*) FROM users"))
        if result.scalar() > 0:
            print("Database already seeded. Skipping.")
            return

        # ── Users ─────────────────────────────────────────────────────
        user_models = []
        for u in USERS:
            m = UserModel(
                name=u["name"],
                email=u["email"],
                verification_status=u["verified"],
                is_subscribed=u["subscribed"],
            )
            session.add(m)
            user_models.append(m)
        await session.flush()
        print(f"  Created {len(user_models)} users")

        # ── Vehicles ──────────────────────────────────────────────────
        vehicle_models = []
        for owner, name, mileage, plate in VEHICLES:
            m = VehicleModel(
                owner_id=user_models[owner].id,
                name=name,
                mileage=mileage,
                license_plate=plate,
            )
            session.add(m)
            vehicle_models.append(m)
        await session.flush()
        print(f"  Created {len(vehicle_models)} vehicles")

        # ── Rides ─────────────────────────────────────────────────────
        repo = RideRepository(session)
        departure = date.today() + timedelta(days=1)
        for i, (d, v, start, end, km, price, seats, status, roster) in enumerate(RIDES):
            driver, vehicle = user_models[d], vehicle_models[v]
            quote = calculator.quote(
                km, vehicle.mileage, price, seats, subscribed=driver.is_subscribed
            )
            start_loc = parse_location(start)
            ride = RideOffer(
                driver_id=driver.id,
                vehicle_id=vehicle.id,
                departure_date=departure,
                departure_time=time(8 + i, 30),
                start_point=start_loc,
                end_point=parse_location(end),
                distance_km=quote.fare.distance_km,
                fuel_price=price,
                total_fuel_cost=quote.fare.total_fuel_cost,
                cost_per_person=quote.fare.cost_per_person,
                platform_fee=quote.platform_fee,
                total_people=quote.fare.total_people,
                h3_cell=ride_h3_cell(start_loc, settings.h3_resolution),
            )
            for p in roster:
                capacity.add_passenger(
                    ride, user_models[p].id, start_loc, ride.end_point
                )
            ride.status = status
            await repo.add(ride)
        print(f"  Created {len(RIDES)} rides")

        await session.commit()
        print("\nSeed complete!")


async def main():
    print("Seeding database...")
    await seed()
    await engine.dispose()


if __name__ == "__main__":
    asyncio.run(main())
