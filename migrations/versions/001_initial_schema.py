"""Initial schema: users, vehicles, rides and payment orders.

Revision ID: 001
Create Date: 2026-10-17
"""

from alembic import op
import sqlalchemy as sa


revision = "001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    # ── users ─────────────────────────────────────────────────────────
    op.create_table(
        "users",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(120), nullable=False),
        sa.Column("email", sa.String(255), unique=True, nullable=False),
        sa.Column(
            "verification_status",
            sa.String(20),
            nullable=False,
            server_default="Pending",
        ),
        sa.Column(
            "is_subscribed", sa.Boolean, nullable=False, server_default=sa.false()
        ),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
        ),
    )

    # ── vehicles ──────────────────────────────────────────────────────
    op.create_table(
        "vehicles",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column(
            "owner_id", sa.Integer, sa.ForeignKey("users.id"), nullable=False
        ),
        sa.Column("name", sa.String(120), nullable=False),
        sa.Column("mileage", sa.Float, nullable=False),
        sa.Column("license_plate", sa.String(20), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
        ),
        sa.CheckConstraint("mileage > 0", name="ck_vehicles_mileage_positive"),
    )
    op.create_index("idx_vehicles_owner", "vehicles", ["owner_id"])

    # ── rides ─────────────────────────────────────────────────────────
    op.create_table(
        "rides",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column(
            "driver_id", sa.Integer, sa.ForeignKey("users.id"), nullable=False
        ),
        sa.Column(
            "vehicle_id", sa.Integer, sa.ForeignKey("vehicles.id"), nullable=False
        ),
        sa.Column("departure_date", sa.Date, nullable=True),
        sa.Column("departure_time", sa.Time, nullable=True),
        sa.Column("start_point", sa.String(64), nullable=False),
        sa.Column("end_point", sa.String(64), nullable=False),
        sa.Column("route_geometry", sa.Text, nullable=True),
        sa.Column("h3_cell", sa.String(20), nullable=True),
        sa.Column("distance_km", sa.Float, nullable=False),
        sa.Column("fuel_price", sa.Float, nullable=False),
        sa.Column("total_fuel_cost", sa.Float, nullable=False),
        sa.Column("cost_per_person", sa.Float, nullable=False),
        sa.Column("platform_fee", sa.Float, nullable=False, server_default="0"),
        sa.Column("total_people", sa.Integer, nullable=False),
        sa.Column("passengers", sa.JSON, nullable=False),
        sa.Column("pickup_points", sa.JSON, nullable=False),
        sa.Column("dropoff_points", sa.JSON, nullable=False),
        sa.Column(
            "status",
            sa.Enum(
                "Pending",
                "Started",
                "Completed",
                "Cancelled",
                "Blocked",
                name="ridestatus",
            ),
            nullable=False,
            server_default="Pending",
        ),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
        ),
        sa.CheckConstraint("total_people >= 1", name="ck_rides_total_people"),
    )
    op.create_index("idx_rides_status", "rides", ["status"])
    op.create_index("idx_rides_driver", "rides", ["driver_id"])
    op.create_index("idx_rides_cell", "rides", ["h3_cell"])

    # ── payment_orders ────────────────────────────────────────────────
    op.create_table(
        "payment_orders",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("order_ref", sa.String(64), unique=True, nullable=False),
        sa.Column("ride_id", sa.Integer, sa.ForeignKey("rides.id"), nullable=False),
        sa.Column(
            "passenger_id", sa.Integer, sa.ForeignKey("users.id"), nullable=False
        ),
        sa.Column("amount", sa.Float, nullable=False),
        sa.Column("currency", sa.String(3), nullable=False),
        sa.Column(
            "status",
            sa.Enum("CREATED", "PAID", "REFUND_DUE", name="paymentstatus"),
            nullable=False,
            server_default="CREATED",
        ),
        sa.Column("payment_id", sa.String(64), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
        ),
    )
    op.create_index("idx_payment_orders_ride", "payment_orders", ["ride_id"])


def downgrade() -> None:
    op.drop_table("payment_orders")
    op.drop_table("rides")
    op.drop_table("vehicles")
    op.drop_table("users")
    op.execute("DROP TYPE IF EXISTS paymentstatus")
    op.execute("DROP TYPE IF EXISTS ridestatus")
