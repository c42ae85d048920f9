"""Initial schema — directory, dispatch, schedule and notification tables.

Revision ID: 001
Revises: None
Create Date: 2026-10-19
"""

from typing import Sequence, Union

import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import JSONB

from alembic import op

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Customers
    op.create_table(
        "customers",
        sa.Column("key", sa.String(64), primary_key=True),
        sa.Column("customer_id", sa.String(64), unique=True, nullable=True),
        sa.Column("name", sa.String(200), nullable=False),
    )

    # Drivers
    op.create_table(
        "drivers",
        sa.Column("key", sa.String(64), primary_key=True),
        sa.Column("driver_id", sa.String(64), nullable=True),
        sa.Column("name", sa.String(200), nullable=False),
    )

    # Dispatches
    op.create_table(
        "dispatches",
        sa.Column("key", sa.String(64), primary_key=True),
        sa.Column("dispatch_id", sa.String(64), unique=True, nullable=True),
        sa.Column("customer_id", sa.String(64), nullable=True),
        sa.Column("status", sa.String(20), nullable=False, server_default="pending"),
        sa.Column("driver_assignments", JSONB, nullable=False, server_default="{}"),
        sa.Column("current_status", JSONB, nullable=True),
        sa.Column("status_changed_at", JSONB, nullable=False, server_default="{}"),
        sa.Column("source_address", sa.Text, nullable=True),
        sa.Column("destination_address", sa.Text, nullable=True),
        sa.Column("trucks_required", sa.Integer, nullable=True),
        sa.Column("accepted_by", sa.String(64), nullable=True),
        sa.Column("accepted_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("rejected_by", sa.String(64), nullable=True),
        sa.Column("rejected_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("rejection_reason", sa.Text, nullable=True),
        sa.Column("assigned_by", sa.String(64), nullable=True),
        sa.Column("assigned_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("started_by", sa.String(64), nullable=True),
        sa.Column("admin_started_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
    )
    op.create_index("idx_dispatches_status", "dispatches", ["status"])
    op.create_index("idx_dispatches_customer", "dispatches", ["customer_id"])

    # Schedule records
    op.create_table(
        "assignments",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("dispatch_key", sa.String(64), nullable=False),
        sa.Column("driver_id", sa.String(64), nullable=False),
        sa.Column("truck_id", sa.String(64), nullable=False),
        sa.Column("assigned_date", sa.Date, nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="assigned"),
        sa.Column("notes", sa.Text, nullable=True),
        sa.Column("assigned_by", sa.String(64), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
    )
    op.create_index("idx_assignments_dispatch", "assignments", ["dispatch_key"])
    op.create_index(
        "idx_assignments_driver_date", "assignments", ["driver_id", "assigned_date"]
    )
    op.create_index(
        "idx_assignments_truck_date", "assignments", ["truck_id", "assigned_date"]
    )

    # Notifications
    op.create_table(
        "notifications",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("sink", sa.String(20), nullable=False),
        sa.Column("recipient_id", sa.String(64), nullable=True),
        sa.Column("type", sa.String(64), nullable=False),
        sa.Column("title", sa.String(200), nullable=False),
        sa.Column("message", sa.Text, nullable=False),
        sa.Column("dispatch_key", sa.String(64), nullable=True),
        sa.Column("driver_id", sa.String(64), nullable=True),
        sa.Column("priority", sa.String(10), nullable=False, server_default="normal"),
        sa.Column("read", sa.Boolean, nullable=False, server_default="false"),
        sa.Column("action_required", sa.Boolean, nullable=False, server_default="false"),
        sa.Column("sender_id", sa.String(64), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
    )
    op.create_index(
        "idx_notifications_recipient", "notifications", ["sink", "recipient_id"]
    )
    op.create_index("idx_notifications_dispatch", "notifications", ["dispatch_key"])


def downgrade() -> None:
    op.drop_table("notifications")
    op.drop_table("assignments")
    op.drop_table("dispatches")
    op.drop_table("drivers")
    op.drop_table("customers")
