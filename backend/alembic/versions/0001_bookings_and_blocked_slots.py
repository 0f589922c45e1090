"""bookings and blocked_slots

Revision ID: 0001
Revises:
Create Date: 2026-01-05
"""

from alembic import op
import sqlalchemy as sa

revision = "0001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        "bookings",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("slot_time", sa.DateTime(), nullable=False),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("email", sa.Text(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("duration", sa.Integer(), nullable=False, server_default=sa.text("30")),
        sa.Column("meeting_ref", sa.Text()),
        sa.Column("meeting_link", sa.Text()),
    )
    op.create_index("ix_bookings_slot_time", "bookings", ["slot_time"], unique=True)

    op.create_table(
        "blocked_slots",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("slot_time", sa.DateTime(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_blocked_slots_slot_time", "blocked_slots", ["slot_time"], unique=True)


def downgrade():
    op.drop_index("ix_blocked_slots_slot_time", table_name="blocked_slots")
    op.drop_table("blocked_slots")
    op.drop_index("ix_bookings_slot_time", table_name="bookings")
    op.drop_table("bookings")
