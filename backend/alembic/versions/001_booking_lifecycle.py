# backend/alembic/versions/001_booking_lifecycle.py
"""Booking lifecycle - users, offerings, availability, bookings, feedback

Revision ID: 001_booking_lifecycle
Revises:
Create Date: 2026-10-19 00:00:00.000000

Bookings carry their buffered interval as blocked_start/blocked_end. On
PostgreSQL an exclusion constraint over that interval keeps two active
bookings of one mentor from overlapping, whatever the application does.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "001_booking_lifecycle"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

SLOT_CONFLICT_CONSTRAINT = "bookings_no_overlap_per_mentor"


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column(
            "created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False
        ),
        sa.Column(
            "updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=True
        ),
    ]


def upgrade() -> None:
    """Create the booking lifecycle schema."""
    print("Creating booking lifecycle tables...")

    bind = op.get_bind()
    dialect_name = bind.dialect.name if bind is not None else "postgresql"
    is_postgres = dialect_name == "postgresql"

    if is_postgres:
        op.execute("CREATE EXTENSION IF NOT EXISTS btree_gist")

    op.create_table(
        "users",
        sa.Column("id", sa.String(26), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("role", sa.String(20), nullable=False, server_default="mentee"),
        sa.Column("timezone", sa.String(64), nullable=False, server_default="UTC"),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("email"),
        sa.CheckConstraint("role IN ('admin', 'mentor', 'mentee')", name="ck_users_role"),
    )
    op.create_index("ix_users_id", "users", ["id"])

    for table in ("mentor_profiles", "mentee_profiles"):
        extra = [sa.Column("headline", sa.String(255), nullable=True)] if table == "mentor_profiles" else []
        op.create_table(
            table,
            sa.Column("id", sa.String(26), nullable=False),
            sa.Column("user_id", sa.String(26), nullable=False),
            sa.Column("name", sa.String(255), nullable=False),
            *extra,
            sa.Column("profile_url", sa.Text(), nullable=True),
            *_timestamps(),
            sa.ForeignKeyConstraint(["user_id"], ["users.id"]),
            sa.PrimaryKeyConstraint("id"),
            sa.UniqueConstraint("user_id"),
        )

    op.create_table(
        "offerings",
        sa.Column("id", sa.String(26), nullable=False),
        sa.Column("mentor_id", sa.String(26), nullable=False),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("category", sa.String(100), nullable=True),
        sa.Column("price", sa.Numeric(10, 2), nullable=False, server_default="0"),
        sa.Column("currency", sa.String(3), nullable=False, server_default="INR"),
        sa.Column("duration_minutes", sa.Integer(), nullable=False, server_default="30"),
        sa.Column("buffer_before_minutes", sa.Integer(), nullable=False, server_default="5"),
        sa.Column("buffer_after_minutes", sa.Integer(), nullable=False, server_default="5"),
        sa.Column("max_bookings_per_day", sa.Integer(), nullable=False, server_default="5"),
        sa.Column("advance_booking_days", sa.Integer(), nullable=False, server_default="30"),
        sa.Column("min_notice_hours", sa.Integer(), nullable=False, server_default="24"),
        sa.Column("cancellation_policy", sa.Text(), nullable=True),
        sa.Column("preparation_notes", sa.Text(), nullable=True),
        sa.Column("status", sa.String(20), nullable=False, server_default="draft"),
        sa.Column("featured", sa.Boolean(), nullable=False, server_default=sa.false()),
        *_timestamps(),
        sa.ForeignKeyConstraint(["mentor_id"], ["users.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint(
            "status IN ('draft', 'active', 'paused', 'archived')", name="ck_offerings_status"
        ),
        sa.CheckConstraint("price >= 0", name="check_offering_price_non_negative"),
        sa.CheckConstraint("duration_minutes > 0", name="check_offering_duration_positive"),
        sa.CheckConstraint(
            "buffer_before_minutes >= 0 AND buffer_after_minutes >= 0",
            name="check_offering_buffers_non_negative",
        ),
        sa.CheckConstraint("max_bookings_per_day > 0", name="check_offering_daily_cap_positive"),
        sa.CheckConstraint("advance_booking_days > 0", name="check_offering_horizon_positive"),
        sa.CheckConstraint("min_notice_hours >= 0", name="check_offering_notice_non_negative"),
    )
    op.create_index("ix_offerings_id", "offerings", ["id"])
    op.create_index("ix_offerings_mentor_id", "offerings", ["mentor_id"])
    op.create_index("ix_offerings_status", "offerings", ["status"])

    op.create_table(
        "availability_slots",
        sa.Column("id", sa.String(26), nullable=False),
        sa.Column("mentor_id", sa.String(26), nullable=False),
        sa.Column("day_of_week", sa.Integer(), nullable=False),
        sa.Column("start_time", sa.Time(), nullable=False),
        sa.Column("end_time", sa.Time(), nullable=False),
        sa.Column("timezone", sa.String(64), nullable=False, server_default="UTC"),
        *_timestamps(),
        sa.ForeignKeyConstraint(["mentor_id"], ["users.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint("day_of_week BETWEEN 0 AND 6", name="check_slot_day_of_week"),
        sa.CheckConstraint("start_time < end_time", name="check_slot_time_order"),
    )
    op.create_index(
        "ix_availability_slots_mentor_day", "availability_slots", ["mentor_id", "day_of_week"]
    )

    op.create_table(
        "bookings",
        sa.Column("id", sa.String(26), nullable=False),
        sa.Column("mentor_id", sa.String(26), nullable=False),
        sa.Column("mentee_id", sa.String(26), nullable=False),
        sa.Column("offering_id", sa.String(26), nullable=False),
        # Schedule snapshot
        sa.Column("scheduled_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("duration_minutes", sa.Integer(), nullable=False),
        sa.Column("buffer_before_minutes", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("buffer_after_minutes", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("blocked_start", sa.DateTime(timezone=True), nullable=False),
        sa.Column("blocked_end", sa.DateTime(timezone=True), nullable=False),
        # Status
        sa.Column("status", sa.String(20), nullable=False, server_default="pending"),
        sa.Column("payment_status", sa.String(20), nullable=False, server_default="pending"),
        sa.Column("payment_order_id", sa.String(100), nullable=True),
        sa.Column("meeting_link", sa.Text(), nullable=True),
        sa.Column("mentor_notes", sa.Text(), nullable=True),
        sa.Column("cancellation_reason", sa.Text(), nullable=True),
        sa.Column("cancelled_by", sa.String(10), nullable=True),
        sa.Column("mentee_rating", sa.SmallInteger(), nullable=True),
        sa.Column("mentee_feedback", sa.Text(), nullable=True),
        sa.Column("confirmed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("cancelled_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["mentor_id"], ["users.id"]),
        sa.ForeignKeyConstraint(["mentee_id"], ["users.id"]),
        sa.ForeignKeyConstraint(["offering_id"], ["offerings.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("payment_order_id"),
        sa.CheckConstraint(
            "status IN ('pending', 'confirmed', 'completed', 'cancelled', 'no_show')",
            name="ck_bookings_status",
        ),
        sa.CheckConstraint(
            "payment_status IN ('pending', 'paid', 'failed')", name="ck_bookings_payment_status"
        ),
        sa.CheckConstraint(
            "cancelled_by IS NULL OR cancelled_by IN ('mentor', 'mentee')",
            name="ck_bookings_cancelled_by",
        ),
        sa.CheckConstraint("mentor_id <> mentee_id", name="check_booking_distinct_parties"),
        sa.CheckConstraint("duration_minutes > 0", name="check_duration_positive"),
        sa.CheckConstraint(
            "mentee_rating IS NULL OR (mentee_rating BETWEEN 1 AND 5)",
            name="check_mentee_rating_range",
        ),
        sa.CheckConstraint("blocked_start < blocked_end", name="check_blocked_interval_order"),
    )
    op.create_index("ix_bookings_id", "bookings", ["id"])
    op.create_index("ix_bookings_mentor_id", "bookings", ["mentor_id"])
    op.create_index("ix_bookings_mentee_id", "bookings", ["mentee_id"])
    op.create_index("ix_bookings_status", "bookings", ["status"])
    op.create_index(
        "ix_bookings_mentor_blocked", "bookings", ["mentor_id", "blocked_start", "blocked_end"]
    )

    if is_postgres:
        op.execute(
            f"""
            ALTER TABLE bookings
            ADD CONSTRAINT {SLOT_CONFLICT_CONSTRAINT}
            EXCLUDE USING gist (
                mentor_id WITH =,
                tstzrange(blocked_start, blocked_end, '[)') WITH &&
            )
            WHERE (status IN ('pending', 'confirmed'))
            """
        )

    op.create_table(
        "posts",
        sa.Column("id", sa.String(26), nullable=False),
        sa.Column("author_id", sa.String(26), nullable=False),
        sa.Column("title", sa.String(255), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(["author_id"], ["users.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_posts_author_id", "posts", ["author_id"])

    op.create_table(
        "mentor_events",
        sa.Column("id", sa.String(26), nullable=False),
        sa.Column("created_by", sa.String(26), nullable=False),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("starts_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["created_by"], ["users.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_mentor_events_created_by", "mentor_events", ["created_by"])

    op.create_table(
        "feedback",
        sa.Column("id", sa.String(26), nullable=False),
        sa.Column("user_id", sa.String(26), nullable=False),
        sa.Column("feedback_type", sa.String(20), nullable=False),
        sa.Column("reference_id", sa.String(26), nullable=False),
        sa.Column("rating", sa.SmallInteger(), nullable=False),
        sa.Column("comment", sa.Text(), nullable=True),
        sa.Column("mentor_response", sa.Text(), nullable=True),
        sa.Column("mentor_response_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("responded_by", sa.String(26), nullable=True),
        sa.Column("status", sa.String(20), nullable=False, server_default="active"),
        *_timestamps(),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"]),
        sa.ForeignKeyConstraint(["responded_by"], ["users.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint(
            "user_id", "feedback_type", "reference_id", name="uq_feedback_user_reference"
        ),
        sa.CheckConstraint("rating >= 1 AND rating <= 5", name="check_feedback_rating_range"),
        sa.CheckConstraint(
            "feedback_type IN ('booking', 'article', 'event')", name="ck_feedback_type"
        ),
        sa.CheckConstraint("status IN ('active', 'archived')", name="ck_feedback_status"),
    )
    op.create_index("ix_feedback_id", "feedback", ["id"])
    op.create_index("ix_feedback_user_id", "feedback", ["user_id"])
    op.create_index("ix_feedback_reference", "feedback", ["feedback_type", "reference_id"])

    print("Booking lifecycle tables created")


def downgrade() -> None:
    """Drop the booking lifecycle schema."""
    print("Dropping booking lifecycle tables...")

    op.drop_table("feedback")
    op.drop_table("mentor_events")
    op.drop_table("posts")
    # Dropping the table drops the exclusion constraint with it.
    op.drop_table("bookings")
    op.drop_table("availability_slots")
    op.drop_table("offerings")
    op.drop_table("mentee_profiles")
    op.drop_table("mentor_profiles")
    op.drop_table("users")
