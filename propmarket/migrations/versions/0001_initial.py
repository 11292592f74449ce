"""initial schema: users, properties, bookings, live grouping, payments, outbox

Revision ID: 0001_initial
Revises:
Create Date: 2026-10-19
"""
from __future__ import annotations

from alembic import op
import sqlalchemy as sa

revision = "0001_initial"
down_revision = None
branch_labels = None
depends_on = None


def _ts(name: str, nullable: bool = True) -> sa.Column:
    return sa.Column(name, sa.DateTime(timezone=True), nullable=nullable)


def upgrade():
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("phone", sa.String(20)),
        sa.Column("user_type", sa.String(20), nullable=False, server_default="individual"),
        sa.Column("is_subscribed", sa.Boolean(), nullable=False, server_default=sa.false()),
        _ts("subscription_expiry"),
        sa.Column("subscription_plan", sa.String(50)),
        sa.Column("subscription_price", sa.Numeric(10, 2)),
        _ts("subscribed_at"),
        _ts("created_at", nullable=False),
        _ts("updated_at", nullable=False),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    op.create_table(
        "properties",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("type", sa.String(50), nullable=False),
        sa.Column("location", sa.String(255), nullable=False),
        sa.Column("price", sa.String(100), nullable=False),
        sa.Column("bhk", sa.String(20)),
        sa.Column("description", sa.Text()),
        sa.Column("facilities", sa.JSON(), nullable=False),
        sa.Column("image_url", sa.Text()),
        sa.Column("images", sa.JSON(), nullable=False),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="CASCADE",
                                                          name="fk_properties_user_id_users")),
        sa.Column("user_type", sa.String(20), nullable=False),
        sa.Column("company_name", sa.String(255)),
        sa.Column("project_name", sa.String(255)),
        sa.Column("total_units", sa.String(50)),
        sa.Column("completion_date", sa.String(50)),
        sa.Column("rera_number", sa.String(100)),
        _ts("subscription_expiry"),
        sa.Column("status", sa.String(20), nullable=False, server_default="active"),
        _ts("created_at", nullable=False),
        _ts("expired_at"),
        _ts("updated_at", nullable=False),
    )
    op.create_index("ix_properties_user_id", "properties", ["user_id"])
    op.create_index("ix_properties_status", "properties", ["status"])

    op.create_table(
        "bookings",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("property_id", sa.Integer(), sa.ForeignKey("properties.id", ondelete="CASCADE",
                                                              name="fk_bookings_property_id_properties")),
        sa.Column("property_title", sa.String(255), nullable=False),
        sa.Column("property_location", sa.String(255), nullable=False),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="CASCADE",
                                                          name="fk_bookings_user_id_users")),
        sa.Column("user_email", sa.String(255), nullable=False),
        sa.Column("visit_date", sa.Date(), nullable=False),
        sa.Column("visit_time", sa.String(20), nullable=False),
        sa.Column("number_of_people", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("person1_name", sa.String(255), nullable=False),
        sa.Column("person2_name", sa.String(255)),
        sa.Column("person3_name", sa.String(255)),
        sa.Column("pickup_address", sa.Text()),
        sa.Column("payment_method", sa.String(50), nullable=False, server_default="postvisit"),
        sa.Column("payment_status", sa.String(20), nullable=False, server_default="pending"),
        sa.Column("razorpay_order_id", sa.String(64)),
        sa.Column("razorpay_payment_id", sa.String(255)),
        sa.Column("payment_amount", sa.Numeric(10, 2)),
        sa.Column("payment_currency", sa.String(10), nullable=False, server_default="INR"),
        _ts("payment_timestamp"),
        sa.Column("status", sa.String(20), nullable=False, server_default="pending"),
        _ts("created_at", nullable=False),
        _ts("updated_at", nullable=False),
        sa.UniqueConstraint("razorpay_payment_id", name="uq_bookings_razorpay_payment_id"),
    )
    op.create_index("ix_bookings_user_id", "bookings", ["user_id"])
    op.create_index("ix_bookings_property_id", "bookings", ["property_id"])
    op.create_index("ix_bookings_razorpay_order_id", "bookings", ["razorpay_order_id"])

    op.create_table(
        "live_grouping_properties",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("developer", sa.String(255), nullable=False),
        sa.Column("location", sa.String(255), nullable=False),
        sa.Column("original_price", sa.String(100), nullable=False),
        sa.Column("group_price", sa.String(100), nullable=False),
        sa.Column("discount", sa.String(50)),
        sa.Column("savings", sa.String(100)),
        sa.Column("type", sa.String(50), nullable=False),
        sa.Column("total_slots", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("filled_slots", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("min_buyers", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("time_left", sa.String(50)),
        sa.Column("status", sa.String(50), nullable=False, server_default="Active"),
        sa.Column("benefits", sa.JSON(), nullable=False),
        sa.Column("area", sa.String(100)),
        sa.Column("possession", sa.String(100)),
        sa.Column("rera_number", sa.String(100)),
        sa.Column("facilities", sa.JSON(), nullable=False),
        sa.Column("description", sa.Text()),
        sa.Column("advantages", sa.JSON()),
        sa.Column("group_details", sa.JSON()),
        sa.Column("images", sa.JSON(), nullable=False),
        sa.Column("image", sa.Text()),
        sa.Column("created_by", sa.Integer(), sa.ForeignKey("users.id", ondelete="SET NULL",
                                                             name="fk_live_grouping_properties_created_by_users")),
        _ts("created_at", nullable=False),
        _ts("updated_at", nullable=False),
    )
    op.create_index("ix_live_grouping_properties_status", "live_grouping_properties", ["status"])

    op.create_table(
        "payments",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="CASCADE",
                                                          name="fk_payments_user_id_users")),
        sa.Column("purpose", sa.String(16), nullable=False, server_default="subscription"),
        sa.Column("plan", sa.String(32)),
        sa.Column("amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("currency", sa.String(8), nullable=False, server_default="INR"),
        sa.Column("provider", sa.String(16), nullable=False, server_default="razorpay"),
        sa.Column("provider_order_id", sa.String(64), nullable=False),
        sa.Column("provider_payment_id", sa.String(64)),
        sa.Column("status", sa.String(16), nullable=False, server_default="pending"),
        _ts("paid_at"),
        _ts("created_at", nullable=False),
        sa.UniqueConstraint("provider_order_id", name="uq_payments_provider_order_id"),
        sa.UniqueConstraint("provider_payment_id", name="uq_payments_provider_payment_id"),
    )
    op.create_index("ix_payments_user_id", "payments", ["user_id"])

    op.create_table(
        "notifications",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("kind", sa.String(32), nullable=False),
        sa.Column("recipient", sa.String(255), nullable=False),
        sa.Column("subject", sa.String(255), nullable=False),
        sa.Column("html", sa.Text(), nullable=False),
        sa.Column("status", sa.String(16), nullable=False, server_default="pending"),
        sa.Column("attempts", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("last_error", sa.Text()),
        _ts("created_at", nullable=False),
        _ts("sent_at"),
    )
    op.create_index("ix_notifications_status", "notifications", ["status"])
    op.create_index("ix_notifications_kind", "notifications", ["kind"])


def downgrade():
    op.drop_table("notifications")
    op.drop_table("payments")
    op.drop_table("live_grouping_properties")
    op.drop_table("bookings")
    op.drop_table("properties")
    op.drop_table("users")
