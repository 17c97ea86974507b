"""init schema

Revision ID: 0001_init
Revises:
Create Date: 2026-10-19
"""
from alembic import op
import sqlalchemy as sa


revision = "0001_init"
down_revision = None
branch_labels = None
depends_on = None


def _timestamps():
    return [
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
    ]


def upgrade():
    op.create_table(
        "app_users",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(length=160), nullable=False),
        sa.Column("email", sa.String(length=200), nullable=False),
        sa.Column("role", sa.String(length=20), nullable=False, server_default="tenant"),
        sa.Column("phone", sa.String(length=40), nullable=True),
        sa.Column("password_hash", sa.String(length=255), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_app_users_email", "app_users", ["email"], unique=True)

    op.create_table(
        "audit_events",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("actor_user_id", sa.Integer(), sa.ForeignKey("app_users.id"), nullable=True),
        sa.Column("action", sa.String(length=80), nullable=False),
        sa.Column("entity_type", sa.String(length=80), nullable=False),
        sa.Column("entity_id", sa.String(length=80), nullable=False),
        sa.Column("before_json", sa.Text(), nullable=True),
        sa.Column("after_json", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
    )

    op.create_table(
        "properties",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("owner_id", sa.Integer(), sa.ForeignKey("app_users.id"), nullable=False),
        sa.Column("title", sa.String(length=200), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("street", sa.String(length=255), nullable=False),
        sa.Column("city", sa.String(length=120), nullable=False),
        sa.Column("state", sa.String(length=120), nullable=False),
        sa.Column("zip_code", sa.String(length=20), nullable=False),
        sa.Column("country", sa.String(length=80), nullable=False, server_default="India"),
        sa.Column("longitude", sa.Float(), nullable=False),
        sa.Column("latitude", sa.Float(), nullable=False),
        sa.Column("rent", sa.Float(), nullable=False),
        sa.Column("bedrooms", sa.Integer(), nullable=False),
        sa.Column("bathrooms", sa.Integer(), nullable=False),
        sa.Column("area", sa.Float(), nullable=False),
        sa.Column("property_type", sa.String(length=30), nullable=False, server_default="apartment"),
        sa.Column("amenities", sa.JSON(), nullable=False),
        sa.Column("images", sa.JSON(), nullable=False),
        sa.Column("available_from", sa.Date(), nullable=True),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="available"),
        sa.Column("current_tenant_id", sa.Integer(), sa.ForeignKey("app_users.id"), nullable=True),
        sa.Column("average_rating", sa.Float(), nullable=False, server_default="0"),
        sa.Column("total_reviews", sa.Integer(), nullable=False, server_default="0"),
        *_timestamps(),
    )
    op.create_index("ix_properties_owner_id", "properties", ["owner_id"])
    op.create_index("ix_properties_city", "properties", ["city"])
    op.create_index("ix_properties_status_rent", "properties", ["status", "rent"])

    op.create_table(
        "applications",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("property_id", sa.Integer(), sa.ForeignKey("properties.id", ondelete="CASCADE"), nullable=False),
        sa.Column("tenant_id", sa.Integer(), sa.ForeignKey("app_users.id"), nullable=False),
        sa.Column("owner_id", sa.Integer(), sa.ForeignKey("app_users.id"), nullable=False),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="pending"),
        sa.Column("message", sa.String(length=500), nullable=False),
        sa.Column("move_in_date", sa.Date(), nullable=False),
        sa.Column("lease_duration", sa.Integer(), nullable=False),
        sa.Column("rejection_reason", sa.String(length=300), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_applications_property_tenant", "applications", ["property_id", "tenant_id"])
    op.create_index("ix_applications_owner_status", "applications", ["owner_id", "status"])
    op.create_index("ix_applications_tenant_status", "applications", ["tenant_id", "status"])

    op.create_table(
        "leases",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("property_id", sa.Integer(), sa.ForeignKey("properties.id", ondelete="CASCADE"), nullable=False),
        sa.Column("tenant_id", sa.Integer(), sa.ForeignKey("app_users.id"), nullable=False),
        sa.Column("owner_id", sa.Integer(), sa.ForeignKey("app_users.id"), nullable=False),
        sa.Column("application_id", sa.Integer(), sa.ForeignKey("applications.id"), nullable=False),
        sa.Column("start_date", sa.Date(), nullable=False),
        sa.Column("end_date", sa.Date(), nullable=False),
        sa.Column("monthly_rent", sa.Float(), nullable=False),
        sa.Column("security_deposit", sa.Float(), nullable=False, server_default="0"),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="active"),
        sa.Column("terms", sa.String(length=2000), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_leases_application_id", "leases", ["application_id"])
    op.create_index("ix_leases_property_status", "leases", ["property_id", "status"])
    op.create_index("ix_leases_tenant_status", "leases", ["tenant_id", "status"])
    op.create_index("ix_leases_owner_status", "leases", ["owner_id", "status"])

    op.create_table(
        "rent_payments",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("lease_id", sa.Integer(), sa.ForeignKey("leases.id", ondelete="CASCADE"), nullable=True),
        sa.Column("property_id", sa.Integer(), sa.ForeignKey("properties.id", ondelete="CASCADE"), nullable=False),
        sa.Column("tenant_id", sa.Integer(), sa.ForeignKey("app_users.id"), nullable=False),
        sa.Column("owner_id", sa.Integer(), sa.ForeignKey("app_users.id"), nullable=False),
        sa.Column("month_number", sa.Integer(), nullable=True),
        sa.Column("amount", sa.Float(), nullable=False),
        sa.Column("due_date", sa.Date(), nullable=False),
        sa.Column("payment_date", sa.DateTime(), nullable=True),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="pending"),
        sa.Column("payment_method", sa.String(length=20), nullable=False, server_default="other"),
        sa.Column("transaction_id", sa.String(length=120), nullable=False, server_default=""),
        sa.Column("notes", sa.Text(), nullable=False, server_default=""),
        sa.Column("payment_proof", sa.String(length=255), nullable=True),
        sa.Column("verification_status", sa.String(length=30), nullable=False, server_default="not_submitted"),
        sa.Column("verification_notes", sa.Text(), nullable=False, server_default=""),
        sa.Column("verified_by_id", sa.Integer(), sa.ForeignKey("app_users.id"), nullable=True),
        sa.Column("verified_at", sa.DateTime(), nullable=True),
        sa.Column("last_reminder_sent_at", sa.DateTime(), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint("lease_id", "month_number", name="uq_rent_payments_lease_month"),
    )
    op.create_index("ix_rent_payments_lease_id", "rent_payments", ["lease_id"])
    op.create_index("ix_rent_payments_property_id", "rent_payments", ["property_id"])
    op.create_index("ix_rent_payments_tenant_status", "rent_payments", ["tenant_id", "status"])
    op.create_index("ix_rent_payments_owner_status", "rent_payments", ["owner_id", "status"])
    op.create_index("ix_rent_payments_status_due", "rent_payments", ["status", "due_date"])

    op.create_table(
        "chat_messages",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("sender_id", sa.Integer(), sa.ForeignKey("app_users.id"), nullable=False),
        sa.Column("receiver_id", sa.Integer(), sa.ForeignKey("app_users.id"), nullable=False),
        sa.Column("property_id", sa.Integer(), sa.ForeignKey("properties.id", ondelete="SET NULL"), nullable=True),
        sa.Column("message", sa.Text(), nullable=False),
        sa.Column("image", sa.String(length=255), nullable=False, server_default=""),
        sa.Column("seen", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_chat_messages_pair_created", "chat_messages", ["sender_id", "receiver_id", "created_at"])
    op.create_index("ix_chat_messages_receiver_seen", "chat_messages", ["receiver_id", "seen"])

    op.create_table(
        "reviews",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("property_id", sa.Integer(), sa.ForeignKey("properties.id", ondelete="CASCADE"), nullable=False),
        sa.Column("tenant_id", sa.Integer(), sa.ForeignKey("app_users.id"), nullable=False),
        sa.Column("rating", sa.Integer(), nullable=False),
        sa.Column("title", sa.String(length=100), nullable=False),
        sa.Column("comment", sa.String(length=1000), nullable=False),
        sa.Column("pros", sa.JSON(), nullable=False),
        sa.Column("cons", sa.JSON(), nullable=False),
        sa.Column("verified", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        *_timestamps(),
        sa.UniqueConstraint("tenant_id", "property_id", name="uq_reviews_tenant_property"),
    )
    op.create_index("ix_reviews_property_id", "reviews", ["property_id"])


def downgrade():
    op.drop_table("reviews")
    op.drop_table("chat_messages")
    op.drop_table("rent_payments")
    op.drop_table("leases")
    op.drop_table("applications")
    op.drop_table("properties")
    op.drop_table("audit_events")
    op.drop_table("app_users")
