"""initial relay schema

Revision ID: 0001_woomanager
Revises:
Create Date: 2026-10-19
"""

from alembic import op
import sqlalchemy as sa


revision = "0001_woomanager"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "stores",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("username", sa.String(), nullable=False),
        sa.Column("password_hash", sa.String(), nullable=False, server_default=""),
        sa.Column("app_user_id", sa.String(), nullable=False),
        sa.Column("store_url", sa.String(), nullable=False, server_default=""),
        sa.Column("consumer_key", sa.String(), nullable=False, server_default=""),
        sa.Column("consumer_secret", sa.String(), nullable=False, server_default=""),
        sa.Column("woo_key_id", sa.String(), nullable=False, server_default=""),
        sa.Column("razorpay_key_id", sa.String(), nullable=False, server_default=""),
        sa.Column("razorpay_key_secret_enc", sa.String(), nullable=False, server_default=""),
        sa.Column("razorpay_skipped", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_stores_username", "stores", ["username"], unique=True)
    op.create_index("ix_stores_app_user_id", "stores", ["app_user_id"], unique=True)

    op.create_table(
        "webhook_registrations",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("store_id", sa.Integer(), nullable=False),
        sa.Column("webhook_id", sa.String(), nullable=False),
        sa.Column("topic", sa.String(), nullable=False),
        sa.Column("delivery_url", sa.String(), nullable=False),
        sa.Column("status", sa.String(), nullable=False, server_default="active"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.ForeignKeyConstraint(["store_id"], ["stores.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_webhook_registrations_store_id", "webhook_registrations", ["store_id"])

    op.create_table(
        "notification_events",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("store_id", sa.Integer(), nullable=False),
        sa.Column("topic", sa.String(), nullable=False),
        sa.Column("resource", sa.String(), nullable=False),
        sa.Column("event", sa.String(), nullable=False),
        sa.Column("payload", sa.JSON(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    # History is read newest-first per store.
    op.create_index("ix_notification_events_store_created", "notification_events", ["store_id", "created_at"])


def downgrade() -> None:
    op.drop_index("ix_notification_events_store_created", table_name="notification_events")
    op.drop_table("notification_events")
    op.drop_index("ix_webhook_registrations_store_id", table_name="webhook_registrations")
    op.drop_table("webhook_registrations")
    op.drop_index("ix_stores_app_user_id", table_name="stores")
    op.drop_index("ix_stores_username", table_name="stores")
    op.drop_table("stores")
