"""Add push subscriptions, notifications and delivery log

Revision ID: 002_add_push_tables
Revises: 001_initial_tables
Create Date: 2026-10-19

"""
from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

revision: str = "002_add_push_tables"
down_revision: Union[str, None] = "001_initial_tables"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "push_subscriptions",
        sa.Column("id", sa.Integer(), primary_key=True, index=True),
        sa.Column("endpoint", sa.String(1000), nullable=False, unique=True),
        sa.Column("p256dh", sa.String(255), nullable=False),
        sa.Column("auth", sa.String(255), nullable=False),
        sa.Column("user_agent", sa.String(500), nullable=True),
        sa.Column("ip_address", sa.String(100), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_push_subscriptions_is_active", "push_subscriptions", ["is_active"])
    op.create_index("ix_push_subscriptions_created_at", "push_subscriptions", ["created_at"])

    op.create_table(
        "notifications",
        sa.Column("id", sa.Integer(), primary_key=True, index=True),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("body", sa.Text(), nullable=False),
        sa.Column("icon", sa.String(500), nullable=True),
        sa.Column("url", sa.String(1000), nullable=True),
        sa.Column("tag", sa.String(100), nullable=True),
        sa.Column("require_interaction", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("sent_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("success_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("error_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("open_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("admin_email", sa.String(255), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("sent_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_notifications_created_at", "notifications", ["created_at"])
    op.create_index("ix_notifications_admin_email", "notifications", ["admin_email"])

    op.create_table(
        "notification_delivery_log",
        sa.Column("id", sa.Integer(), primary_key=True, index=True),
        sa.Column(
            "notification_id",
            sa.Integer(),
            sa.ForeignKey("notifications.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "subscription_id",
            sa.Integer(),
            sa.ForeignKey("push_subscriptions.id", ondelete="CASCADE"),
            nullable=True,
        ),
        sa.Column("status", sa.String(20), nullable=False, server_default="sent"),
        sa.Column("error_message", sa.Text(), nullable=True),
        sa.Column("sent_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("opened_at", sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint("status IN ('sent', 'failed', 'opened')", name="ck_delivery_log_status"),
    )
    op.create_index(
        "ix_notification_delivery_log_notification_id", "notification_delivery_log", ["notification_id"]
    )
    op.create_index(
        "ix_notification_delivery_log_subscription_id", "notification_delivery_log", ["subscription_id"]
    )


def downgrade() -> None:
    op.drop_index("ix_notification_delivery_log_subscription_id", "notification_delivery_log")
    op.drop_index("ix_notification_delivery_log_notification_id", "notification_delivery_log")
    op.drop_table("notification_delivery_log")
    op.drop_index("ix_notifications_admin_email", "notifications")
    op.drop_index("ix_notifications_created_at", "notifications")
    op.drop_table("notifications")
    op.drop_index("ix_push_subscriptions_created_at", "push_subscriptions")
    op.drop_index("ix_push_subscriptions_is_active", "push_subscriptions")
    op.drop_table("push_subscriptions")
