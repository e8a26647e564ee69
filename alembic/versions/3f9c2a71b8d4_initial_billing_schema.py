"""initial billing schema

Revision ID: 3f9c2a71b8d4
Revises:
Create Date: 2025-01-14 10:12:40.518221

"""

from datetime import datetime, timezone

import sqlalchemy as sa
from alembic import op

from saasbilling.config import DEFAULT_SUBSCRIPTION_TIERS
from saasbilling.utils import generate_prefixed_ulid

# revision identifiers, used by Alembic.
revision = "3f9c2a71b8d4"
down_revision = None
branch_labels = None
depends_on = None


def _timestamps():
  return [
    sa.Column("created_at", sa.DateTime(), nullable=False),
    sa.Column("updated_at", sa.DateTime(), nullable=False),
  ]


def upgrade() -> None:
  op.create_table(
    "users",
    sa.Column("id", sa.String(), nullable=False),
    sa.Column("email", sa.String(), nullable=False),
    sa.Column("name", sa.String(), nullable=False),
    sa.Column("password_hash", sa.String(), nullable=False),
    sa.Column("role", sa.String(), nullable=False),
    sa.Column("is_active", sa.Boolean(), nullable=False),
    sa.Column("stripe_customer_id", sa.String(), nullable=True),
    *_timestamps(),
    sa.PrimaryKeyConstraint("id"),
    sa.UniqueConstraint("stripe_customer_id"),
  )
  op.create_index(op.f("ix_users_email"), "users", ["email"], unique=True)

  tiers = op.create_table(
    "subscription_tiers",
    sa.Column("id", sa.String(), nullable=False),
    sa.Column("name", sa.String(), nullable=False),
    sa.Column("description", sa.String(), nullable=True),
    sa.Column("price_monthly_cents", sa.Integer(), nullable=False),
    sa.Column("price_yearly_cents", sa.Integer(), nullable=True),
    sa.Column("max_storage_gb", sa.Integer(), nullable=True),
    sa.Column("max_api_calls", sa.Integer(), nullable=True),
    sa.Column("max_projects", sa.Integer(), nullable=True),
    sa.Column("max_users", sa.Integer(), nullable=True),
    sa.Column("features", sa.JSON(), nullable=False),
    sa.Column("is_active", sa.Boolean(), nullable=False),
    sa.Column("display_order", sa.Integer(), nullable=False),
    *_timestamps(),
    sa.PrimaryKeyConstraint("id"),
    sa.UniqueConstraint("name"),
  )

  op.create_table(
    "subscriptions",
    sa.Column("id", sa.String(), nullable=False),
    sa.Column("user_id", sa.String(), nullable=False),
    sa.Column("tier_id", sa.String(), nullable=False),
    sa.Column("status", sa.String(), nullable=False),
    sa.Column("billing_cycle", sa.String(), nullable=False),
    sa.Column("start_date", sa.DateTime(), nullable=False),
    sa.Column("renewal_date", sa.DateTime(), nullable=True),
    sa.Column("trial_ends_at", sa.DateTime(), nullable=True),
    sa.Column("cancelled_at", sa.DateTime(), nullable=True),
    sa.Column("stripe_subscription_id", sa.String(), nullable=True),
    *_timestamps(),
    sa.ForeignKeyConstraint(["tier_id"], ["subscription_tiers.id"]),
    sa.ForeignKeyConstraint(["user_id"], ["users.id"]),
    sa.PrimaryKeyConstraint("id"),
    sa.UniqueConstraint("stripe_subscription_id"),
    sa.UniqueConstraint("user_id"),
  )
  op.create_index("idx_subscriptions_status", "subscriptions", ["status"])

  op.create_table(
    "invoices",
    sa.Column("id", sa.String(), nullable=False),
    sa.Column("user_id", sa.String(), nullable=False),
    sa.Column("subscription_id", sa.String(), nullable=True),
    sa.Column("invoice_number", sa.String(), nullable=False),
    sa.Column("description", sa.String(), nullable=True),
    sa.Column("subtotal_cents", sa.Integer(), nullable=False),
    sa.Column("tax_cents", sa.Integer(), nullable=False),
    sa.Column("total_cents", sa.Integer(), nullable=False),
    sa.Column("status", sa.String(), nullable=False),
    sa.Column("period_start", sa.DateTime(), nullable=True),
    sa.Column("period_end", sa.DateTime(), nullable=True),
    sa.Column("due_date", sa.DateTime(), nullable=True),
    sa.Column("paid_at", sa.DateTime(), nullable=True),
    sa.Column("stripe_invoice_id", sa.String(), nullable=True),
    sa.Column("hosted_invoice_url", sa.String(), nullable=True),
    *_timestamps(),
    sa.ForeignKeyConstraint(["subscription_id"], ["subscriptions.id"]),
    sa.ForeignKeyConstraint(["user_id"], ["users.id"]),
    sa.PrimaryKeyConstraint("id"),
    sa.UniqueConstraint("invoice_number"),
    sa.UniqueConstraint("stripe_invoice_id"),
  )
  op.create_index("idx_invoices_user", "invoices", ["user_id"])
  op.create_index("idx_invoices_status", "invoices", ["status"])

  op.create_table(
    "refund_requests",
    sa.Column("id", sa.String(), nullable=False),
    sa.Column("user_id", sa.String(), nullable=False),
    sa.Column("invoice_id", sa.String(), nullable=False),
    sa.Column("amount_cents", sa.Integer(), nullable=False),
    sa.Column("reason", sa.String(), nullable=False),
    sa.Column("status", sa.String(), nullable=False),
    sa.Column("stripe_refund_id", sa.String(), nullable=True),
    sa.Column("admin_notes", sa.String(), nullable=True),
    sa.Column("processed_by", sa.String(), nullable=True),
    sa.Column("processed_at", sa.DateTime(), nullable=True),
    *_timestamps(),
    sa.ForeignKeyConstraint(["invoice_id"], ["invoices.id"]),
    sa.ForeignKeyConstraint(["processed_by"], ["users.id"]),
    sa.ForeignKeyConstraint(["user_id"], ["users.id"]),
    sa.PrimaryKeyConstraint("id"),
  )
  op.create_index("idx_refund_requests_user", "refund_requests", ["user_id"])
  op.create_index("idx_refund_requests_status", "refund_requests", ["status"])

  op.create_table(
    "usage_records",
    sa.Column("id", sa.String(), nullable=False),
    sa.Column("user_id", sa.String(), nullable=False),
    sa.Column("metric", sa.String(), nullable=False),
    sa.Column("value", sa.Float(), nullable=False),
    sa.Column("timestamp", sa.DateTime(), nullable=False),
    sa.ForeignKeyConstraint(["user_id"], ["users.id"]),
    sa.PrimaryKeyConstraint("id"),
  )
  op.create_index(
    "idx_usage_records_user_metric_ts",
    "usage_records",
    ["user_id", "metric", "timestamp"],
  )

  op.create_table(
    "audit_logs",
    sa.Column("id", sa.String(), nullable=False),
    sa.Column("user_id", sa.String(), nullable=True),
    sa.Column("action", sa.String(), nullable=False),
    sa.Column("entity", sa.String(), nullable=False),
    sa.Column("entity_id", sa.String(), nullable=True),
    sa.Column("old_values", sa.JSON(), nullable=True),
    sa.Column("new_values", sa.JSON(), nullable=True),
    sa.Column("ip_address", sa.String(), nullable=True),
    sa.Column("user_agent", sa.String(), nullable=True),
    sa.Column("created_at", sa.DateTime(), nullable=False),
    sa.ForeignKeyConstraint(["user_id"], ["users.id"]),
    sa.PrimaryKeyConstraint("id"),
  )
  op.create_index("idx_audit_logs_entity", "audit_logs", ["entity", "entity_id"])
  op.create_index("idx_audit_logs_user", "audit_logs", ["user_id"])
  op.create_index("idx_audit_logs_created", "audit_logs", ["created_at"])

  op.create_table(
    "payment_methods",
    sa.Column("id", sa.String(), nullable=False),
    sa.Column("user_id", sa.String(), nullable=False),
    sa.Column("stripe_payment_method_id", sa.String(), nullable=False),
    sa.Column("card_brand", sa.String(), nullable=True),
    sa.Column("card_last4", sa.String(), nullable=True),
    sa.Column("card_exp_month", sa.Integer(), nullable=True),
    sa.Column("card_exp_year", sa.Integer(), nullable=True),
    sa.Column("is_default", sa.Boolean(), nullable=False),
    *_timestamps(),
    sa.ForeignKeyConstraint(["user_id"], ["users.id"]),
    sa.PrimaryKeyConstraint("id"),
    sa.UniqueConstraint("stripe_payment_method_id"),
  )
  op.create_index(
    op.f("ix_payment_methods_user_id"), "payment_methods", ["user_id"], unique=False
  )

  now = datetime.now(timezone.utc)
  op.bulk_insert(
    tiers,
    [
      {
        "id": generate_prefixed_ulid("tier"),
        "is_active": True,
        "created_at": now,
        "updated_at": now,
        **definition,
      }
      for definition in DEFAULT_SUBSCRIPTION_TIERS
    ],
  )


def downgrade() -> None:
  op.drop_index(op.f("ix_payment_methods_user_id"), table_name="payment_methods")
  op.drop_table("payment_methods")
  op.drop_index("idx_audit_logs_created", table_name="audit_logs")
  op.drop_index("idx_audit_logs_user", table_name="audit_logs")
  op.drop_index("idx_audit_logs_entity", table_name="audit_logs")
  op.drop_table("audit_logs")
  op.drop_index("idx_usage_records_user_metric_ts", table_name="usage_records")
  op.drop_table("usage_records")
  op.drop_index("idx_refund_requests_status", table_name="refund_requests")
  op.drop_index("idx_refund_requests_user", table_name="refund_requests")
  op.drop_table("refund_requests")
  op.drop_index("idx_invoices_status", table_name="invoices")
  op.drop_index("idx_invoices_user", table_name="invoices")
  op.drop_table("invoices")
  op.drop_index("idx_subscriptions_status", table_name="subscriptions")
  op.drop_table("subscriptions")
  op.drop_table("subscription_tiers")
  op.drop_index(op.f("ix_users_email"), table_name="users")
  op.drop_table("users")
