# Importing the model modules registers every table on Model.metadata
from .iam import User, UserRole
from .billing import (
  AuditAction,
  AuditLog,
  BillingCycle,
  Invoice,
  InvoiceStatus,
  PaymentMethod,
  RefundRequest,
  RefundStatus,
  Subscription,
  SubscriptionStatus,
  SubscriptionTier,
  UsageRecord,
)

__all__ = [
  "User",
  "UserRole",
  "AuditAction",
  "AuditLog",
  "BillingCycle",
  "Invoice",
  "InvoiceStatus",
  "PaymentMethod",
  "RefundRequest",
  "RefundStatus",
  "Subscription",
  "SubscriptionStatus",
  "SubscriptionTier",
  "UsageRecord",
]
