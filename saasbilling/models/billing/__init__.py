"""Billing models package.

Separated from IAM models to isolate billing concerns.
"""

from .audit_log import AuditAction, AuditLog
from .invoice import Invoice, InvoiceStatus
from .payment_method import PaymentMethod
from .refund import RefundRequest, RefundStatus
from .subscription import BillingCycle, Subscription, SubscriptionStatus
from .tier import SubscriptionTier
from .usage import UsageRecord

__all__ = [
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
