from .payment_provider import (
  PaymentProvider,
  StripePaymentProvider,
  get_payment_provider,
)
from .refund_service import RefundService
from .subscription_service import CheckoutResult, SubscriptionService
from .usage_service import UsageService
from .webhook_handlers import WebhookEventProcessor

__all__ = [
  "CheckoutResult",
  "PaymentProvider",
  "RefundService",
  "StripePaymentProvider",
  "SubscriptionService",
  "UsageService",
  "WebhookEventProcessor",
  "get_payment_provider",
]
