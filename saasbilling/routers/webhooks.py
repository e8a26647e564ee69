"""Payment provider webhook receiver."""

from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.orm import Session

from ..database import get_db_session
from ..logger import get_logger, log_auth_event
from ..middleware.auth.dependencies import get_client_ip
from ..operations.aws.ses import SESEmailService, get_email_service
from ..operations.billing import (
  PaymentProvider,
  WebhookEventProcessor,
  get_payment_provider,
)
from ..operations.billing.payment_provider import get_field

logger = get_logger(__name__)

router = APIRouter(prefix="/webhooks", tags=["Webhooks"])


@router.post(
  "/payment-provider",
  status_code=status.HTTP_200_OK,
  summary="Payment Provider Webhook",
  description="""Receive Stripe webhook events.

Handled events:
- customer.subscription.created - logged only
- customer.subscription.updated - sync status and renewal date
- customer.subscription.deleted - mark the subscription cancelled
- invoice.created - record the provider invoice once
- invoice.payment_succeeded - mark the invoice paid
- invoice.payment_failed - mark the invoice failed
- charge.refunded - settle the matching refund request

**SECURITY**: No session is required. Every request must carry a valid
`stripe-signature` header; unsigned or tampered payloads are rejected
before anything is written.""",
  operation_id="handlePaymentProviderWebhook",
)
async def handle_payment_provider_webhook(
  request: Request,
  db: Session = Depends(get_db_session),
  payment_provider: PaymentProvider = Depends(get_payment_provider),
  email_service: SESEmailService = Depends(get_email_service),
):
  payload = await request.body()
  signature = request.headers.get("stripe-signature")
  client_ip = get_client_ip(request)

  if not signature:
    log_auth_event(
      "webhook_signature_missing",
      ip_address=client_ip,
      success=False,
      metadata={"payload_size_bytes": len(payload)},
    )
    raise HTTPException(status_code=400, detail="Missing stripe-signature header")

  try:
    event = payment_provider.verify_webhook(payload, signature)
  except ValueError as e:
    logger.error(f"Invalid webhook signature: {e}")
    log_auth_event(
      "webhook_signature_invalid",
      ip_address=client_ip,
      success=False,
      metadata={"payload_size_bytes": len(payload)},
    )
    raise HTTPException(status_code=400, detail="Invalid webhook signature")

  event_type = get_field(event, "type")
  event_id = get_field(event, "id")

  try:
    processor = WebhookEventProcessor(db, email_service)
    handled = await processor.process(event)
  except Exception as e:
    db.rollback()
    logger.error(
      f"Failed to process webhook {event_id} ({event_type}): {e}",
      exc_info=True,
      extra={"event_type": event_type, "entity_id": event_id},
    )
    raise HTTPException(
      status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
      detail="Failed to process webhook",
    )

  if handled:
    logger.info(
      f"Processed webhook {event_id}: {event_type}",
      extra={"event_type": event_type, "entity_id": event_id},
    )
  return {"received": True}
