"""Refund workflow: user requests, admin approval and rejection."""

import logging
from typing import Optional, Sequence

from sqlalchemy.orm import Session

from ...exceptions import EntityNotFoundError, PaymentProviderError, ValidationError
from ...middleware.auth.rbac import Permission, require_permission
from ...models.billing import AuditAction, AuditLog, Invoice, RefundRequest
from ...models.iam import User
from ..aws.ses import SESEmailService
from .payment_provider import PaymentProvider

logger = logging.getLogger(__name__)


class RefundService:
  """Service for creating and resolving refund requests."""

  def __init__(
    self,
    session: Session,
    payment_provider: Optional[PaymentProvider] = None,
    email_service: Optional[SESEmailService] = None,
  ):
    self.session = session
    self.payment_provider = payment_provider
    self.email_service = email_service

  def request_refund(
    self, user: User, invoice_id: Optional[str], reason: Optional[str]
  ) -> RefundRequest:
    """
    Create a PENDING refund request for the full total of one of the user's invoices.

    Raises:
        ValidationError: Missing invoice or reason, or an open request already exists
        EntityNotFoundError: The invoice does not belong to the user
    """
    if not invoice_id or not invoice_id.strip():
      raise ValidationError("Please select an invoice", field="invoice_id")
    if not reason or not reason.strip():
      raise ValidationError("Please provide a reason for the refund", field="reason")

    invoice = Invoice.get_by_id_for_user(invoice_id.strip(), user.id, self.session)
    if invoice is None:
      raise EntityNotFoundError(invoice_id, "Invoice")

    if RefundRequest.get_open_for_invoice(invoice.id, self.session) is not None:
      raise ValidationError(
        "A refund request for this invoice is already in progress",
        field="invoice_id",
      )

    refund = RefundRequest.create(
      self.session,
      user_id=user.id,
      invoice_id=invoice.id,
      amount_cents=invoice.total_cents,
      reason=reason.strip(),
    )
    AuditLog.log_event(
      self.session,
      action=AuditAction.REFUND_REQUESTED,
      entity="RefundRequest",
      entity_id=refund.id,
      user_id=user.id,
      new_values={"invoice_id": invoice.id, "amount": refund.amount},
    )
    return refund

  def list_for_user(self, user: User) -> Sequence[RefundRequest]:
    return RefundRequest.get_for_user(user.id, self.session)

  def _load_pending(self, refund_id: str) -> RefundRequest:
    refund = RefundRequest.get_by_id(refund_id, self.session)
    if refund is None:
      raise EntityNotFoundError(refund_id, "Refund request")
    if not refund.is_pending():
      raise ValidationError(
        f"Refund request is already {refund.status}", field="refund_id"
      )
    return refund

  async def approve(
    self, admin: User, refund_id: str, ip_address: Optional[str] = None
  ) -> RefundRequest:
    """
    Refund through the provider and mark the request REFUNDED.

    On provider failure the request is left untouched and PaymentProviderError
    propagates; there is no automatic retry.
    """
    require_permission(admin.role, Permission.MANAGE_BILLING)
    refund = self._load_pending(refund_id)

    invoice = refund.invoice
    if invoice is None or not invoice.stripe_invoice_id:
      raise PaymentProviderError(
        "create_refund", f"invoice for refund {refund.id} has no provider invoice id"
      )

    provider_refund_id = self.payment_provider.create_refund(
      invoice.stripe_invoice_id,
      refund.amount_cents,
      metadata={"refund_request_id": refund.id, "user_id": refund.user_id},
    )

    refund.mark_refunded(
      self.session, stripe_refund_id=provider_refund_id, processed_by=admin.id
    )
    AuditLog.log_event(
      self.session,
      action=AuditAction.REFUND_APPROVED,
      entity="RefundRequest",
      entity_id=refund.id,
      user_id=admin.id,
      old_values={"status": "PENDING"},
      new_values={"status": refund.status, "stripe_refund_id": provider_refund_id},
      ip_address=ip_address,
    )

    user = refund.user
    if user is not None and self.email_service is not None:
      try:
        await self.email_service.send_refund_approved(
          user.email, user.name, refund.amount
        )
      except Exception as e:
        logger.warning(f"Failed to send refund approval email to {user.id}: {e}")

    logger.info(f"Refund {refund.id} approved by {admin.id}")
    return refund

  def reject(
    self,
    admin: User,
    refund_id: str,
    reason: Optional[str] = None,
    ip_address: Optional[str] = None,
  ) -> RefundRequest:
    """Mark a pending request REJECTED with the admin's note."""
    require_permission(admin.role, Permission.MANAGE_BILLING)
    refund = self._load_pending(refund_id)

    refund.reject(self.session, processed_by=admin.id, admin_notes=reason)
    AuditLog.log_event(
      self.session,
      action=AuditAction.REFUND_REJECTED,
      entity="RefundRequest",
      entity_id=refund.id,
      user_id=admin.id,
      old_values={"status": "PENDING"},
      new_values={"status": refund.status, "admin_notes": reason},
      ip_address=ip_address,
    )
    return refund
