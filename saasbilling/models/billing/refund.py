"""Refund request model - user-submitted, admin-approved refunds."""

from datetime import datetime, timezone
from enum import Enum
from typing import Optional, Sequence

from sqlalchemy import Column, String, Integer, DateTime, ForeignKey, Index
from sqlalchemy.orm import Session, relationship

from ...database import Model
from ...logger import get_logger
from ...utils.ulid import generate_prefixed_ulid

logger = get_logger(__name__)


class RefundStatus(str, Enum):
  """Refund request states."""

  PENDING = "PENDING"
  APPROVED = "APPROVED"
  REFUNDED = "REFUNDED"
  REJECTED = "REJECTED"


# A request in one of these states blocks another request for the same invoice
OPEN_REFUND_STATUSES = (RefundStatus.PENDING.value, RefundStatus.APPROVED.value)


class RefundRequest(Model):
  """A request to refund an invoice."""

  __tablename__ = "refund_requests"

  id = Column(String, primary_key=True, default=lambda: generate_prefixed_ulid("ref"))
  user_id = Column(String, ForeignKey("users.id"), nullable=False)
  invoice_id = Column(String, ForeignKey("invoices.id"), nullable=False)

  amount_cents = Column(Integer, nullable=False)
  reason = Column(String, nullable=False)
  status = Column(String, default=RefundStatus.PENDING.value, nullable=False)

  stripe_refund_id = Column(String, nullable=True)
  admin_notes = Column(String, nullable=True)
  processed_by = Column(String, ForeignKey("users.id"), nullable=True)
  processed_at = Column(DateTime, nullable=True)

  created_at = Column(
    DateTime, default=lambda: datetime.now(timezone.utc), nullable=False
  )
  updated_at = Column(
    DateTime,
    default=lambda: datetime.now(timezone.utc),
    onupdate=lambda: datetime.now(timezone.utc),
    nullable=False,
  )

  user = relationship("User", foreign_keys=[user_id])
  invoice = relationship("Invoice")

  __table_args__ = (
    Index("idx_refund_requests_user", "user_id"),
    Index("idx_refund_requests_status", "status"),
  )

  def __repr__(self) -> str:
    return f"<RefundRequest {self.id} {self.status} ${self.amount_cents / 100:.2f}>"

  @property
  def amount(self) -> float:
    return self.amount_cents / 100

  @classmethod
  def create(
    cls,
    session: Session,
    user_id: str,
    invoice_id: str,
    amount_cents: int,
    reason: str,
  ) -> "RefundRequest":
    refund = cls(
      user_id=user_id,
      invoice_id=invoice_id,
      amount_cents=amount_cents,
      reason=reason,
      status=RefundStatus.PENDING.value,
    )
    session.add(refund)
    session.commit()
    session.refresh(refund)

    logger.info(f"Created refund request {refund.id} for invoice {invoice_id}")
    return refund

  @classmethod
  def get_by_id(cls, refund_id: str, session: Session) -> Optional["RefundRequest"]:
    return session.query(cls).filter(cls.id == refund_id).first()

  @classmethod
  def get_for_user(cls, user_id: str, session: Session) -> Sequence["RefundRequest"]:
    return (
      session.query(cls)
      .filter(cls.user_id == user_id)
      .order_by(cls.created_at.desc())
      .all()
    )

  @classmethod
  def get_open_for_invoice(
    cls, invoice_id: str, session: Session
  ) -> Optional["RefundRequest"]:
    return (
      session.query(cls)
      .filter(cls.invoice_id == invoice_id, cls.status.in_(OPEN_REFUND_STATUSES))
      .first()
    )

  @classmethod
  def get_by_stripe_refund_ids(
    cls, stripe_refund_ids: Sequence[str], session: Session
  ) -> Optional["RefundRequest"]:
    if not stripe_refund_ids:
      return None
    return (
      session.query(cls).filter(cls.stripe_refund_id.in_(list(stripe_refund_ids))).first()
    )

  @classmethod
  def find_open_by_amount(
    cls, amount_cents: int, session: Session, user_id: Optional[str] = None
  ) -> Optional["RefundRequest"]:
    """Oldest pending or approved request for an amount, optionally for one user."""
    query = session.query(cls).filter(
      cls.amount_cents == amount_cents, cls.status.in_(OPEN_REFUND_STATUSES)
    )
    if user_id:
      query = query.filter(cls.user_id == user_id)
    return query.order_by(cls.created_at.asc()).first()

  @classmethod
  def count_pending(cls, session: Session) -> int:
    return session.query(cls).filter(cls.status == RefundStatus.PENDING.value).count()

  @classmethod
  def get_recent_pending(
    cls, session: Session, limit: int = 10
  ) -> Sequence["RefundRequest"]:
    return (
      session.query(cls)
      .filter(cls.status == RefundStatus.PENDING.value)
      .order_by(cls.created_at.desc())
      .limit(limit)
      .all()
    )

  def is_pending(self) -> bool:
    return self.status == RefundStatus.PENDING.value

  def mark_refunded(
    self,
    session: Session,
    stripe_refund_id: Optional[str] = None,
    processed_by: Optional[str] = None,
  ) -> None:
    now = datetime.now(timezone.utc)
    self.status = RefundStatus.REFUNDED.value
    if stripe_refund_id:
      self.stripe_refund_id = stripe_refund_id
    if processed_by:
      self.processed_by = processed_by
    if self.processed_at is None:
      self.processed_at = now
    self.updated_at = now

    session.commit()
    session.refresh(self)

    logger.info(f"Refund request {self.id} refunded ({self.stripe_refund_id})")

  def reject(
    self, session: Session, processed_by: str, admin_notes: Optional[str] = None
  ) -> None:
    now = datetime.now(timezone.utc)
    self.status = RefundStatus.REJECTED.value
    self.admin_notes = admin_notes
    self.processed_by = processed_by
    self.processed_at = now
    self.updated_at = now

    session.commit()
    session.refresh(self)

    logger.info(f"Refund request {self.id} rejected by {processed_by}")
