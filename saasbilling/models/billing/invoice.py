"""Invoice model - local invoices for checkout and Stripe-created invoices."""

from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Optional, Sequence

from sqlalchemy import Column, String, Integer, DateTime, ForeignKey, Index, func
from sqlalchemy.orm import Session, relationship

from ...database import Model
from ...logger import get_logger
from ...utils.ulid import generate_prefixed_ulid

logger = get_logger(__name__)


class InvoiceStatus(str, Enum):
  """Invoice status states."""

  PENDING = "PENDING"
  SENT = "SENT"
  PAID = "PAID"
  FAILED = "FAILED"
  CANCELLED = "CANCELLED"


class Invoice(Model):
  """An invoice owed by a user. Amounts are stored in cents."""

  __tablename__ = "invoices"

  id = Column(String, primary_key=True, default=lambda: generate_prefixed_ulid("inv"))
  user_id = Column(String, ForeignKey("users.id"), nullable=False)
  subscription_id = Column(String, ForeignKey("subscriptions.id"), nullable=True)

  invoice_number = Column(String, unique=True, nullable=False)
  description = Column(String, nullable=True)

  subtotal_cents = Column(Integer, nullable=False)
  tax_cents = Column(Integer, default=0, nullable=False)
  total_cents = Column(Integer, nullable=False)

  status = Column(String, default=InvoiceStatus.PENDING.value, nullable=False)

  period_start = Column(DateTime, nullable=True)
  period_end = Column(DateTime, nullable=True)
  due_date = Column(DateTime, nullable=True)
  paid_at = Column(DateTime, nullable=True)

  stripe_invoice_id = Column(String, unique=True, nullable=True)
  hosted_invoice_url = Column(String, nullable=True)

  created_at = Column(
    DateTime, default=lambda: datetime.now(timezone.utc), nullable=False
  )
  updated_at = Column(
    DateTime,
    default=lambda: datetime.now(timezone.utc),
    onupdate=lambda: datetime.now(timezone.utc),
    nullable=False,
  )

  user = relationship("User", back_populates="invoices")

  __table_args__ = (
    Index("idx_invoices_user", "user_id"),
    Index("idx_invoices_status", "status"),
  )

  def __repr__(self) -> str:
    return f"<Invoice {self.invoice_number} total=${self.total_cents / 100:.2f}>"

  @property
  def subtotal(self) -> float:
    return self.subtotal_cents / 100

  @property
  def tax(self) -> float:
    return (self.tax_cents or 0) / 100

  @property
  def total(self) -> float:
    return self.total_cents / 100

  @classmethod
  def create(
    cls,
    session: Session,
    user_id: str,
    subtotal_cents: int,
    total_cents: int,
    tax_cents: int = 0,
    description: Optional[str] = None,
    subscription_id: Optional[str] = None,
    period_start: Optional[datetime] = None,
    period_end: Optional[datetime] = None,
    due_days: Optional[int] = None,
    due_date: Optional[datetime] = None,
    stripe_invoice_id: Optional[str] = None,
    hosted_invoice_url: Optional[str] = None,
    invoice_number: Optional[str] = None,
    status: InvoiceStatus = InvoiceStatus.PENDING,
  ) -> "Invoice":
    """
    Create an invoice.

    ``due_days`` sets the due date relative to the creation timestamp; an
    explicit ``due_date`` (from the provider) wins over it.
    """
    now = datetime.now(timezone.utc)
    if due_date is None and due_days is not None:
      due_date = now + timedelta(days=due_days)

    invoice = cls(
      user_id=user_id,
      subscription_id=subscription_id,
      invoice_number=invoice_number or cls._generate_invoice_number(session),
      description=description,
      subtotal_cents=subtotal_cents,
      tax_cents=tax_cents,
      total_cents=total_cents,
      status=status.value,
      period_start=period_start,
      period_end=period_end,
      due_date=due_date,
      stripe_invoice_id=stripe_invoice_id,
      hosted_invoice_url=hosted_invoice_url,
      created_at=now,
      updated_at=now,
    )

    session.add(invoice)
    session.commit()
    session.refresh(invoice)

    logger.info(f"Created invoice {invoice.invoice_number} for user {user_id}")

    return invoice

  @classmethod
  def _generate_invoice_number(cls, session: Session) -> str:
    """Generate unique invoice number."""
    now = datetime.now(timezone.utc)
    year = now.year
    month = now.month

    count = (
      session.query(cls)
      .filter(cls.invoice_number.like(f"INV-{year}-{month:02d}-%"))
      .count()
      + 1
    )

    return f"INV-{year}-{month:02d}-{count:04d}"

  @classmethod
  def get_by_stripe_invoice_id(
    cls, stripe_invoice_id: str, session: Session
  ) -> Optional["Invoice"]:
    return (
      session.query(cls).filter(cls.stripe_invoice_id == stripe_invoice_id).first()
    )

  @classmethod
  def get_for_user(
    cls, user_id: str, session: Session, limit: Optional[int] = None
  ) -> Sequence["Invoice"]:
    """A user's invoices, newest first."""
    query = (
      session.query(cls)
      .filter(cls.user_id == user_id)
      .order_by(cls.created_at.desc())
    )
    if limit:
      query = query.limit(limit)
    return query.all()

  @classmethod
  def get_by_id_for_user(
    cls, invoice_id: str, user_id: str, session: Session
  ) -> Optional["Invoice"]:
    return (
      session.query(cls)
      .filter(cls.id == invoice_id, cls.user_id == user_id)
      .first()
    )

  @classmethod
  def count_for_user(cls, user_id: str, session: Session) -> int:
    return session.query(cls).filter(cls.user_id == user_id).count()

  @classmethod
  def total_paid_cents(cls, session: Session, user_id: Optional[str] = None) -> int:
    """Sum of PAID invoice totals, across all users or for one user."""
    query = session.query(func.coalesce(func.sum(cls.total_cents), 0)).filter(
      cls.status == InvoiceStatus.PAID.value
    )
    if user_id:
      query = query.filter(cls.user_id == user_id)
    return int(query.scalar() or 0)

  @classmethod
  def mark_paid_by_stripe_id(
    cls, stripe_invoice_id: str, session: Session
  ) -> Sequence["Invoice"]:
    """Mark every invoice mirroring a provider invoice as PAID."""
    invoices = (
      session.query(cls).filter(cls.stripe_invoice_id == stripe_invoice_id).all()
    )
    now = datetime.now(timezone.utc)
    for invoice in invoices:
      invoice.status = InvoiceStatus.PAID.value
      if invoice.paid_at is None:
        invoice.paid_at = now
      invoice.updated_at = now
    session.commit()

    logger.info(f"Marked {len(invoices)} invoice(s) paid for {stripe_invoice_id}")
    return invoices

  @classmethod
  def mark_failed_by_stripe_id(
    cls, stripe_invoice_id: str, session: Session
  ) -> Sequence["Invoice"]:
    """Mark every invoice mirroring a provider invoice as FAILED."""
    invoices = (
      session.query(cls).filter(cls.stripe_invoice_id == stripe_invoice_id).all()
    )
    now = datetime.now(timezone.utc)
    for invoice in invoices:
      invoice.status = InvoiceStatus.FAILED.value
      invoice.updated_at = now
    session.commit()

    logger.info(f"Marked {len(invoices)} invoice(s) failed for {stripe_invoice_id}")
    return invoices
