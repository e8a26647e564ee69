"""Audit log - append-only record of who changed what."""

from datetime import datetime, timezone
from enum import Enum
from typing import Optional, Sequence

from sqlalchemy import Column, String, DateTime, JSON, ForeignKey, Index
from sqlalchemy.orm import Session

from ...database import Model
from ...logger import get_logger
from ...utils.ulid import generate_prefixed_ulid

logger = get_logger(__name__)


class AuditAction(str, Enum):
  """Audited actions."""

  SUBSCRIPTION_CREATED = "SUBSCRIPTION_CREATED"
  SUBSCRIPTION_UPDATED = "SUBSCRIPTION_UPDATED"
  SUBSCRIPTION_CANCELLED = "SUBSCRIPTION_CANCELLED"
  REFUND_REQUESTED = "REFUND_REQUESTED"
  REFUND_APPROVED = "REFUND_APPROVED"
  REFUND_REJECTED = "REFUND_REJECTED"
  USER_CREATED = "USER_CREATED"


class AuditLog(Model):
  """Audit log entry with before/after snapshots and request origin."""

  __tablename__ = "audit_logs"

  id = Column(String, primary_key=True, default=lambda: generate_prefixed_ulid("aud"))
  user_id = Column(String, ForeignKey("users.id"), nullable=True)
  action = Column(String, nullable=False)
  entity = Column(String, nullable=False)
  entity_id = Column(String, nullable=True)
  old_values = Column(JSON, nullable=True)
  new_values = Column(JSON, nullable=True)
  ip_address = Column(String, nullable=True)
  user_agent = Column(String, nullable=True)
  created_at = Column(
    DateTime, default=lambda: datetime.now(timezone.utc), nullable=False
  )

  __table_args__ = (
    Index("idx_audit_logs_entity", "entity", "entity_id"),
    Index("idx_audit_logs_user", "user_id"),
    Index("idx_audit_logs_created", "created_at"),
  )

  def __repr__(self) -> str:
    return f"<AuditLog {self.action} {self.entity}:{self.entity_id}>"

  @classmethod
  def log_event(
    cls,
    session: Session,
    action: AuditAction | str,
    entity: str,
    entity_id: Optional[str] = None,
    user_id: Optional[str] = None,
    old_values: Optional[dict] = None,
    new_values: Optional[dict] = None,
    ip_address: Optional[str] = None,
    user_agent: Optional[str] = None,
  ) -> "AuditLog":
    """Create an audit log entry."""
    action_str = action.value if isinstance(action, AuditAction) else action
    entry = cls(
      user_id=user_id,
      action=action_str,
      entity=entity,
      entity_id=entity_id,
      old_values=old_values,
      new_values=new_values,
      ip_address=ip_address,
      user_agent=user_agent,
    )

    session.add(entry)
    session.commit()

    logger.info(
      f"Audit log: {action_str}",
      extra={
        "action": action_str,
        "user_id": user_id,
        "entity_id": entity_id,
        "metadata": {"entity": entity},
      },
    )

    return entry

  @classmethod
  def get_entity_history(
    cls, session: Session, entity: str, entity_id: str, limit: int = 100
  ) -> Sequence["AuditLog"]:
    return (
      session.query(cls)
      .filter(cls.entity == entity, cls.entity_id == entity_id)
      .order_by(cls.created_at.desc())
      .limit(limit)
      .all()
    )
