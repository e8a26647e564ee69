"""Usage records - append-only metering samples."""

from datetime import datetime, timedelta, timezone
from typing import Dict, Optional

from sqlalchemy import Column, String, Float, DateTime, ForeignKey, Index, func
from sqlalchemy.orm import Session

from ...database import Model
from ...utils.ulid import generate_prefixed_ulid


class UsageRecord(Model):
  """A single usage sample. Rows are never updated or deleted."""

  __tablename__ = "usage_records"

  id = Column(String, primary_key=True, default=lambda: generate_prefixed_ulid("use"))
  user_id = Column(String, ForeignKey("users.id"), nullable=False)
  metric = Column(String, nullable=False)
  value = Column(Float, nullable=False)
  timestamp = Column(
    DateTime, default=lambda: datetime.now(timezone.utc), nullable=False
  )

  __table_args__ = (
    Index("idx_usage_records_user_metric_ts", "user_id", "metric", "timestamp"),
  )

  def __repr__(self) -> str:
    return f"<UsageRecord {self.user_id} {self.metric}={self.value}>"

  @classmethod
  def record(
    cls,
    session: Session,
    user_id: str,
    metric: str,
    value: float,
    timestamp: Optional[datetime] = None,
  ) -> "UsageRecord":
    sample = cls(
      user_id=user_id,
      metric=metric,
      value=value,
      timestamp=timestamp or datetime.now(timezone.utc),
    )
    session.add(sample)
    session.commit()
    session.refresh(sample)
    return sample

  @staticmethod
  def window_start(window_days: int) -> datetime:
    return datetime.now(timezone.utc) - timedelta(days=window_days)

  @classmethod
  def sum_for_metric(
    cls, session: Session, user_id: str, metric: str, window_days: int
  ) -> float:
    """Sum of a metric's samples over the trailing window."""
    total = (
      session.query(func.coalesce(func.sum(cls.value), 0.0))
      .filter(
        cls.user_id == user_id,
        cls.metric == metric,
        cls.timestamp >= cls.window_start(window_days),
      )
      .scalar()
    )
    return float(total or 0.0)

  @classmethod
  def totals_by_metric(
    cls, session: Session, user_id: str, window_days: int
  ) -> Dict[str, float]:
    """Per-metric sums over the trailing window."""
    rows = (
      session.query(cls.metric, func.sum(cls.value))
      .filter(cls.user_id == user_id, cls.timestamp >= cls.window_start(window_days))
      .group_by(cls.metric)
      .order_by(cls.metric.asc())
      .all()
    )
    return {metric: float(total or 0.0) for metric, total in rows}

  @classmethod
  def count_for_user(cls, user_id: str, session: Session) -> int:
    return session.query(cls).filter(cls.user_id == user_id).count()
