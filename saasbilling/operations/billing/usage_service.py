"""Usage metering against plan limits."""

import logging
from typing import Dict, Optional

from sqlalchemy.orm import Session

from ...config import env
from ...exceptions import ValidationError
from ...models.billing import Subscription, UsageRecord

logger = logging.getLogger(__name__)


class UsageService:
  """Record usage samples and compare trailing totals with plan limits.

  Limits are informational: exceeding one logs a warning and nothing else.
  """

  def __init__(self, session: Session, window_days: Optional[int] = None):
    self.session = session
    self.window_days = window_days or env.USAGE_WINDOW_DAYS

  def track(self, user_id: str, metric: Optional[str], value: Optional[float]) -> UsageRecord:
    """
    Append a usage sample, then check the metric against the user's plan.

    Raises:
        ValidationError: Blank metric or missing/negative value
    """
    metric = (metric or "").strip()
    if not metric:
      raise ValidationError("Metric is required", field="metric")
    if value is None or value < 0:
      raise ValidationError("Value must be a non-negative number", field="value")

    sample = UsageRecord.record(self.session, user_id, metric, float(value))
    self.check_limit(user_id, metric)
    return sample

  def check_limit(self, user_id: str, metric: str) -> Optional[bool]:
    """
    Compare the trailing total for a metric with the plan limit.

    Returns:
        True if the limit is exceeded, False if within it, None when there is
        no subscription or the metric is not limited
    """
    subscription = Subscription.get_by_user_id(user_id, self.session)
    if subscription is None or subscription.tier is None:
      return None

    limit = subscription.tier.get_metric_limit(metric)
    if limit is None:
      return None

    total = UsageRecord.sum_for_metric(self.session, user_id, metric, self.window_days)
    if total > limit:
      logger.warning(
        f"User {user_id} exceeded {metric} limit: {total} > {limit}",
        extra={
          "user_id": user_id,
          "action": "usage_limit_exceeded",
          "metadata": {"metric": metric, "total": total, "limit": limit},
        },
      )
      return True
    return False

  def current_usage(self, user_id: str) -> Dict[str, float]:
    """Per-metric totals over the trailing window."""
    return UsageRecord.totals_by_metric(self.session, user_id, self.window_days)
