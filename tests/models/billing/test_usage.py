"""Tests for usage records."""

from datetime import datetime, timedelta, timezone

from saasbilling.models.billing import UsageRecord


class TestUsageRecord:
  def test_sum_over_window(self, db_session, test_user):
    UsageRecord.record(db_session, test_user.id, "STORAGE_GB", 4.0)
    UsageRecord.record(db_session, test_user.id, "STORAGE_GB", 6.5)
    UsageRecord.record(
      db_session,
      test_user.id,
      "STORAGE_GB",
      100.0,
      timestamp=datetime.now(timezone.utc) - timedelta(days=45),
    )

    assert UsageRecord.sum_for_metric(db_session, test_user.id, "STORAGE_GB", 30) == 10.5

  def test_sum_without_samples_is_zero(self, db_session, test_user):
    assert UsageRecord.sum_for_metric(db_session, test_user.id, "API_CALLS", 30) == 0.0

  def test_totals_by_metric(self, db_session, test_user):
    UsageRecord.record(db_session, test_user.id, "API_CALLS", 10)
    UsageRecord.record(db_session, test_user.id, "API_CALLS", 5)
    UsageRecord.record(db_session, test_user.id, "STORAGE_GB", 2)

    totals = UsageRecord.totals_by_metric(db_session, test_user.id, 30)

    assert totals == {"API_CALLS": 15.0, "STORAGE_GB": 2.0}
    assert UsageRecord.count_for_user(test_user.id, db_session) == 3
