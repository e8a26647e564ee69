"""Tests for the SubscriptionTier model."""

from saasbilling.models.billing import SubscriptionTier


class TestTierCatalog:
  def test_seed_defaults_is_idempotent(self, db_session):
    first = SubscriptionTier.seed_defaults(db_session)
    second = SubscriptionTier.seed_defaults(db_session)

    assert len(first) == 3
    assert second == []

  def test_active_tiers_in_display_order(self, db_session, tiers):
    names = [t.name for t in SubscriptionTier.get_active(db_session)]
    assert names == ["Starter", "Pro", "Enterprise"]

  def test_inactive_tiers_hidden(self, db_session, tiers):
    tiers["Enterprise"].is_active = False
    db_session.commit()

    names = [t.name for t in SubscriptionTier.get_active(db_session)]
    assert "Enterprise" not in names


class TestTierPricing:
  def test_cycle_prices(self, tiers):
    pro = tiers["Pro"]
    assert pro.get_price_cents("MONTHLY") == 2900
    assert pro.get_price_cents("YEARLY") == 29000

  def test_yearly_falls_back_to_twelve_months(self, db_session):
    tier = SubscriptionTier(name="Custom", price_monthly_cents=1000, features=[])
    db_session.add(tier)
    db_session.commit()

    assert tier.get_price_cents("YEARLY") == 12000

  def test_metric_limits(self, tiers):
    starter = tiers["Starter"]
    assert starter.get_metric_limit("STORAGE_GB") == 10
    assert starter.get_metric_limit("api_calls") == 10000
    assert starter.get_metric_limit("SEATS") is None
