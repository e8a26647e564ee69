"""Tests for the tier catalog and checkout endpoints."""

from saasbilling.exceptions import PaymentProviderError
from saasbilling.models.billing import Invoice, Subscription

ADDRESS = {"line1": "1 Main St", "city": "Austin", "postalCode": "78701", "country": "US"}


def subscribe_body(tier_id, **overrides):
  body = {"tierId": tier_id, "billingCycle": "MONTHLY", "billingAddress": ADDRESS}
  body.update(overrides)
  return body


class TestTiers:
  def test_tiers_are_public_and_ordered(self, client, tiers):
    response = client.get("/billing/tiers")

    assert response.status_code == 200
    names = [tier["name"] for tier in response.json()]
    assert names == ["Starter", "Pro", "Enterprise"]

  def test_tier_prices_in_dollars(self, client, tiers):
    pro = next(t for t in client.get("/billing/tiers").json() if t["name"] == "Pro")
    assert pro["price_monthly"] == 29.0
    assert pro["price_yearly"] == 290.0
    assert pro["limits"]["max_api_calls"] == 100000

  def test_inactive_tiers_hidden(self, client, db_session, tiers):
    tiers["Enterprise"].is_active = False
    db_session.commit()

    names = [tier["name"] for tier in client.get("/billing/tiers").json()]
    assert "Enterprise" not in names


class TestSubscribe:
  def test_requires_session(self, client, tiers):
    response = client.post("/billing/subscribe", json=subscribe_body(tiers["Pro"].id))
    assert response.status_code == 401

  def test_checkout_success(self, user_client, db_session, tiers):
    response = user_client.post(
      "/billing/subscribe", json=subscribe_body(tiers["Pro"].id)
    )

    assert response.status_code == 201
    data = response.json()
    assert data["success"] is True
    assert data["message"] == "Subscribed to Pro"
    assert data["subscription"]["status"] == "ACTIVE"
    assert data["subscription"]["tier"]["name"] == "Pro"
    assert data["invoice"]["total"] == 29.0
    assert data["checkout_url"] == "https://invoice.stripe.com/i/in_test123"

  def test_missing_address(self, user_client, tiers):
    response = user_client.post(
      "/billing/subscribe", json={"tierId": tiers["Pro"].id, "billingCycle": "MONTHLY"}
    )
    assert response.status_code == 400
    assert response.json()["detail"] == "Billing address is required"

  def test_unknown_tier(self, user_client, tiers):
    response = user_client.post("/billing/subscribe", json=subscribe_body("tier_nope"))
    assert response.status_code == 404
    assert response.json()["detail"] == "Subscription tier not found"

  def test_duplicate_subscription(self, user_client, tiers):
    user_client.post("/billing/subscribe", json=subscribe_body(tiers["Pro"].id))

    response = user_client.post(
      "/billing/subscribe", json=subscribe_body(tiers["Starter"].id)
    )
    assert response.status_code == 400
    assert response.json()["detail"] == "User already has an active subscription"

  def test_provider_failure(self, user_client, db_session, tiers, mock_payment_provider):
    mock_payment_provider.create_subscription.side_effect = PaymentProviderError(
      "create_subscription", "card declined"
    )

    response = user_client.post(
      "/billing/subscribe", json=subscribe_body(tiers["Pro"].id)
    )

    assert response.status_code == 400
    assert response.json()["detail"] == "Payment processing error. Please try again."
    assert Subscription.get_by_user_id(user_client.user.id, db_session) is None
    assert Invoice.count_for_user(user_client.user.id, db_session) == 0

  def test_missing_price_is_server_error(self, user_client, tiers):
    response = user_client.post(
      "/billing/subscribe", json=subscribe_body(tiers["Enterprise"].id)
    )
    assert response.status_code == 500
    assert response.json()["detail"] == "Payment configuration error"


class TestCurrentSubscription:
  def test_no_subscription(self, user_client):
    response = user_client.get("/billing/subscription")
    assert response.status_code == 404
    assert response.json()["detail"] == "No subscription found"

  def test_after_checkout(self, user_client, tiers):
    user_client.post("/billing/subscribe", json=subscribe_body(tiers["Pro"].id))

    data = user_client.get("/billing/subscription").json()
    assert data["billing_cycle"] == "MONTHLY"
    assert data["tier"]["price"] == 29.0
    assert "Usage analytics" in data["features"]
