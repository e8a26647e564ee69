"""Tests for webhook event handling."""

from datetime import datetime, timezone

import pytest

from saasbilling.models.billing import (
  Invoice,
  InvoiceStatus,
  RefundRequest,
  RefundStatus,
  Subscription,
  SubscriptionStatus,
)
from saasbilling.operations.billing import RefundService, WebhookEventProcessor

PERIOD_END = 1767225600  # 2026-01-01T00:00:00Z


def event(event_type, obj, event_id="evt_test"):
  return {"id": event_id, "type": event_type, "data": {"object": obj}}


@pytest.fixture
def processor(db_session, mock_email_service):
  return WebhookEventProcessor(db_session, mock_email_service)


@pytest.fixture
def customer(db_session, test_user):
  test_user.set_stripe_customer_id("cus_hook", db_session)
  return test_user


@pytest.fixture
def subscription(db_session, customer, tiers):
  return Subscription.open_for_user(
    db_session,
    user_id=customer.id,
    tier_id=tiers["Pro"].id,
    status=SubscriptionStatus.ACTIVE,
    billing_cycle="MONTHLY",
    stripe_subscription_id="sub_hook",
  )


@pytest.fixture
def paid_invoice(db_session, customer):
  return Invoice.create(
    db_session,
    user_id=customer.id,
    subtotal_cents=2900,
    total_cents=2900,
    stripe_invoice_id="in_hook",
  )


class TestDispatch:
  @pytest.mark.asyncio
  async def test_unhandled_event_ignored(self, processor):
    handled = await processor.process(event("customer.created", {"id": "cus_1"}))
    assert handled is False

  @pytest.mark.asyncio
  async def test_subscription_created_is_a_no_op(self, processor, db_session):
    handled = await processor.process(
      event("customer.subscription.created", {"id": "sub_new"})
    )
    assert handled is True
    assert db_session.query(Subscription).count() == 0


class TestSubscriptionEvents:
  @pytest.mark.asyncio
  async def test_updated_maps_status_and_period_end(
    self, processor, db_session, subscription
  ):
    await processor.process(
      event(
        "customer.subscription.updated",
        {"id": "sub_hook", "status": "past_due", "current_period_end": PERIOD_END},
      )
    )

    db_session.refresh(subscription)
    assert subscription.status == SubscriptionStatus.PAST_DUE.value
    assert subscription.renewal_date.replace(tzinfo=timezone.utc) == datetime(
      2026, 1, 1, tzinfo=timezone.utc
    )

  @pytest.mark.asyncio
  async def test_updated_reads_period_end_from_items(
    self, processor, db_session, subscription
  ):
    await processor.process(
      event(
        "customer.subscription.updated",
        {
          "id": "sub_hook",
          "status": "active",
          "items": {"data": [{"current_period_end": PERIOD_END}]},
        },
      )
    )

    db_session.refresh(subscription)
    assert subscription.renewal_date.year == 2026

  @pytest.mark.asyncio
  async def test_updated_unknown_subscription_skipped(self, processor, subscription):
    await processor.process(
      event("customer.subscription.updated", {"id": "sub_other", "status": "canceled"})
    )
    assert subscription.status == SubscriptionStatus.ACTIVE.value

  @pytest.mark.asyncio
  async def test_deleted_cancels(self, processor, db_session, subscription):
    await processor.process(event("customer.subscription.deleted", {"id": "sub_hook"}))

    db_session.refresh(subscription)
    assert subscription.status == SubscriptionStatus.CANCELLED.value
    assert subscription.cancelled_at is not None

  @pytest.mark.asyncio
  async def test_replayed_update_is_idempotent(self, processor, db_session, subscription):
    payload = event(
      "customer.subscription.updated",
      {"id": "sub_hook", "status": "active", "current_period_end": PERIOD_END},
    )
    await processor.process(payload)
    await processor.process(payload)

    db_session.refresh(subscription)
    assert subscription.status == SubscriptionStatus.ACTIVE.value
    assert db_session.query(Subscription).count() == 1


class TestInvoiceEvents:
  def invoice_payload(self, **overrides):
    payload = {
      "id": "in_new",
      "customer": "cus_hook",
      "subscription": "sub_hook",
      "number": "STRIPE-1001",
      "subtotal": 2900,
      "tax": 0,
      "total": 2900,
      "period_start": PERIOD_END - 2592000,
      "period_end": PERIOD_END,
      "hosted_invoice_url": "https://invoice.stripe.com/i/in_new",
    }
    payload.update(overrides)
    return payload

  @pytest.mark.asyncio
  async def test_created_mirrors_invoice(self, processor, db_session, subscription):
    await processor.process(event("invoice.created", self.invoice_payload()))

    invoice = Invoice.get_by_stripe_invoice_id("in_new", db_session)
    assert invoice is not None
    assert invoice.user_id == subscription.user_id
    assert invoice.subscription_id == subscription.id
    assert invoice.invoice_number == "STRIPE-1001"
    assert invoice.total == 29.0
    assert invoice.description == "Subscription Invoice"

  @pytest.mark.asyncio
  async def test_created_replay_does_not_duplicate(
    self, processor, db_session, subscription
  ):
    await processor.process(event("invoice.created", self.invoice_payload()))
    await processor.process(event("invoice.created", self.invoice_payload()))

    assert Invoice.count_for_user(subscription.user_id, db_session) == 1

  @pytest.mark.asyncio
  async def test_created_unknown_customer_skipped(self, processor, db_session, customer):
    await processor.process(
      event("invoice.created", self.invoice_payload(customer="cus_unknown"))
    )
    assert Invoice.get_by_stripe_invoice_id("in_new", db_session) is None

  @pytest.mark.asyncio
  async def test_payment_succeeded_marks_paid(
    self, processor, db_session, paid_invoice, mock_email_service
  ):
    await processor.process(
      event(
        "invoice.payment_succeeded",
        {"id": "in_hook", "customer": "cus_hook", "total": 2900},
      )
    )

    db_session.refresh(paid_invoice)
    assert paid_invoice.status == InvoiceStatus.PAID.value
    assert paid_invoice.paid_at is not None
    mock_email_service.send_payment_received.assert_awaited_once_with(
      "user@example.com", "Test User", 29.0
    )

  @pytest.mark.asyncio
  async def test_payment_failed_marks_failed(
    self, processor, db_session, paid_invoice, mock_email_service
  ):
    await processor.process(
      event(
        "invoice.payment_failed",
        {"id": "in_hook", "customer": "cus_hook", "total": 2900},
      )
    )

    db_session.refresh(paid_invoice)
    assert paid_invoice.status == InvoiceStatus.FAILED.value
    mock_email_service.send_payment_failed.assert_awaited_once()

  @pytest.mark.asyncio
  async def test_email_failure_does_not_fail_handler(
    self, processor, db_session, paid_invoice, mock_email_service
  ):
    mock_email_service.send_payment_received.side_effect = RuntimeError("SES down")

    handled = await processor.process(
      event("invoice.payment_succeeded", {"id": "in_hook", "customer": "cus_hook"})
    )

    assert handled is True
    db_session.refresh(paid_invoice)
    assert paid_invoice.status == InvoiceStatus.PAID.value

  @pytest.mark.asyncio
  async def test_replayed_payment_succeeded_is_idempotent(
    self, processor, db_session, paid_invoice
  ):
    payload = {"id": "in_hook", "customer": "cus_hook", "total": 2900}
    await processor.process(event("invoice.payment_succeeded", payload))
    db_session.refresh(paid_invoice)
    first_paid_at = paid_invoice.paid_at

    await processor.process(event("invoice.payment_succeeded", payload))

    db_session.refresh(paid_invoice)
    assert paid_invoice.status == InvoiceStatus.PAID.value
    assert paid_invoice.paid_at == first_paid_at
    assert db_session.query(Invoice).count() == 1


class TestChargeRefunded:
  @pytest.mark.asyncio
  async def test_matches_open_request_by_amount(
    self, processor, db_session, customer, paid_invoice
  ):
    refund = RefundRequest.create(
      db_session,
      user_id=customer.id,
      invoice_id=paid_invoice.id,
      amount_cents=2900,
      reason="Duplicate charge",
    )

    await processor.process(
      event(
        "charge.refunded",
        {
          "id": "ch_1",
          "customer": "cus_hook",
          "amount_refunded": 2900,
          "refunds": {"data": [{"id": "re_hook"}]},
        },
      )
    )

    db_session.refresh(refund)
    assert refund.status == RefundStatus.REFUNDED.value
    assert refund.stripe_refund_id == "re_hook"
    assert refund.processed_at is not None

  @pytest.mark.asyncio
  async def test_no_matching_request(self, processor, db_session, customer, paid_invoice):
    refund = RefundRequest.create(
      db_session,
      user_id=customer.id,
      invoice_id=paid_invoice.id,
      amount_cents=2900,
      reason="Duplicate charge",
    )

    await processor.process(
      event("charge.refunded", {"id": "ch_2", "customer": "cus_hook", "amount_refunded": 500})
    )

    db_session.refresh(refund)
    assert refund.status == RefundStatus.PENDING.value

  @pytest.mark.asyncio
  async def test_refund_from_approval_leaves_other_requests_alone(
    self,
    processor,
    db_session,
    customer,
    admin_user,
    mock_payment_provider,
    mock_email_service,
  ):
    requests = []
    for stripe_invoice_id in ("in_a", "in_b"):
      invoice = Invoice.create(
        db_session,
        user_id=customer.id,
        subtotal_cents=2900,
        total_cents=2900,
        stripe_invoice_id=stripe_invoice_id,
        status=InvoiceStatus.PAID,
      )
      requests.append(
        RefundRequest.create(
          db_session,
          user_id=customer.id,
          invoice_id=invoice.id,
          amount_cents=2900,
          reason="Charged twice",
        )
      )
    approved, untouched = requests
    mock_payment_provider.create_refund.return_value = "re_a"
    service = RefundService(db_session, mock_payment_provider, mock_email_service)
    await service.approve(admin_user, approved.id)

    await processor.process(
      event(
        "charge.refunded",
        {
          "id": "ch_a",
          "customer": "cus_hook",
          "amount_refunded": 2900,
          "refunds": {"data": [{"id": "re_a"}]},
        },
      )
    )

    db_session.refresh(approved)
    db_session.refresh(untouched)
    assert approved.status == RefundStatus.REFUNDED.value
    assert approved.stripe_refund_id == "re_a"
    assert untouched.status == RefundStatus.PENDING.value
    assert untouched.stripe_refund_id is None
    mock_payment_provider.create_refund.assert_called_once()
