"""Tests for the SES email adapter."""

from datetime import datetime, timezone
from unittest.mock import Mock, patch

import pytest
from botocore.exceptions import ClientError

from saasbilling.operations.aws.ses import SESEmailService


@pytest.fixture
def mock_ses_client():
  return Mock()


@pytest.fixture
def ses_service(mock_ses_client):
  """SES email service with a mocked boto3 client."""
  with patch("saasbilling.operations.aws.ses.boto3") as mock_boto3:
    mock_boto3.client.return_value = mock_ses_client

    with patch("saasbilling.operations.aws.ses.env") as mock_env:
      mock_env.AWS_REGION = "us-east-1"
      mock_env.EMAIL_FROM_ADDRESS = "billing@example.com"
      mock_env.EMAIL_FROM_NAME = "Acme Billing"
      mock_env.APP_URL = "https://app.example.com/"

      service = SESEmailService()
      service.ses_client = mock_ses_client
      return service


class TestSESEmailService:
  @pytest.mark.asyncio
  async def test_subscription_confirmation(self, ses_service, mock_ses_client):
    mock_ses_client.send_email.return_value = {"MessageId": "msg-123"}

    result = await ses_service.send_subscription_confirmation(
      user_email="user@example.com",
      user_name="Test User",
      tier_name="Pro",
      billing_cycle_label="Monthly",
      amount=29.0,
      renewal_date=datetime(2026, 2, 1, tzinfo=timezone.utc),
      checkout_url="https://invoice.stripe.com/i/in_1",
    )

    assert result is True
    call_args = mock_ses_client.send_email.call_args
    assert call_args.kwargs["Source"] == "Acme Billing <billing@example.com>"
    assert call_args.kwargs["Destination"]["ToAddresses"] == ["user@example.com"]

    message = call_args.kwargs["Message"]
    assert message["Subject"]["Data"] == "Your Pro subscription is confirmed"
    assert "$29.00" in message["Body"]["Text"]["Data"]
    assert "February 01, 2026" in message["Body"]["Text"]["Data"]
    assert "https://invoice.stripe.com/i/in_1" in message["Body"]["Html"]["Data"]
    assert any(
      tag["Name"] == "EmailType" and tag["Value"] == "subscription_confirmation"
      for tag in call_args.kwargs["Tags"]
    )

  @pytest.mark.asyncio
  async def test_invitation_contains_password_and_login_link(
    self, ses_service, mock_ses_client
  ):
    mock_ses_client.send_email.return_value = {"MessageId": "msg-456"}

    assert await ses_service.send_invitation("new@example.com", "New", "Tmp#Pass1234")

    text = mock_ses_client.send_email.call_args.kwargs["Message"]["Body"]["Text"]["Data"]
    assert "Tmp#Pass1234" in text
    assert "https://app.example.com/login" in text

  @pytest.mark.asyncio
  async def test_user_name_is_escaped_in_html(self, ses_service, mock_ses_client):
    mock_ses_client.send_email.return_value = {"MessageId": "msg-789"}

    await ses_service.send_payment_received("x@example.com", "<script>", 9.0)

    html = mock_ses_client.send_email.call_args.kwargs["Message"]["Body"]["Html"]["Data"]
    assert "<script>" not in html
    assert "&lt;script&gt;" in html

  @pytest.mark.asyncio
  async def test_missing_from_address(self, ses_service, mock_ses_client):
    ses_service.from_address = ""

    result = await ses_service.send_refund_approved("x@example.com", "X", 29.0)

    assert result is False
    mock_ses_client.send_email.assert_not_called()

  @pytest.mark.asyncio
  async def test_client_error_returns_false(self, ses_service, mock_ses_client):
    mock_ses_client.send_email.side_effect = ClientError(
      {"Error": {"Code": "MessageRejected", "Message": "Email address is not verified"}},
      "SendEmail",
    )

    assert await ses_service.send_payment_failed("x@example.com", "X", 29.0) is False

  @pytest.mark.asyncio
  async def test_unexpected_error_returns_false(self, ses_service, mock_ses_client):
    mock_ses_client.send_email.side_effect = RuntimeError("connection reset")

    assert await ses_service.send_payment_received("x@example.com", "X", 9.0) is False
