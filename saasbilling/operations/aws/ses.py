"""AWS SES adapter for sending transactional billing emails."""

from datetime import datetime
from functools import lru_cache
from html import escape
from typing import Any, Optional

import boto3
from botocore.exceptions import ClientError

from saasbilling.config import env
from saasbilling.logger import logger


def _format_amount(amount: float) -> str:
  return f"${amount:,.2f}"


def _format_date(value: Optional[datetime]) -> str:
  return value.strftime("%B %d, %Y") if value else "N/A"


class SESEmailService:
  """Service for sending transactional emails via Amazon SES.

  Every send is best-effort: failures are logged and reported as False,
  never raised, so notifications cannot fail the operation that triggered
  them.
  """

  def __init__(self):
    """Initialize SES client."""
    self.ses_client = boto3.client("ses", region_name=env.AWS_REGION)
    self.from_address = env.EMAIL_FROM_ADDRESS
    self.from_name = env.EMAIL_FROM_NAME
    self.app_url = env.APP_URL.rstrip("/")

    if not self.from_address:
      logger.warning("EMAIL_FROM_ADDRESS not configured - emails will not be sent")

  def _wrap_html(self, heading: str, body_html: str, accent: str = "#007bff") -> str:
    return f"""
<!DOCTYPE html>
<html>
<head>
    <style>
        body {{ font-family: Arial, sans-serif; line-height: 1.6; color: #333; }}
        .container {{ max-width: 600px; margin: 0 auto; padding: 20px; }}
        .header {{ background-color: {accent}; color: white; padding: 20px; text-align: center; border-radius: 5px 5px 0 0; }}
        .content {{ padding: 30px; background-color: #f8f9fa; border: 1px solid #dee2e6; border-top: none; }}
        .button {{ display: inline-block; padding: 12px 30px; background-color: {accent}; color: white !important; text-decoration: none; border-radius: 5px; margin: 20px 0; font-weight: bold; }}
        .footer {{ text-align: center; padding: 20px; color: #6c757d; font-size: 12px; }}
    </style>
</head>
<body>
    <div class="container">
        <div class="header">
            <h1>{escape(heading)}</h1>
        </div>
        <div class="content">
{body_html}
        </div>
        <div class="footer">
            <p>&copy; {escape(self.from_name)}. All rights reserved.</p>
        </div>
    </div>
</body>
</html>
"""

  def _get_email_template(
    self, email_type: str, template_data: dict[str, Any]
  ) -> dict[str, str]:
    """Get email subject and bodies based on email type."""
    user_name = template_data.get("user_name") or "there"
    safe_name = escape(user_name)
    dashboard_url = f"{self.app_url}/dashboard"

    if email_type == "subscription_confirmation":
      tier = template_data.get("tier_name", "")
      cycle = template_data.get("billing_cycle_label", "Monthly")
      amount = _format_amount(template_data.get("amount", 0))
      renewal = _format_date(template_data.get("renewal_date"))
      checkout_url = template_data.get("checkout_url") or dashboard_url
      return {
        "subject": f"Your {tier} subscription is confirmed",
        "html": self._wrap_html(
          "Subscription Confirmed",
          f"""            <h2>Hi {safe_name},</h2>
            <p>Thanks for subscribing to the <strong>{escape(tier)}</strong> plan ({escape(cycle)}).</p>
            <p>Amount: <strong>{amount}</strong><br>Next renewal: {renewal}</p>
            <a href="{escape(checkout_url)}" class="button">Complete Payment</a>""",
        ),
        "text": (
          f"Hi {user_name},\n\n"
          f"Thanks for subscribing to the {tier} plan ({cycle}).\n"
          f"Amount: {amount}\nNext renewal: {renewal}\n\n"
          f"Complete your payment: {checkout_url}\n"
        ),
      }

    if email_type == "payment_received":
      amount = _format_amount(template_data.get("amount", 0))
      return {
        "subject": "Payment received",
        "html": self._wrap_html(
          "Payment Received",
          f"""            <h2>Hi {safe_name},</h2>
            <p>Your payment of <strong>{amount}</strong> has been received. Thank you!</p>
            <a href="{dashboard_url}" class="button">View Invoices</a>""",
          accent="#28a745",
        ),
        "text": (
          f"Hi {user_name},\n\nYour payment of {amount} has been received. "
          f"Thank you!\n\nView your invoices: {dashboard_url}\n"
        ),
      }

    if email_type == "payment_failed":
      amount = _format_amount(template_data.get("amount", 0))
      return {
        "subject": "Payment failed",
        "html": self._wrap_html(
          "Payment Failed",
          f"""            <h2>Hi {safe_name},</h2>
            <p>Your payment of <strong>{amount}</strong> failed. Please update your payment method.</p>
            <a href="{dashboard_url}" class="button">Update Payment Method</a>""",
          accent="#dc3545",
        ),
        "text": (
          f"Hi {user_name},\n\nYour payment of {amount} failed. "
          f"Please update your payment method: {dashboard_url}\n"
        ),
      }

    if email_type == "refund_approved":
      amount = _format_amount(template_data.get("amount", 0))
      return {
        "subject": "Your refund has been approved",
        "html": self._wrap_html(
          "Refund Approved",
          f"""            <h2>Hi {safe_name},</h2>
            <p>Your refund of <strong>{amount}</strong> has been approved and is on its way.</p>
            <p>Refunds usually appear on your statement within 5-10 business days.</p>""",
          accent="#28a745",
        ),
        "text": (
          f"Hi {user_name},\n\nYour refund of {amount} has been approved and is on its "
          "way.\nRefunds usually appear on your statement within 5-10 business days.\n"
        ),
      }

    if email_type == "invitation":
      login_url = f"{self.app_url}/login"
      password = template_data.get("temporary_password", "")
      return {
        "subject": f"You're invited to {self.from_name}",
        "html": self._wrap_html(
          "You're Invited",
          f"""            <h2>Hi {safe_name},</h2>
            <p>An account has been created for you.</p>
            <p>Email: <strong>{escape(template_data.get("email", ""))}</strong><br>
            Temporary password: <strong>{escape(password)}</strong></p>
            <p>Please change your password after your first login.</p>
            <a href="{login_url}" class="button">Log In</a>""",
        ),
        "text": (
          f"Hi {user_name},\n\nAn account has been created for you.\n"
          f"Email: {template_data.get('email', '')}\n"
          f"Temporary password: {password}\n\n"
          f"Log in at {login_url} and change your password.\n"
        ),
      }

    return {
      "subject": f"{self.from_name} Notification",
      "html": f"<p>{escape(str(template_data))}</p>",
      "text": str(template_data),
    }

  async def send_email(
    self, email_type: str, to_email: str, template_data: dict[str, Any]
  ) -> bool:
    """
    Send an email via Amazon SES.

    Args:
        email_type: Type of email (subscription_confirmation, payment_received, ...)
        to_email: Recipient email address
        template_data: Data for the email template

    Returns:
        True if email was sent successfully, False otherwise
    """
    if not self.from_address:
      logger.warning(
        f"Cannot send {email_type} email - EMAIL_FROM_ADDRESS not configured"
      )
      return False

    try:
      template = self._get_email_template(email_type, template_data)

      message = {
        "Subject": {"Data": template["subject"], "Charset": "UTF-8"},
        "Body": {
          "Text": {"Data": template["text"], "Charset": "UTF-8"},
          "Html": {"Data": template["html"], "Charset": "UTF-8"},
        },
      }

      response = self.ses_client.send_email(
        Source=f"{self.from_name} <{self.from_address}>",
        Destination={"ToAddresses": [to_email]},
        Message=message,
        Tags=[
          {"Name": "EmailType", "Value": email_type},
          {"Name": "Environment", "Value": env.ENVIRONMENT},
        ],
      )

      logger.info(
        f"Sent {email_type} email to {to_email}. MessageId: {response['MessageId']}"
      )
      return True

    except ClientError as e:
      error_code = e.response["Error"]["Code"]
      error_message = e.response["Error"]["Message"]

      if error_code == "MessageRejected":
        logger.error(f"SES rejected email to {to_email}: {error_message}")
      elif error_code == "MailFromDomainNotVerified":
        logger.error(f"SES sender domain not verified: {self.from_address}")
      else:
        logger.error(
          f"AWS SES error sending {email_type} email to {to_email}: {error_code} - {error_message}"
        )
      return False

    except Exception as e:
      logger.error(f"Unexpected error sending {email_type} email to {to_email}: {e!s}")
      return False

  async def send_subscription_confirmation(
    self,
    user_email: str,
    user_name: str,
    tier_name: str,
    billing_cycle_label: str,
    amount: float,
    renewal_date: Optional[datetime] = None,
    checkout_url: Optional[str] = None,
  ) -> bool:
    return await self.send_email(
      "subscription_confirmation",
      user_email,
      {
        "user_name": user_name,
        "tier_name": tier_name,
        "billing_cycle_label": billing_cycle_label,
        "amount": amount,
        "renewal_date": renewal_date,
        "checkout_url": checkout_url,
      },
    )

  async def send_payment_received(
    self, user_email: str, user_name: str, amount: float
  ) -> bool:
    return await self.send_email(
      "payment_received", user_email, {"user_name": user_name, "amount": amount}
    )

  async def send_payment_failed(
    self, user_email: str, user_name: str, amount: float
  ) -> bool:
    return await self.send_email(
      "payment_failed", user_email, {"user_name": user_name, "amount": amount}
    )

  async def send_refund_approved(
    self, user_email: str, user_name: str, amount: float
  ) -> bool:
    return await self.send_email(
      "refund_approved", user_email, {"user_name": user_name, "amount": amount}
    )

  async def send_invitation(
    self, user_email: str, user_name: str, temporary_password: str
  ) -> bool:
    """Email a newly created user their login link and temporary password."""
    return await self.send_email(
      "invitation",
      user_email,
      {
        "user_name": user_name,
        "email": user_email,
        "temporary_password": temporary_password,
      },
    )


@lru_cache(maxsize=1)
def get_email_service() -> SESEmailService:
  """Shared email service; routers take it through Depends so tests can override it."""
  return SESEmailService()
