"""
Transactional e-mail through Brevo

Sends are fire-and-forget: callers hand messages to a fixed worker pool and
never wait for, or fail on, delivery. Without BREVO_API_KEY every send is
logged and dropped.
"""
import html
import logging
import re
from concurrent.futures import ThreadPoolExecutor
from typing import Optional

import sib_api_v3_sdk
from sib_api_v3_sdk.rest import ApiException

from wedding_market.config import Settings, settings as default_settings

logger = logging.getLogger(__name__)

BRAND_COLOR = "#b83280"

LAYOUT = """<!DOCTYPE html>
<html>
<head>
<meta charset="UTF-8">
<style>
  body {{ font-family: Georgia, serif; color: #3a2a33; }}
  .wrap {{ max-width: 600px; margin: 0 auto; }}
  .banner {{ background: {color}; color: #fff; padding: 18px; text-align: center; }}
  .body {{ background: #fdf6f9; padding: 22px; }}
  .button {{ background: {color}; color: #fff; padding: 10px 26px; text-decoration: none; display: inline-block; margin: 16px 0; }}
  .signature {{ color: #8a7580; font-size: 12px; text-align: center; padding: 16px; }}
</style>
</head>
<body>
<div class="wrap">
  <div class="banner"><h1>{heading}</h1></div>
  <div class="body">
    <p>Hello {greeting},</p>
    {body}
  </div>
  <div class="signature">{signature}</div>
</div>
</body>
</html>"""

_TAGS = re.compile(r"<[^>]+>")
_SPACES = re.compile(r"\s+")


def html_to_text(markup: str) -> str:
    """Plain-text alternative for clients that do not render HTML"""
    body = markup.split("<body>", 1)[-1]
    return _SPACES.sub(" ", html.unescape(_TAGS.sub(" ", body))).strip()


def esc(value) -> str:
    """Escape a user-supplied value for interpolation into a mail body"""
    return html.escape("" if value is None else str(value))


class EmailService:

    def __init__(self, settings: Settings = default_settings):
        self.settings = settings
        self.api: Optional[sib_api_v3_sdk.TransactionalEmailsApi] = None
        self._executor: Optional[ThreadPoolExecutor] = None

        if not settings.BREVO_API_KEY:
            logger.warning("BREVO_API_KEY is not set, outgoing e-mail is disabled")
            return
        configuration = sib_api_v3_sdk.Configuration()
        configuration.api_key["api-key"] = settings.BREVO_API_KEY
        self.api = sib_api_v3_sdk.TransactionalEmailsApi(sib_api_v3_sdk.ApiClient(configuration))

    @property
    def is_configured(self) -> bool:
        return self.api is not None

    @property
    def executor(self) -> ThreadPoolExecutor:
        if self._executor is None:
            self._executor = ThreadPoolExecutor(
                max_workers=self.settings.EMAIL_WORKERS,
                thread_name_prefix="email-sender"
            )
        return self._executor

    def shutdown(self) -> None:
        """Wait for queued sends, then release the pool"""
        if self._executor is not None:
            self._executor.shutdown(wait=True)
            self._executor = None

    def send_email(self, to_email: str, subject: str, html_body: str) -> bool:
        """Blocking send; runs on the worker pool. Returns False on any failure."""
        if not self.is_configured:
            logger.info(f"E-mail '{subject}' to {to_email} dropped: Brevo not configured")
            return False

        message = sib_api_v3_sdk.SendSmtpEmail(
            sender=sib_api_v3_sdk.SendSmtpEmailSender(name=self.settings.EMAIL_FROM_NAME, email=self.settings.EMAIL_FROM),
            to=[sib_api_v3_sdk.SendSmtpEmailTo(email=to_email)],
            reply_to=sib_api_v3_sdk.SendSmtpEmailReplyTo(email=self.settings.EMAIL_REPLY_TO),
            subject=subject,
            html_content=html_body,
            text_content=html_to_text(html_body)
        )
        try:
            result = self.api.send_transac_email(message)
        except ApiException as e:
            logger.error(f"Brevo rejected '{subject}' to {to_email}: {e.status} {e.reason}")
            return False
        except Exception as e:
            logger.error(f"Could not deliver '{subject}' to {to_email}: {e}")
            return False

        logger.info(f"E-mail '{subject}' sent to {to_email} (message id {result.message_id})")
        return True

    def send_async(self, to_email: Optional[str], subject: str, html_body: str) -> None:
        """Queue an e-mail on the worker pool"""
        if not to_email:
            logger.warning(f"E-mail '{subject}' skipped: no recipient address")
            return
        self.executor.submit(self.send_email, to_email, subject, html_body)

    def _layout(self, heading: str, greeting: str, body: str) -> str:
        return LAYOUT.format(
            color=BRAND_COLOR,
            heading=heading,
            greeting=esc(greeting),
            body=body,
            signature=self.settings.EMAIL_FROM_NAME
        )

    # ============ BOOKING EMAILS ============

    def send_booking_request_email(self, provider, booking, service_name: str) -> None:
        """New booking request, to the provider"""
        body = f"""
            <p>You have a new booking request for <strong>{esc(service_name)}</strong>.</p>
            <p>Customer: {esc(booking.customer_name)} ({esc(booking.customer_phone)})</p>
            <p>Event date: {booking.event_start_date} at {esc(booking.event_time)}</p>
            <p>Venue: {esc(booking.event_address)}</p>
            <a href="{self.settings.APP_BASE_URL}/provider/bookings" class="button">Review Request</a>
        """
        self.send_async(
            provider.email,
            f"New Booking Request #{booking.id}",
            self._layout("New Booking Request", provider.name, body)
        )

    def send_booking_status_email(self, booking, service_name: str) -> None:
        """Accepted / rejected / completed / cancelled notice, to the customer"""
        status_value = booking.status.value
        body = f"<p>Your booking #{booking.id} for <strong>{esc(service_name)}</strong> on {booking.event_start_date} is now <strong>{status_value}</strong>.</p>"
        if booking.cancellation_reason:
            body += f"<p>Reason: {esc(booking.cancellation_reason)}</p>"
        body += f'<a href="{self.settings.APP_BASE_URL}/bookings" class="button">View Booking</a>'
        self.send_async(
            booking.customer_email,
            f"Booking #{booking.id} {status_value}",
            self._layout(f"Booking {status_value}", booking.customer_name, body)
        )

    def send_booking_cancelled_by_customer_email(self, provider, booking, service_name: str) -> None:
        """Customer cancellation notice, to the provider"""
        body = f"""
            <p>{esc(booking.customer_name)} cancelled booking #{booking.id} for <strong>{esc(service_name)}</strong> on {booking.event_start_date}.</p>
            <p>Reason: {esc(booking.cancellation_reason)}</p>
        """
        self.send_async(
            provider.email,
            f"Booking #{booking.id} Cancelled",
            self._layout("Booking Cancelled", provider.name, body)
        )

    # ============ ACCOUNT EMAILS ============

    def send_password_reset_email(self, to_email: str, name: str, token: str) -> None:
        reset_url = f"{self.settings.APP_BASE_URL}/reset-password?token={token}"
        body = f"""
            <p>We received a request to reset your password. The link is valid for {self.settings.RESET_TOKEN_EXPIRE_MINUTES} minutes.</p>
            <a href="{reset_url}" class="button">Reset Password</a>
            <p>If you did not ask for this, you can ignore this email.</p>
        """
        self.send_async(to_email, "Reset Your Password", self._layout("Password Reset", name, body))

    def send_verification_email(self, to_email: str, token: str) -> None:
        body = f"""
            <p>Use this code to verify your email address: <strong>{token}</strong></p>
            <p>The code expires in {self.settings.VERIFICATION_TOKEN_EXPIRE_MINUTES} minutes.</p>
        """
        self.send_async(to_email, "Verify Your Email", self._layout("Verify Your Email", to_email, body))

    def send_provider_status_email(self, provider) -> None:
        """Approval or rejection of a provider account"""
        if provider.status.value == "approved":
            body = f"""
                <p>Your business <strong>{esc(provider.business_name)}</strong> has been approved. You can now list your services.</p>
                <a href="{self.settings.APP_BASE_URL}/provider/login" class="button">Go to Dashboard</a>
            """
            heading = "Account Approved"
        else:
            body = f"<p>Your application was not approved.</p><p>Reason: {esc(provider.rejection_reason)}</p>"
            heading = "Application Update"
        self.send_async(provider.email, heading, self._layout(heading, provider.name, body))

    # ============ SUPPORT EMAILS ============

    def send_query_resolved_email(self, to_email: str, name: str, subject: str, reply: str) -> None:
        """Admin answer to a support or guest query"""
        body = f"""
            <p>Your query <strong>'{esc(subject)}'</strong> has been resolved.</p>
            <p>Our response:</p>
            <blockquote>{esc(reply)}</blockquote>
            <p>If you need anything else, just reply to this email.</p>
        """
        self.send_async(to_email, "Your Query Has Been Resolved", self._layout("Query Resolved", name, body))


# Global instance, swapped out in tests through the get_email_service dependency
email_service = EmailService()
