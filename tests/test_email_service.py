from types import SimpleNamespace

from conftest import FakeMailer
from wedding_market.config import Settings
from wedding_market.models import ProviderStatus
from wedding_market.services.email_service import EmailService, html_to_text


class TestEmailService:

    def test_unconfigured_service_drops_mail(self):
        service = EmailService(Settings(BREVO_API_KEY=""))
        assert service.is_configured is False
        assert service.send_email("asha@example.com", "Hi", "<p>Hi</p>") is False

    def test_missing_recipient_is_skipped(self):
        service = EmailService(Settings(BREVO_API_KEY=""))
        service.send_async(None, "Hi", "<p>Hi</p>")
        assert service._executor is None

    def test_plain_text_alternative(self):
        markup = "<html><head><style>p { color: red; }</style></head><body><p>Tom &amp; Jerry</p>\n<p>Pune</p></body></html>"
        assert html_to_text(markup) == "Tom & Jerry Pune"

    def test_reset_mail_carries_link(self):
        mailer = FakeMailer()
        mailer.send_password_reset_email("asha@example.com", "Asha", "tok123")

        message = mailer.sent_to("asha@example.com")[0]
        assert message["subject"] == "Reset Your Password"
        assert "reset-password?token=tok123" in message["html"]
        assert "Hello Asha," in message["html"]

    def test_greeting_and_rejection_reason_are_escaped(self):
        mailer = FakeMailer()
        provider = SimpleNamespace(
            email="ravi@example.com",
            name="Ravi <img src=x onerror=alert(1)>",
            business_name="Ravi & Sons",
            status=ProviderStatus.REJECTED,
            rejection_reason="<i>Incomplete</i> documents",
        )
        mailer.send_provider_status_email(provider)

        markup = mailer.sent_to("ravi@example.com")[0]["html"]
        assert "<img" not in markup
        assert "Hello Ravi &lt;img src=x onerror=alert(1)&gt;," in markup
        assert "Reason: &lt;i&gt;Incomplete&lt;/i&gt; documents" in markup
