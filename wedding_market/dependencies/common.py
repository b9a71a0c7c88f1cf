"""
Shared request dependencies: clock and mailer
"""
from datetime import datetime

from wedding_market.services.email_service import EmailService, email_service
from wedding_market.utils.clock import utc_now


def get_now() -> datetime:
    """Current time; overridden in tests to pin the clock"""
    return utc_now()


def get_email_service() -> EmailService:
    return email_service
