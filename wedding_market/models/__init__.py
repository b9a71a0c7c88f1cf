"""Database models for the Wedding Market platform"""
from wedding_market.models.base import Base
from wedding_market.models.customer import Customer
from wedding_market.models.provider import ServiceProvider, ProviderStatus
from wedding_market.models.admin import Admin, AdminRole, AuditLog
from wedding_market.models.service import (
    Service,
    ServiceStatus,
    Media,
    MediaType,
    MediaStatus,
    Review,
)
from wedding_market.models.booking import Booking, BookingStatus, PaymentStatus
from wedding_market.models.token import ResetToken, EmailVerificationToken, TokenStatus
from wedding_market.models.notification import Notification, ReceiverType, NotificationStatus
from wedding_market.models.support import SupportQuery, GuestQuery, QueryStatus, QuerySenderType

__all__ = [
    "Base",
    "Customer",
    "ServiceProvider",
    "ProviderStatus",
    "Admin",
    "AdminRole",
    "AuditLog",
    "Service",
    "ServiceStatus",
    "Media",
    "MediaType",
    "MediaStatus",
    "Review",
    "Booking",
    "BookingStatus",
    "PaymentStatus",
    "ResetToken",
    "EmailVerificationToken",
    "TokenStatus",
    "Notification",
    "ReceiverType",
    "NotificationStatus",
    "SupportQuery",
    "GuestQuery",
    "QueryStatus",
    "QuerySenderType",
]
