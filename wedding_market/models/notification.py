"""In-app notifications"""
from sqlalchemy import Column, Integer, Text, ForeignKey

import enum

from wedding_market.models.base import Base, TimestampMixin, enum_column_type


class ReceiverType(str, enum.Enum):
    PROVIDER = "PROVIDER"
    CUSTOMER = "CUSTOMER"


class NotificationStatus(str, enum.Enum):
    UNREAD = "UNREAD"
    READ = "READ"


class Notification(Base, TimestampMixin):
    """Message for a provider or customer, polled by the frontends"""
    __tablename__ = "notifications"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    receiver_id = Column(Integer, nullable=False, index=True)
    receiver_type = Column(enum_column_type(ReceiverType, "receiver_type"), nullable=False)
    booking_id = Column(Integer, ForeignKey("bookings.id"), nullable=True)
    message = Column(Text, nullable=False)
    status = Column(
        enum_column_type(NotificationStatus, "notification_status"),
        nullable=False,
        default=NotificationStatus.UNREAD
    )
