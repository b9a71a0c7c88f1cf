"""Booking models"""
from sqlalchemy import Column, String, Text, Numeric, Integer, Date, DateTime, ForeignKey, CheckConstraint

from sqlalchemy.orm import relationship
import enum

from wedding_market.models.base import Base, TimestampMixin, enum_column_type
from wedding_market.utils.clock import utc_now


class BookingStatus(str, enum.Enum):
    """Booking lifecycle status"""
    PENDING = "Pending"
    ACCEPTED = "Accepted"
    REJECTED = "Rejected"
    CANCELLED = "Cancelled"
    COMPLETED = "Completed"

    @property
    def is_terminal(self) -> bool:
        return self in (BookingStatus.REJECTED, BookingStatus.CANCELLED, BookingStatus.COMPLETED)


class PaymentStatus(str, enum.Enum):
    """Payment collection is not implemented; every booking stays unpaid"""
    UNPAID = "unpaid"
    PAID = "paid"


class Booking(Base, TimestampMixin):
    """A customer's request for a provider's service on an event date"""
    __tablename__ = "bookings"
    __table_args__ = (
        CheckConstraint("total_amount > 0", name="ck_bookings_total_amount_positive"),
        CheckConstraint("event_end_date >= event_start_date", name="ck_bookings_event_dates"),
    )

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)

    # Parties
    customer_id = Column(Integer, ForeignKey("customers.id"), nullable=False, index=True)
    service_id = Column(Integer, ForeignKey("services.id"), nullable=False, index=True)
    provider_id = Column(Integer, ForeignKey("service_providers.id"), nullable=False, index=True)

    # Lifecycle
    status = Column(
        enum_column_type(BookingStatus, "booking_status"),
        nullable=False,
        default=BookingStatus.PENDING,
        index=True
    )
    cancellation_reason = Column(Text, nullable=True)
    cancelled_by = Column(String(20), nullable=True)

    # Event details
    event_address = Column(Text, nullable=False)
    event_start_date = Column(Date, nullable=False, index=True)
    event_end_date = Column(Date, nullable=False)
    event_time = Column(String(5), nullable=False)  # HH:MM
    booking_date = Column(DateTime, default=utc_now, nullable=False)

    # Contact snapshot at creation
    customer_name = Column(String(255), nullable=False)
    customer_phone = Column(String(20), nullable=False)
    customer_email = Column(String(255), nullable=True)

    # Amounts
    total_amount = Column(Numeric(10, 2), nullable=False)
    payment_status = Column(
        enum_column_type(PaymentStatus, "payment_status"),
        nullable=False,
        default=PaymentStatus.UNPAID
    )

    notes = Column(Text, nullable=True)

    # Relationships
    customer = relationship("Customer", back_populates="bookings")
    service = relationship("Service", back_populates="bookings")
    provider = relationship("ServiceProvider", back_populates="bookings")

    def __repr__(self):
        return f"<Booking {self.id} {self.status}>"
