"""Service Provider model"""
from sqlalchemy import Column, String, Text, Integer

from sqlalchemy.orm import relationship
import enum

from wedding_market.models.base import Base, TimestampMixin, enum_column_type


class ProviderStatus(str, enum.Enum):
    """Provider onboarding status"""
    BASIC_REGISTERED = "basic_registered"
    PENDING_APPROVAL = "pending_approval"
    APPROVED = "approved"
    REJECTED = "rejected"


class ServiceProvider(Base, TimestampMixin):
    """Vendors offering wedding services"""
    __tablename__ = "service_providers"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    name = Column(String(255), nullable=False)
    email = Column(String(255), unique=True, nullable=False, index=True)
    password_hash = Column(String(255), nullable=False)

    # Contact
    phone_no = Column(String(20), nullable=True)
    alternate_phone = Column(String(20), nullable=True)

    # Address
    address = Column(Text, nullable=True)
    city = Column(String(100), nullable=True)
    state = Column(String(100), nullable=True)

    # Business details (submitted for approval)
    business_name = Column(String(255), nullable=True)
    gst_number = Column(String(20), nullable=True)
    aadhar_number = Column(String(20), nullable=True)
    pan_number = Column(String(20), nullable=True)

    # Verification
    status = Column(
        enum_column_type(ProviderStatus, "provider_status"),
        nullable=False,
        default=ProviderStatus.BASIC_REGISTERED
    )
    rejection_reason = Column(Text, nullable=True)

    # Relationships
    services = relationship("Service", back_populates="provider")
    bookings = relationship("Booking", back_populates="provider")

    @property
    def is_approved(self) -> bool:
        return self.status == ProviderStatus.APPROVED

    def __repr__(self):
        return f"<ServiceProvider {self.email} ({self.status})>"
