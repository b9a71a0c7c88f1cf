"""Service listings, media and reviews"""
from sqlalchemy import Column, String, Text, Integer, Numeric, BigInteger, DateTime, ForeignKey, CheckConstraint

from sqlalchemy.orm import relationship
import enum

from wedding_market.models.base import Base, TimestampMixin, enum_column_type
from wedding_market.utils.clock import utc_now


class ServiceStatus(str, enum.Enum):
    ACTIVE = "Active"
    INACTIVE = "Inactive"


class MediaType(str, enum.Enum):
    IMAGE = "Image"
    VIDEO = "Video"


class MediaStatus(str, enum.Enum):
    ACTIVE = "Active"
    INACTIVE = "Inactive"
    DELETED = "Deleted"


class Service(Base, TimestampMixin):
    """A bookable offering owned by one provider"""
    __tablename__ = "services"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    provider_id = Column(Integer, ForeignKey("service_providers.id"), nullable=False, index=True)
    service_name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    price = Column(Numeric(10, 2), nullable=False)
    category = Column(String(100), nullable=False, index=True)
    status = Column(
        enum_column_type(ServiceStatus, "service_status"),
        nullable=False,
        default=ServiceStatus.ACTIVE
    )

    # Relationships
    provider = relationship("ServiceProvider", back_populates="services")
    media = relationship("Media", back_populates="service")
    reviews = relationship("Review", back_populates="service")
    bookings = relationship("Booking", back_populates="service")


class Media(Base):
    """Image or video attached to a service (URL from the upload service)"""
    __tablename__ = "media"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    service_id = Column(Integer, ForeignKey("services.id"), nullable=False, index=True)
    media_type = Column(enum_column_type(MediaType, "media_type"), nullable=False)
    media_url = Column(String(500), nullable=False)
    file_size = Column(BigInteger, nullable=True)
    file_extension = Column(String(10), nullable=True)
    status = Column(
        enum_column_type(MediaStatus, "media_status"),
        nullable=False,
        default=MediaStatus.ACTIVE
    )
    upload_time = Column(DateTime, default=utc_now, nullable=False)

    service = relationship("Service", back_populates="media")


class Review(Base, TimestampMixin):
    """Customer review of a service"""
    __tablename__ = "reviews"
    __table_args__ = (
        CheckConstraint("rating >= 1 AND rating <= 5", name="ck_reviews_rating_range"),
    )

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    service_id = Column(Integer, ForeignKey("services.id"), nullable=False, index=True)
    customer_id = Column(Integer, ForeignKey("customers.id"), nullable=False, index=True)
    customer_name = Column(String(255), nullable=False)
    review_text = Column(String(500), nullable=False)
    rating = Column(Integer, nullable=False)

    service = relationship("Service", back_populates="reviews")
    customer = relationship("Customer", back_populates="reviews")
