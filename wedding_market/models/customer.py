"""Customer account model"""
from sqlalchemy import Column, String, Integer, Text

from sqlalchemy.orm import relationship

from wedding_market.models.base import Base, TimestampMixin


class Customer(Base, TimestampMixin):
    """Customers booking wedding services"""
    __tablename__ = "customers"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    name = Column(String(255), nullable=False)
    email = Column(String(255), unique=True, nullable=False, index=True)
    password_hash = Column(String(255), nullable=False)
    phone_no = Column(String(20), nullable=True)
    alternate_phone = Column(String(20), nullable=True)
    address = Column(Text, nullable=True)

    # Relationships
    bookings = relationship("Booking", back_populates="customer")
    reviews = relationship("Review", back_populates="customer")

    def __repr__(self):
        return f"<Customer {self.email}>"
