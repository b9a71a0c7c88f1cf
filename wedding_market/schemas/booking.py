"""
Booking Schemas
"""
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, EmailStr, Field


class BookingCreateRequest(BaseModel):
    """Dates as YYYY-MM-DD, time as HH:MM"""
    service_id: int
    customer_name: str = Field(..., min_length=1, max_length=255)
    phone: str = Field(..., min_length=1, max_length=20)
    email: Optional[EmailStr] = None
    event_address: str = Field(..., min_length=1)
    event_start_date: str
    event_end_date: Optional[str] = None
    event_time: str
    total_amount: Optional[Decimal] = None
    notes: Optional[str] = None


class BookingActionRequest(BaseModel):
    action: str  # accept | reject | cancel | complete | pay
    reason: Optional[str] = None
