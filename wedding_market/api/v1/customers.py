"""Customer booking history endpoints"""
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from wedding_market.config import Settings, get_settings
from wedding_market.db.session import get_db
from wedding_market.dependencies.auth import get_current_customer
from wedding_market.dependencies.common import get_now
from wedding_market.models import Customer
from wedding_market.services import booking_service

router = APIRouter()


@router.get("/bookings", response_model=dict)
async def booking_history(
    status_filter: str = Query("all", alias="status"),
    search: Optional[str] = None,
    date_from: Optional[str] = Query(None, alias="dateFrom"),
    date_to: Optional[str] = Query(None, alias="dateTo"),
    page: int = Query(1, ge=1),
    limit: Optional[int] = Query(None, ge=1, le=100),
    customer: Customer = Depends(get_current_customer),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings)
):
    """
    Booking history with status, text and event-date filters

    status: all | pending | confirmed | cancelled (includes rejected) | completed
    """
    return booking_service.customer_booking_history(
        db,
        customer.id,
        status_filter=status_filter,
        search=search,
        date_from=date_from,
        date_to=date_to,
        page=page,
        limit=limit or settings.CUSTOMER_BOOKINGS_PAGE_SIZE
    )


@router.get("/bookings/upcoming", response_model=dict)
async def upcoming_bookings(
    customer: Customer = Depends(get_current_customer),
    db: Session = Depends(get_db),
    now: datetime = Depends(get_now),
    settings: Settings = Depends(get_settings)
):
    return booking_service.customer_upcoming_bookings(db, customer.id, now.date(), settings.UPCOMING_BOOKINGS_LIMIT)
