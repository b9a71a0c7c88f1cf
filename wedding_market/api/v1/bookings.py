"""Booking endpoints"""
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from wedding_market.config import Settings, get_settings
from wedding_market.db.session import get_db
from wedding_market.dependencies.auth import Principal, get_current_customer, get_current_principal, get_current_provider
from wedding_market.dependencies.common import get_email_service, get_now
from wedding_market.models import Customer, ServiceProvider
from wedding_market.schemas.booking import BookingActionRequest, BookingCreateRequest
from wedding_market.services import booking_service
from wedding_market.services.email_service import EmailService

router = APIRouter()


@router.post("", response_model=dict, status_code=status.HTTP_201_CREATED)
async def create_booking(
    booking_data: BookingCreateRequest,
    customer: Customer = Depends(get_current_customer),
    db: Session = Depends(get_db),
    now: datetime = Depends(get_now),
    mailer: EmailService = Depends(get_email_service)
):
    """
    Request a booking for a service

    Access: customers only. The booking starts Pending until the provider responds.
    """
    booking = booking_service.create_booking(db, customer, booking_data, now, mailer)
    return {
        "success": True,
        "booking_id": booking.id,
        "status": booking.status.value,
        "message": "Booking request sent to the provider"
    }


@router.get("", response_model=dict)
async def list_provider_bookings(
    status_filter: str = Query("pending", alias="status"),
    page: int = Query(1, ge=1),
    limit: Optional[int] = Query(None, ge=1, le=100),
    provider: ServiceProvider = Depends(get_current_provider),
    db: Session = Depends(get_db),
    now: datetime = Depends(get_now),
    settings: Settings = Depends(get_settings)
):
    """
    Provider's bookings filtered by status ("confirmed" means Accepted)
    """
    return booking_service.list_provider_bookings(
        db,
        provider.id,
        status_filter,
        page,
        limit or settings.PROVIDER_BOOKINGS_PAGE_SIZE,
        now.date()
    )


@router.get("/{booking_id}", response_model=dict)
async def get_booking(
    booking_id: int,
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db)
):
    """
    Booking detail, visible to its customer and provider
    """
    booking = booking_service.get_booking_for_party(db, booking_id, principal)
    return {"success": True, "booking": booking_service.serialize_booking(booking, principal.role)}


@router.post("/{booking_id}/action", response_model=dict)
async def booking_action(
    booking_id: int,
    action_data: BookingActionRequest,
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db),
    now: datetime = Depends(get_now),
    mailer: EmailService = Depends(get_email_service)
):
    """
    Accept, reject, cancel or complete a booking

    Reject and cancel need a reason; complete is allowed from the event date on.
    """
    booking = booking_service.apply_booking_action(
        db,
        booking_id,
        principal,
        action_data.action,
        action_data.reason,
        now,
        mailer
    )
    return {
        "success": True,
        "message": f"Booking {booking.status.value.lower()}",
        "booking": booking_service.serialize_booking(booking, principal.role)
    }
