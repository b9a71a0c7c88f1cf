"""
Booking lifecycle

BOOKING_TRANSITIONS is the only description of which status changes are
legal, who may make them and what they require. Every handler that changes a
booking goes through apply_booking_action().
"""
import enum
import logging
import math
from dataclasses import dataclass
from datetime import date, datetime
from typing import Dict, FrozenSet, List, Optional, Tuple

from sqlalchemy import or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, joinedload

from wedding_market.dependencies.auth import Principal
from wedding_market.exceptions import (
    InvalidStateTransition,
    NotFound,
    PaymentsNotImplemented,
    TooEarly,
    Unauthorized,
    ValidationError,
)
from wedding_market.models import (
    Booking,
    BookingStatus,
    Customer,
    PaymentStatus,
    ReceiverType,
    Service,
    ServiceProvider,
    ServiceStatus,
)
from wedding_market.schemas.booking import BookingCreateRequest
from wedding_market.services.email_service import EmailService
from wedding_market.services.notification_service import create_notification
from wedding_market.utils.auth import UserRole

logger = logging.getLogger(__name__)

DATE_FORMAT = "%Y-%m-%d"
TIME_FORMAT = "%H:%M"


class BookingAction(str, enum.Enum):
    ACCEPT = "accept"
    REJECT = "reject"
    CANCEL = "cancel"
    COMPLETE = "complete"
    PAY = "pay"


@dataclass(frozen=True)
class Transition:
    target: BookingStatus
    actors: FrozenSet[UserRole]
    requires_reason: bool = False
    not_before_event: bool = False


BOOKING_TRANSITIONS: Dict[Tuple[BookingStatus, BookingAction], Transition] = {
    (BookingStatus.PENDING, BookingAction.ACCEPT): Transition(
        target=BookingStatus.ACCEPTED,
        actors=frozenset({UserRole.PROVIDER}),
    ),
    (BookingStatus.PENDING, BookingAction.REJECT): Transition(
        target=BookingStatus.REJECTED,
        actors=frozenset({UserRole.PROVIDER}),
        requires_reason=True,
    ),
    (BookingStatus.PENDING, BookingAction.CANCEL): Transition(
        target=BookingStatus.CANCELLED,
        actors=frozenset({UserRole.CUSTOMER}),
        requires_reason=True,
    ),
    (BookingStatus.ACCEPTED, BookingAction.CANCEL): Transition(
        target=BookingStatus.CANCELLED,
        actors=frozenset({UserRole.CUSTOMER, UserRole.PROVIDER}),
        requires_reason=True,
    ),
    (BookingStatus.ACCEPTED, BookingAction.COMPLETE): Transition(
        target=BookingStatus.COMPLETED,
        actors=frozenset({UserRole.PROVIDER}),
        not_before_event=True,
    ),
}

# Filter vocabulary used by the provider and customer listings
PROVIDER_STATUS_FILTERS = {
    "pending": BookingStatus.PENDING,
    "accepted": BookingStatus.ACCEPTED,
    "confirmed": BookingStatus.ACCEPTED,
    "rejected": BookingStatus.REJECTED,
    "cancelled": BookingStatus.CANCELLED,
    "completed": BookingStatus.COMPLETED,
}

CUSTOMER_STATUS_FILTERS = {
    "all": None,
    "pending": [BookingStatus.PENDING],
    "confirmed": [BookingStatus.ACCEPTED],
    "cancelled": [BookingStatus.CANCELLED, BookingStatus.REJECTED],
    "completed": [BookingStatus.COMPLETED],
}

CUSTOMER_STATUS_LABELS = {
    BookingStatus.PENDING: "pending",
    BookingStatus.ACCEPTED: "confirmed",
    BookingStatus.REJECTED: "cancelled",
    BookingStatus.CANCELLED: "cancelled",
    BookingStatus.COMPLETED: "completed",
}


# ============ TRANSITION TABLE ============

def parse_action(value: str) -> BookingAction:
    try:
        return BookingAction((value or "").strip().lower())
    except ValueError:
        allowed = ", ".join(action.value for action in BookingAction)
        raise ValidationError(f"Unknown action '{value}'. Expected one of: {allowed}")


def resolve_transition(current: BookingStatus, action: BookingAction, role: UserRole) -> Transition:
    """Look up the edge for (status, action) and check the caller's role may take it"""
    transition = BOOKING_TRANSITIONS.get((current, action))
    if transition is None:
        raise InvalidStateTransition(f"Cannot {action.value} a booking that is {current.value}")
    if role not in transition.actors:
        raise Unauthorized(f"A {role.value} cannot {action.value} a {current.value} booking")
    return transition


def available_actions(current: BookingStatus, role: UserRole) -> List[str]:
    return [
        action.value
        for (status, action), transition in BOOKING_TRANSITIONS.items()
        if status == current and role in transition.actors
    ]


def is_party(booking: Booking, actor: Principal) -> bool:
    if actor.role == UserRole.CUSTOMER:
        return booking.customer_id == actor.id
    if actor.role == UserRole.PROVIDER:
        return booking.provider_id == actor.id
    return False


# ============ SERIALIZATION ============

def serialize_booking(booking: Booking, viewer_role: Optional[UserRole] = None) -> dict:
    service = booking.service
    provider = booking.provider
    data = {
        "booking_id": booking.id,
        "service_id": booking.service_id,
        "service_name": service.service_name if service else None,
        "category": service.category if service else None,
        "provider_id": booking.provider_id,
        "provider_name": (provider.business_name or provider.name) if provider else None,
        "customer_id": booking.customer_id,
        "customer_name": booking.customer_name,
        "customer_phone": booking.customer_phone,
        "customer_email": booking.customer_email,
        "status": booking.status.value,
        "event_address": booking.event_address,
        "event_start_date": booking.event_start_date.isoformat(),
        "event_end_date": booking.event_end_date.isoformat(),
        "event_time": booking.event_time,
        "total_amount": float(booking.total_amount),
        "payment_status": booking.payment_status.value,
        "cancellation_reason": booking.cancellation_reason,
        "cancelled_by": booking.cancelled_by,
        "notes": booking.notes,
        "booking_date": booking.booking_date.isoformat(),
    }
    if viewer_role is not None:
        data["available_actions"] = available_actions(booking.status, viewer_role)
    return data


# ============ CREATE ============

def _parse_date(value: str, field: str) -> date:
    try:
        return datetime.strptime(value.strip(), DATE_FORMAT).date()
    except (AttributeError, ValueError):
        raise ValidationError(f"{field} must be a date in YYYY-MM-DD format")


def _parse_time(value: str) -> str:
    try:
        return datetime.strptime(value.strip(), TIME_FORMAT).strftime(TIME_FORMAT)
    except (AttributeError, ValueError):
        raise ValidationError("event_time must be a time in HH:MM format")


def create_booking(
    db: Session,
    customer: Customer,
    data: BookingCreateRequest,
    now: datetime,
    mailer: EmailService
) -> Booking:
    """
    Create a Pending booking for an Active service

    The provider is notified (row + e-mail) after the booking is committed;
    notification failures never undo the booking.
    """
    service = db.query(Service).filter(Service.id == data.service_id).first()
    if service is None:
        raise NotFound("Service not found")
    if service.status != ServiceStatus.ACTIVE:
        raise ValidationError("This service is not available for booking")

    for field in ("customer_name", "phone", "event_address"):
        if not getattr(data, field).strip():
            raise ValidationError(f"{field} is required")

    start_date = _parse_date(data.event_start_date, "event_start_date")
    end_date = _parse_date(data.event_end_date, "event_end_date") if data.event_end_date else start_date
    event_time = _parse_time(data.event_time)

    if end_date < start_date:
        raise ValidationError("event_end_date cannot be before event_start_date")
    event_start = datetime.combine(start_date, datetime.strptime(event_time, TIME_FORMAT).time())
    if event_start < now:
        raise ValidationError("Event date and time cannot be in the past")

    amount = data.total_amount if data.total_amount is not None else service.price
    if amount is None or amount <= 0:
        raise ValidationError("total_amount must be greater than zero")

    booking = Booking(
        customer_id=customer.id,
        service_id=service.id,
        provider_id=service.provider_id,
        status=BookingStatus.PENDING,
        event_address=data.event_address.strip(),
        event_start_date=start_date,
        event_end_date=end_date,
        event_time=event_time,
        booking_date=now,
        customer_name=data.customer_name.strip(),
        customer_phone=data.phone.strip(),
        customer_email=data.email or customer.email,
        total_amount=amount,
        payment_status=PaymentStatus.UNPAID,
        notes=data.notes
    )

    try:
        db.add(booking)
        db.commit()
        db.refresh(booking)
    except SQLAlchemyError:
        db.rollback()
        logger.exception(f"Failed to create booking for customer {customer.id}")
        raise

    logger.info(f"Booking {booking.id} created by customer {customer.id} for service {service.id}")

    create_notification(
        db,
        ReceiverType.PROVIDER,
        booking.provider_id,
        f"New booking request from {booking.customer_name} for {service.service_name} on {start_date.isoformat()}",
        booking_id=booking.id
    )
    try:
        mailer.send_booking_request_email(service.provider, booking, service.service_name)
    except Exception as e:
        logger.error(f"Failed to queue booking request email for booking {booking.id}: {e}")

    return booking


# ============ TRANSITIONS ============

def apply_booking_action(
    db: Session,
    booking_id: int,
    actor: Principal,
    action: str,
    reason: Optional[str],
    now: datetime,
    mailer: EmailService
) -> Booking:
    """
    Move a booking along one edge of BOOKING_TRANSITIONS

    Checks run in order: booking exists, caller is a party, edge exists,
    caller's role may take the edge, reason present, event date reached.
    The write is conditional on the status read here; losing a race to
    another writer surfaces as InvalidStateTransition.
    """
    booking_action = parse_action(action)

    booking = db.query(Booking).filter(Booking.id == booking_id).first()
    if booking is None:
        raise NotFound("Booking not found")
    if not is_party(booking, actor):
        raise Unauthorized("You are not a party to this booking")

    if booking_action == BookingAction.PAY:
        raise PaymentsNotImplemented()

    expected = booking.status
    transition = resolve_transition(expected, booking_action, actor.role)

    reason = (reason or "").strip()
    if transition.requires_reason and not reason:
        raise ValidationError(f"A reason is required to {booking_action.value} a booking")

    if transition.not_before_event and now.date() < booking.event_start_date:
        raise TooEarly(f"Booking can be completed on or after {booking.event_start_date.isoformat()}")

    values = {"status": transition.target, "updated_at": now}
    if transition.target in (BookingStatus.REJECTED, BookingStatus.CANCELLED):
        values["cancellation_reason"] = reason
    if transition.target == BookingStatus.CANCELLED:
        values["cancelled_by"] = actor.role.value

    try:
        updated = db.query(Booking).filter(
            Booking.id == booking.id,
            Booking.status == expected
        ).update(values, synchronize_session=False)
        if updated == 0:
            db.rollback()
            raise InvalidStateTransition(f"Booking {booking.id} is no longer {expected.value}")
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.exception(f"Failed to {booking_action.value} booking {booking.id}")
        raise

    db.refresh(booking)
    logger.info(
        f"Booking {booking.id}: {expected.value} -> {booking.status.value} "
        f"by {actor.role.value} {actor.id}"
    )

    _notify_transition(db, booking, actor, mailer)
    return booking


def _notify_transition(db: Session, booking: Booking, actor: Principal, mailer: EmailService) -> None:
    service_name = booking.service.service_name
    status_value = booking.status.value.lower()

    if actor.role == UserRole.CUSTOMER:
        create_notification(
            db,
            ReceiverType.PROVIDER,
            booking.provider_id,
            f"{booking.customer_name} cancelled booking #{booking.id} for {service_name}: {booking.cancellation_reason}",
            booking_id=booking.id
        )
        try:
            mailer.send_booking_cancelled_by_customer_email(booking.provider, booking, service_name)
        except Exception as e:
            logger.error(f"Failed to queue cancellation email for booking {booking.id}: {e}")
        return

    message = f"Your booking #{booking.id} for {service_name} has been {status_value}"
    if booking.cancellation_reason:
        message = f"{message}: {booking.cancellation_reason}"
    create_notification(db, ReceiverType.CUSTOMER, booking.customer_id, message, booking_id=booking.id)
    try:
        mailer.send_booking_status_email(booking, service_name)
    except Exception as e:
        logger.error(f"Failed to queue status email for booking {booking.id}: {e}")


# ============ QUERIES ============

def get_booking_for_party(db: Session, booking_id: int, actor: Principal) -> Booking:
    booking = db.query(Booking).filter(Booking.id == booking_id).first()
    if booking is None:
        raise NotFound("Booking not found")
    if not is_party(booking, actor):
        raise Unauthorized("You are not a party to this booking")
    return booking


def list_provider_bookings(
    db: Session,
    provider_id: int,
    status_filter: str,
    page: int,
    limit: int,
    today: date
) -> dict:
    """
    Provider's bookings in one status, newest event first

    Pending requests for events already past are hidden.
    """
    status = PROVIDER_STATUS_FILTERS.get((status_filter or "pending").strip().lower())
    if status is None:
        raise ValidationError(f"Unknown status filter '{status_filter}'")

    query = db.query(Booking).options(
        joinedload(Booking.service)
    ).filter(
        Booking.provider_id == provider_id,
        Booking.status == status
    )
    if status == BookingStatus.PENDING:
        query = query.filter(Booking.event_start_date >= today)

    total = query.count()
    bookings = query.order_by(
        Booking.event_start_date.desc(),
        Booking.id.desc()
    ).offset((page - 1) * limit).limit(limit).all()

    return {
        "bookings": [serialize_booking(b, UserRole.PROVIDER) for b in bookings],
        "total": total,
        "page": page,
        "limit": limit,
    }


def customer_booking_history(
    db: Session,
    customer_id: int,
    status_filter: str = "all",
    search: Optional[str] = None,
    date_from: Optional[str] = None,
    date_to: Optional[str] = None,
    page: int = 1,
    limit: int = 10
) -> dict:
    key = (status_filter or "all").strip().lower()
    if key not in CUSTOMER_STATUS_FILTERS:
        raise ValidationError(f"Unknown status filter '{status_filter}'")

    query = db.query(Booking).join(
        Service, Booking.service_id == Service.id
    ).join(
        ServiceProvider, Booking.provider_id == ServiceProvider.id
    ).filter(Booking.customer_id == customer_id)

    statuses = CUSTOMER_STATUS_FILTERS[key]
    if statuses:
        query = query.filter(Booking.status.in_(statuses))

    if search and search.strip():
        pattern = f"%{search.strip()}%"
        query = query.filter(or_(
            Service.service_name.ilike(pattern),
            ServiceProvider.business_name.ilike(pattern),
            ServiceProvider.name.ilike(pattern)
        ))

    if date_from:
        query = query.filter(Booking.event_start_date >= _parse_date(date_from, "date_from"))
    if date_to:
        query = query.filter(Booking.event_start_date <= _parse_date(date_to, "date_to"))

    total = query.count()
    bookings = query.order_by(
        Booking.booking_date.desc(),
        Booking.id.desc()
    ).offset((page - 1) * limit).limit(limit).all()

    items = []
    for booking in bookings:
        item = serialize_booking(booking, UserRole.CUSTOMER)
        item["display_status"] = CUSTOMER_STATUS_LABELS[booking.status]
        items.append(item)

    return {
        "bookings": items,
        "current_page": page,
        "total_pages": math.ceil(total / limit) if total else 0,
        "total_items": total,
    }


def customer_upcoming_bookings(db: Session, customer_id: int, today: date, limit: int = 3) -> dict:
    query = db.query(Booking).filter(
        Booking.customer_id == customer_id,
        Booking.status.in_([BookingStatus.PENDING, BookingStatus.ACCEPTED]),
        Booking.event_start_date >= today
    )
    total = query.count()
    bookings = query.order_by(
        Booking.event_start_date.asc(),
        Booking.event_time.asc()
    ).limit(limit).all()
    return {
        "bookings": [serialize_booking(b, UserRole.CUSTOMER) for b in bookings],
        "total": total,
    }
