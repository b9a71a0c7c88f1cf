"""Provider and admin dashboard figures"""
import calendar
from datetime import date

from sqlalchemy import func, extract
from sqlalchemy.orm import Session

from wedding_market.models import (
    Booking,
    BookingStatus,
    Customer,
    ProviderStatus,
    Service,
    ServiceProvider,
    ServiceStatus,
)
from wedding_market.services.catalog_service import list_provider_services


def _status_counts(query) -> dict:
    counts = {status.value: 0 for status in BookingStatus}
    for status, count in query.group_by(Booking.status).all():
        counts[status.value] = count
    return counts


def provider_dashboard(db: Session, provider_id: int, today: date) -> dict:
    mine = db.query(Booking).filter(Booking.provider_id == provider_id)
    this_month = (
        (extract("year", Booking.booking_date) == today.year)
        & (extract("month", Booking.booking_date) == today.month)
    )

    upcoming_orders = mine.filter(
        Booking.status == BookingStatus.ACCEPTED,
        Booking.event_start_date >= today
    ).count()
    pending_requests = mine.filter(
        Booking.status == BookingStatus.PENDING,
        Booking.event_start_date >= today
    ).count()
    orders_this_month = mine.filter(this_month).count()

    completed = db.query(func.coalesce(func.sum(Booking.total_amount), 0)).filter(
        Booking.provider_id == provider_id,
        Booking.status == BookingStatus.COMPLETED
    )
    total_earnings = completed.scalar()
    revenue_this_month = completed.filter(
        extract("year", Booking.event_start_date) == today.year,
        extract("month", Booking.event_start_date) == today.month
    ).scalar()

    customers_this_year = db.query(func.count(func.distinct(Booking.customer_id))).filter(
        Booking.provider_id == provider_id,
        extract("year", Booking.booking_date) == today.year
    ).scalar()

    analysis = _status_counts(
        db.query(Booking.status, func.count(Booking.id)).filter(Booking.provider_id == provider_id)
    )

    return {
        "upcoming_orders": upcoming_orders,
        "pending_requests": pending_requests,
        "orders_this_month": orders_this_month,
        "revenue_this_month": float(revenue_this_month or 0),
        "total_earnings": float(total_earnings or 0),
        "customers_this_year": customers_this_year or 0,
        "booking_analysis": analysis,
        "service_ratings": [
            {
                "service_id": s["id"],
                "service_name": s["service_name"],
                "average_rating": s["average_rating"],
                "review_count": s["review_count"],
            }
            for s in list_provider_services(db, provider_id)
        ],
    }


def admin_dashboard(db: Session) -> dict:
    providers_by_status = {status.value: 0 for status in ProviderStatus}
    for status, count in db.query(ServiceProvider.status, func.count(ServiceProvider.id)).group_by(ServiceProvider.status).all():
        providers_by_status[status.value] = count

    return {
        "total_customers": db.query(Customer).count(),
        "total_providers": sum(providers_by_status.values()),
        "providers_by_status": providers_by_status,
        "active_services": db.query(Service).filter(Service.status == ServiceStatus.ACTIVE).count(),
        "bookings_by_status": _status_counts(db.query(Booking.status, func.count(Booking.id))),
    }


# ============ ADMIN ANALYTICS ============

def _monthly_signups(db: Session, model, year: int) -> list:
    counts = [0] * 12
    month = extract("month", model.created_at)
    rows = db.query(month, func.count(model.id)).filter(extract("year", model.created_at) == year).group_by(month).all()
    for number, count in rows:
        counts[int(number) - 1] = count
    return counts


def signup_trends(db: Session, year: int) -> dict:
    """New customer and provider accounts per calendar month"""
    return {
        "year": year,
        "months": list(calendar.month_abbr)[1:],
        "customers": _monthly_signups(db, Customer, year),
        "providers": _monthly_signups(db, ServiceProvider, year),
    }


def _orders_by_category(db: Session, year: int) -> dict:
    rows = db.query(Service.category, func.count(Booking.id)).join(
        Service, Booking.service_id == Service.id
    ).filter(
        extract("year", Booking.booking_date) == year
    ).group_by(Service.category).all()
    return dict(rows)


def category_comparison(db: Session, year: int) -> dict:
    """Bookings per service category, this year against the previous one"""
    current = _orders_by_category(db, year)
    previous = _orders_by_category(db, year - 1)
    categories = sorted(set(current) | set(previous))
    return {
        "year": year,
        "categories": categories,
        "current_year": [current.get(category, 0) for category in categories],
        "previous_year": [previous.get(category, 0) for category in categories],
    }
