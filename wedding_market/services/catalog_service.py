"""
Service listings, media and reviews
"""
import logging
import math
from decimal import Decimal
from typing import Optional

from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from wedding_market.exceptions import NotFound, Unauthorized, ValidationError
from wedding_market.models import (
    Customer,
    Media,
    MediaStatus,
    MediaType,
    ProviderStatus,
    Review,
    Service,
    ServiceProvider,
    ServiceStatus,
)

logger = logging.getLogger(__name__)

SORT_OPTIONS = ("newest", "price_asc", "price_desc", "rating")


def _rating_subquery(db: Session):
    return db.query(
        Review.service_id.label("service_id"),
        func.avg(Review.rating).label("avg_rating"),
        func.count(Review.id).label("review_count")
    ).group_by(Review.service_id).subquery()


def service_rating(db: Session, service_id: int) -> dict:
    avg_rating, review_count = db.query(
        func.avg(Review.rating),
        func.count(Review.id)
    ).filter(Review.service_id == service_id).one()
    return {
        "average_rating": round(float(avg_rating), 2) if avg_rating is not None else 0.0,
        "review_count": review_count or 0,
    }


def serialize_service(service: Service, average_rating=None, review_count=None) -> dict:
    provider = service.provider
    return {
        "id": service.id,
        "service_name": service.service_name,
        "description": service.description,
        "price": float(service.price),
        "category": service.category,
        "status": service.status.value,
        "provider_id": service.provider_id,
        "provider_name": (provider.business_name or provider.name) if provider else None,
        "city": provider.city if provider else None,
        "average_rating": round(float(average_rating), 2) if average_rating is not None else 0.0,
        "review_count": review_count or 0,
        "created_at": service.created_at.isoformat(),
    }


def serialize_media(media: Media) -> dict:
    return {
        "id": media.id,
        "media_type": media.media_type.value,
        "media_url": media.media_url,
        "file_size": media.file_size,
        "file_extension": media.file_extension,
        "status": media.status.value,
        "upload_time": media.upload_time.isoformat(),
    }


# ============ PROVIDER-OWNED LISTINGS ============

def get_owned_service(db: Session, provider: ServiceProvider, service_id: int) -> Service:
    service = db.query(Service).filter(Service.id == service_id).first()
    if service is None:
        raise NotFound("Service not found")
    if service.provider_id != provider.id:
        raise Unauthorized("You do not own this service")
    return service


def _validate_price(price: Optional[Decimal]) -> None:
    if price is not None and price <= 0:
        raise ValidationError("price must be greater than zero")


def create_service(db: Session, provider: ServiceProvider, data) -> Service:
    _validate_price(data.price)
    service = Service(
        provider_id=provider.id,
        service_name=data.service_name.strip(),
        description=data.description,
        price=data.price,
        category=data.category.strip(),
        status=ServiceStatus.ACTIVE
    )
    db.add(service)
    db.commit()
    db.refresh(service)
    logger.info(f"Service {service.id} created by provider {provider.id}")
    return service


def update_service(db: Session, provider: ServiceProvider, service_id: int, data) -> Service:
    service = get_owned_service(db, provider, service_id)
    changes = data.model_dump(exclude_unset=True)
    _validate_price(changes.get("price"))

    if "status" in changes and changes["status"] is not None:
        try:
            changes["status"] = ServiceStatus(changes["status"])
        except ValueError:
            raise ValidationError("status must be Active or Inactive")

    for field, value in changes.items():
        if value is not None:
            setattr(service, field, value)
    db.commit()
    db.refresh(service)
    return service


def deactivate_service(db: Session, provider: ServiceProvider, service_id: int) -> Service:
    """Services are never deleted: bookings keep pointing at them"""
    service = get_owned_service(db, provider, service_id)
    service.status = ServiceStatus.INACTIVE
    db.commit()
    db.refresh(service)
    logger.info(f"Service {service.id} deactivated by provider {provider.id}")
    return service


def list_provider_services(db: Session, provider_id: int) -> list:
    ratings = _rating_subquery(db)
    rows = db.query(Service, ratings.c.avg_rating, ratings.c.review_count).outerjoin(
        ratings, Service.id == ratings.c.service_id
    ).filter(
        Service.provider_id == provider_id
    ).order_by(Service.created_at.desc()).all()
    return [serialize_service(service, avg, count) for service, avg, count in rows]


def add_media(db: Session, provider: ServiceProvider, service_id: int, data) -> Media:
    service = get_owned_service(db, provider, service_id)
    try:
        media_type = MediaType(data.media_type.strip().capitalize())
    except ValueError:
        raise ValidationError("media_type must be Image or Video")

    media = Media(
        service_id=service.id,
        media_type=media_type,
        media_url=data.media_url,
        file_size=data.file_size,
        file_extension=(data.file_extension or "").lower().lstrip(".") or None,
        status=MediaStatus.ACTIVE
    )
    db.add(media)
    db.commit()
    db.refresh(media)
    return media


def delete_media(db: Session, provider: ServiceProvider, service_id: int, media_id: int) -> None:
    service = get_owned_service(db, provider, service_id)
    media = db.query(Media).filter(
        Media.id == media_id,
        Media.service_id == service.id,
        Media.status != MediaStatus.DELETED
    ).first()
    if media is None:
        raise NotFound("Media not found")
    media.status = MediaStatus.DELETED
    db.commit()


# ============ PUBLIC CATALOGUE ============

def search_services(
    db: Session,
    category: Optional[str] = None,
    search: Optional[str] = None,
    city: Optional[str] = None,
    min_price: Optional[Decimal] = None,
    max_price: Optional[Decimal] = None,
    min_rating: Optional[float] = None,
    sort: str = "newest",
    page: int = 1,
    limit: int = 12
) -> dict:
    """Active services of approved providers"""
    if sort not in SORT_OPTIONS:
        raise ValidationError(f"sort must be one of: {', '.join(SORT_OPTIONS)}")

    ratings = _rating_subquery(db)
    query = db.query(Service, ratings.c.avg_rating, ratings.c.review_count).join(
        ServiceProvider, Service.provider_id == ServiceProvider.id
    ).outerjoin(
        ratings, Service.id == ratings.c.service_id
    ).filter(
        Service.status == ServiceStatus.ACTIVE,
        ServiceProvider.status == ProviderStatus.APPROVED
    )

    if category:
        query = query.filter(func.lower(Service.category) == category.strip().lower())
    if search and search.strip():
        pattern = f"%{search.strip()}%"
        query = query.filter(or_(
            Service.service_name.ilike(pattern),
            Service.description.ilike(pattern),
            ServiceProvider.business_name.ilike(pattern)
        ))
    if city:
        query = query.filter(func.lower(ServiceProvider.city) == city.strip().lower())
    if min_price is not None:
        query = query.filter(Service.price >= min_price)
    if max_price is not None:
        query = query.filter(Service.price <= max_price)
    if min_rating is not None:
        query = query.filter(ratings.c.avg_rating >= min_rating)

    total = query.count()

    if sort == "price_asc":
        query = query.order_by(Service.price.asc(), Service.id.asc())
    elif sort == "price_desc":
        query = query.order_by(Service.price.desc(), Service.id.asc())
    elif sort == "rating":
        query = query.order_by(func.coalesce(ratings.c.avg_rating, 0).desc(), Service.id.asc())
    else:
        query = query.order_by(Service.created_at.desc(), Service.id.desc())

    rows = query.offset((page - 1) * limit).limit(limit).all()
    return {
        "services": [serialize_service(service, avg, count) for service, avg, count in rows],
        "total": total,
        "page": page,
        "total_pages": math.ceil(total / limit) if total else 0,
    }


def get_service_detail(db: Session, service_id: int) -> dict:
    service = db.query(Service).filter(Service.id == service_id).first()
    if service is None or service.status != ServiceStatus.ACTIVE:
        raise NotFound("Service not found")

    rating = service_rating(db, service.id)
    detail = serialize_service(service, rating["average_rating"], rating["review_count"])
    detail["media"] = [
        serialize_media(m)
        for m in service.media
        if m.status == MediaStatus.ACTIVE
    ]
    provider = service.provider
    detail["provider"] = {
        "id": provider.id,
        "name": provider.name,
        "business_name": provider.business_name,
        "city": provider.city,
        "state": provider.state,
        "phone_no": provider.phone_no,
    }
    return detail


# ============ REVIEWS ============

def create_review(db: Session, customer: Customer, service_id: int, rating: int, review_text: str) -> Review:
    service = db.query(Service).filter(Service.id == service_id).first()
    if service is None:
        raise NotFound("Service not found")

    text = (review_text or "").strip()
    if not 1 <= len(text) <= 500:
        raise ValidationError("review_text must be between 1 and 500 characters")
    if not 1 <= rating <= 5:
        raise ValidationError("rating must be between 1 and 5")

    review = Review(
        service_id=service.id,
        customer_id=customer.id,
        customer_name=customer.name,
        review_text=text,
        rating=rating
    )
    db.add(review)
    db.commit()
    db.refresh(review)
    logger.info(f"Review {review.id} posted on service {service.id} by customer {customer.id}")
    return review


def list_reviews(db: Session, service_id: int, page: int = 1, limit: int = 10) -> dict:
    if db.query(Service.id).filter(Service.id == service_id).first() is None:
        raise NotFound("Service not found")

    query = db.query(Review).filter(Review.service_id == service_id)
    total = query.count()
    reviews = query.order_by(Review.created_at.desc(), Review.id.desc()).offset((page - 1) * limit).limit(limit).all()
    return {
        "reviews": [
            {
                "id": r.id,
                "customer_name": r.customer_name,
                "rating": r.rating,
                "review_text": r.review_text,
                "created_at": r.created_at.isoformat(),
            }
            for r in reviews
        ],
        "total": total,
        "page": page,
        **service_rating(db, service_id),
    }
