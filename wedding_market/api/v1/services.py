"""Service listing, media and review endpoints"""
from decimal import Decimal
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from wedding_market.db.session import get_db
from wedding_market.dependencies.auth import get_approved_provider, get_current_customer, get_current_provider
from wedding_market.models import Customer, ServiceProvider
from wedding_market.services import catalog_service

router = APIRouter()


# ============ SCHEMAS ============

class ServiceCreateRequest(BaseModel):
    service_name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    price: Decimal
    category: str = Field(..., min_length=1, max_length=100)


class ServiceUpdateRequest(BaseModel):
    service_name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    price: Optional[Decimal] = None
    category: Optional[str] = Field(None, min_length=1, max_length=100)
    status: Optional[str] = None  # Active | Inactive


class MediaCreateRequest(BaseModel):
    """media_url comes from the upload service"""
    media_type: str  # Image | Video
    media_url: str = Field(..., min_length=1, max_length=500)
    file_size: Optional[int] = Field(None, ge=0)
    file_extension: Optional[str] = Field(None, max_length=10)


class ReviewCreateRequest(BaseModel):
    rating: int = Field(..., ge=1, le=5)
    review_text: str = Field(..., min_length=1, max_length=500)


# ============ PUBLIC CATALOGUE ============

@router.get("", response_model=dict)
async def list_services(
    category: Optional[str] = None,
    search: Optional[str] = None,
    city: Optional[str] = None,
    min_price: Optional[Decimal] = Query(None, ge=0),
    max_price: Optional[Decimal] = Query(None, ge=0),
    min_rating: Optional[float] = Query(None, ge=0, le=5),
    sort: str = "newest",
    page: int = Query(1, ge=1),
    limit: int = Query(12, ge=1, le=100),
    db: Session = Depends(get_db)
):
    """
    Browse active services with filters and sorting
    """
    return catalog_service.search_services(
        db,
        category=category,
        search=search,
        city=city,
        min_price=min_price,
        max_price=max_price,
        min_rating=min_rating,
        sort=sort,
        page=page,
        limit=limit
    )


@router.get("/mine", response_model=dict)
async def list_my_services(
    provider: ServiceProvider = Depends(get_current_provider),
    db: Session = Depends(get_db)
):
    services = catalog_service.list_provider_services(db, provider.id)
    return {"services": services, "total": len(services)}


@router.get("/{service_id}", response_model=dict)
async def get_service(service_id: int, db: Session = Depends(get_db)):
    return catalog_service.get_service_detail(db, service_id)


# ============ PROVIDER LISTINGS ============

@router.post("", response_model=dict, status_code=status.HTTP_201_CREATED)
async def create_service(
    data: ServiceCreateRequest,
    provider: ServiceProvider = Depends(get_approved_provider),
    db: Session = Depends(get_db)
):
    """
    Create a listing (approved providers only)
    """
    service = catalog_service.create_service(db, provider, data)
    return {
        "success": True,
        "message": "Service created successfully",
        "service": catalog_service.serialize_service(service)
    }


@router.put("/{service_id}", response_model=dict)
async def update_service(
    service_id: int,
    data: ServiceUpdateRequest,
    provider: ServiceProvider = Depends(get_current_provider),
    db: Session = Depends(get_db)
):
    service = catalog_service.update_service(db, provider, service_id, data)
    return {
        "success": True,
        "message": "Service updated successfully",
        "service": catalog_service.serialize_service(service)
    }


@router.delete("/{service_id}", response_model=dict)
async def delete_service(
    service_id: int,
    provider: ServiceProvider = Depends(get_current_provider),
    db: Session = Depends(get_db)
):
    """
    Deactivate a listing; existing bookings keep their reference
    """
    catalog_service.deactivate_service(db, provider, service_id)
    return {"success": True, "message": "Service deactivated"}


@router.post("/{service_id}/media", response_model=dict, status_code=status.HTTP_201_CREATED)
async def add_media(
    service_id: int,
    data: MediaCreateRequest,
    provider: ServiceProvider = Depends(get_current_provider),
    db: Session = Depends(get_db)
):
    media = catalog_service.add_media(db, provider, service_id, data)
    return {"success": True, "media": catalog_service.serialize_media(media)}


@router.delete("/{service_id}/media/{media_id}", response_model=dict)
async def delete_media(
    service_id: int,
    media_id: int,
    provider: ServiceProvider = Depends(get_current_provider),
    db: Session = Depends(get_db)
):
    catalog_service.delete_media(db, provider, service_id, media_id)
    return {"success": True, "message": "Media deleted"}


# ============ REVIEWS ============

@router.get("/{service_id}/reviews", response_model=dict)
async def list_reviews(
    service_id: int,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    db: Session = Depends(get_db)
):
    return catalog_service.list_reviews(db, service_id, page=page, limit=limit)


@router.post("/{service_id}/reviews", response_model=dict, status_code=status.HTTP_201_CREATED)
async def create_review(
    service_id: int,
    data: ReviewCreateRequest,
    customer: Customer = Depends(get_current_customer),
    db: Session = Depends(get_db)
):
    review = catalog_service.create_review(db, customer, service_id, data.rating, data.review_text)
    return {"success": True, "message": "Review submitted", "review_id": review.id}
