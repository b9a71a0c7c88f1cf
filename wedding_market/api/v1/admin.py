"""Admin moderation, help desk and analytics endpoints"""
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from pydantic import BaseModel
from sqlalchemy.orm import Session

from wedding_market.config import Settings, get_settings
from wedding_market.db.session import get_db
from wedding_market.dependencies.auth import get_current_admin
from wedding_market.dependencies.common import get_email_service, get_now
from wedding_market.models import Admin, GuestQuery, SupportQuery
from wedding_market.schemas.auth import PasswordChange
from wedding_market.schemas.support import QueryReply
from wedding_market.services import account_service, admin_service, support_service
from wedding_market.services.dashboard_service import admin_dashboard, category_comparison, signup_trends
from wedding_market.services.email_service import EmailService

router = APIRouter()


class ProviderStatusUpdate(BaseModel):
    status: str  # approved | rejected
    reason: Optional[str] = None


@router.get("/providers", response_model=dict)
async def list_providers(
    status: Optional[str] = None,
    search: Optional[str] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    admin: Admin = Depends(get_current_admin),
    db: Session = Depends(get_db)
):
    return admin_service.list_providers(db, status=status, search=search, page=page, limit=limit)


@router.put("/providers/{provider_id}/status", response_model=dict)
async def update_provider_status(
    provider_id: int,
    data: ProviderStatusUpdate,
    request: Request,
    admin: Admin = Depends(get_current_admin),
    db: Session = Depends(get_db),
    mailer: EmailService = Depends(get_email_service)
):
    """
    Approve or reject a provider awaiting review (rejection needs a reason)
    """
    provider = admin_service.update_provider_status(
        db,
        admin,
        provider_id,
        data.status,
        data.reason,
        request.client.host if request.client else None,
        mailer
    )
    return {
        "success": True,
        "message": f"Provider {provider.status.value}",
        "provider": admin_service.serialize_provider(provider)
    }


@router.get("/customers", response_model=dict)
async def list_customers(
    search: Optional[str] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    admin: Admin = Depends(get_current_admin),
    db: Session = Depends(get_db)
):
    return admin_service.list_customers(db, search=search, page=page, limit=limit)


@router.get("/dashboard/stats", response_model=dict)
async def dashboard_stats(
    admin: Admin = Depends(get_current_admin),
    db: Session = Depends(get_db)
):
    return admin_dashboard(db)


@router.get("/audit-logs", response_model=dict)
async def audit_logs(
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=200),
    admin: Admin = Depends(get_current_admin),
    db: Session = Depends(get_db)
):
    return admin_service.list_audit_logs(db, page=page, limit=limit)


@router.post("/change-password", response_model=dict)
async def change_password(
    password_data: PasswordChange,
    admin: Admin = Depends(get_current_admin),
    db: Session = Depends(get_db)
):
    account_service.change_password(db, admin, password_data.old_password, password_data.new_password)
    return {"success": True, "message": "Password updated successfully"}


# ============ ANALYTICS ============

@router.get("/analytics/user-trends", response_model=dict)
async def user_trends(
    year: Optional[int] = Query(None, ge=2000, le=2100),
    admin: Admin = Depends(get_current_admin),
    db: Session = Depends(get_db),
    now: datetime = Depends(get_now)
):
    """Monthly customer and provider sign-ups (defaults to the current year)"""
    return signup_trends(db, year or now.year)


@router.get("/analytics/orders-by-category", response_model=dict)
async def orders_by_category(
    year: Optional[int] = Query(None, ge=2000, le=2100),
    admin: Admin = Depends(get_current_admin),
    db: Session = Depends(get_db),
    now: datetime = Depends(get_now)
):
    """Bookings per category for a year and the one before it"""
    return category_comparison(db, year or now.year)


# ============ SUPPORT DESK ============

@router.get("/support-queries", response_model=dict)
async def list_support_queries(
    page: int = Query(1, ge=1),
    limit: Optional[int] = Query(None, ge=1, le=100),
    admin: Admin = Depends(get_current_admin),
    db: Session = Depends(get_db),
    now: datetime = Depends(get_now),
    settings: Settings = Depends(get_settings)
):
    """Pending queries from customers and providers that this admin may take"""
    return support_service.list_open_queries(db, SupportQuery, admin, now, settings, page=page, limit=limit)


@router.post("/support-queries/{query_id}/assign", response_model=dict)
async def assign_support_query(
    query_id: int,
    admin: Admin = Depends(get_current_admin),
    db: Session = Depends(get_db),
    now: datetime = Depends(get_now),
    settings: Settings = Depends(get_settings)
):
    query = support_service.assign_query(db, SupportQuery, query_id, admin, now, settings)
    return {"success": True, "query": support_service.serialize_query(query)}


@router.post("/support-queries/{query_id}/reply", response_model=dict)
async def reply_support_query(
    query_id: int,
    data: QueryReply,
    admin: Admin = Depends(get_current_admin),
    db: Session = Depends(get_db),
    now: datetime = Depends(get_now),
    mailer: EmailService = Depends(get_email_service)
):
    query = support_service.reply_to_query(db, SupportQuery, query_id, admin, data.message, now, mailer)
    return {"success": True, "message": "Reply sent successfully", "query": support_service.serialize_query(query)}


@router.get("/guest-queries", response_model=dict)
async def list_guest_queries(
    page: int = Query(1, ge=1),
    limit: Optional[int] = Query(None, ge=1, le=100),
    admin: Admin = Depends(get_current_admin),
    db: Session = Depends(get_db),
    now: datetime = Depends(get_now),
    settings: Settings = Depends(get_settings)
):
    return support_service.list_open_queries(db, GuestQuery, admin, now, settings, page=page, limit=limit)


@router.post("/guest-queries/{query_id}/assign", response_model=dict)
async def assign_guest_query(
    query_id: int,
    admin: Admin = Depends(get_current_admin),
    db: Session = Depends(get_db),
    now: datetime = Depends(get_now),
    settings: Settings = Depends(get_settings)
):
    """Claim a contact-form message; the response includes the visitor's e-mail"""
    query = support_service.assign_query(db, GuestQuery, query_id, admin, now, settings)
    return {"success": True, "query": support_service.serialize_query(query)}


@router.post("/guest-queries/{query_id}/reply", response_model=dict)
async def reply_guest_query(
    query_id: int,
    data: QueryReply,
    admin: Admin = Depends(get_current_admin),
    db: Session = Depends(get_db),
    now: datetime = Depends(get_now),
    mailer: EmailService = Depends(get_email_service)
):
    query = support_service.reply_to_query(db, GuestQuery, query_id, admin, data.message, now, mailer)
    return {"success": True, "message": "Reply sent successfully", "query": support_service.serialize_query(query)}
