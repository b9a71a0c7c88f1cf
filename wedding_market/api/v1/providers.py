"""Service provider endpoints"""
from datetime import datetime

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from wedding_market.db.session import get_db
from wedding_market.dependencies.auth import get_current_provider
from wedding_market.dependencies.common import get_now
from wedding_market.models import ServiceProvider
from wedding_market.schemas.auth import BusinessDetailsRequest, ProfileUpdate
from wedding_market.services import account_service
from wedding_market.services.admin_service import serialize_provider
from wedding_market.services.dashboard_service import provider_dashboard

router = APIRouter()


@router.get("/me", response_model=dict)
async def get_my_provider_profile(provider: ServiceProvider = Depends(get_current_provider)):
    """
    Provider profile including onboarding status
    """
    return {"success": True, "provider": serialize_provider(provider)}


@router.put("/me", response_model=dict)
async def update_my_provider_profile(
    data: ProfileUpdate,
    provider: ServiceProvider = Depends(get_current_provider),
    db: Session = Depends(get_db)
):
    account_service.update_profile(db, provider, data.model_dump(exclude_unset=True))
    return {"success": True, "provider": serialize_provider(provider)}


@router.post("/me/business-details", response_model=dict)
async def submit_business_details(
    data: BusinessDetailsRequest,
    provider: ServiceProvider = Depends(get_current_provider),
    db: Session = Depends(get_db)
):
    """
    Submit business documents; the account then waits for admin approval
    """
    provider = account_service.submit_business_details(db, provider, data)
    return {
        "success": True,
        "message": "Business details submitted for approval",
        "provider": serialize_provider(provider)
    }


@router.get("/me/dashboard", response_model=dict)
async def get_dashboard(
    provider: ServiceProvider = Depends(get_current_provider),
    db: Session = Depends(get_db),
    now: datetime = Depends(get_now)
):
    return provider_dashboard(db, provider.id, now.date())
