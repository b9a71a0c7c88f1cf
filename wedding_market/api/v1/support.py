"""Help desk endpoints for account holders and site visitors"""
from datetime import datetime

from fastapi import APIRouter, Depends, Request, Response, status
from sqlalchemy.orm import Session

from wedding_market.db.session import get_db
from wedding_market.dependencies.auth import Principal, get_current_principal
from wedding_market.dependencies.common import get_now
from wedding_market.exceptions import Unauthorized
from wedding_market.middleware.rate_limit import limiter
from wedding_market.models import QuerySenderType
from wedding_market.schemas.support import GuestQueryCreate, SupportQueryCreate
from wedding_market.services import support_service
from wedding_market.utils.auth import UserRole

router = APIRouter()

SENDER_TYPES = {
    UserRole.CUSTOMER: QuerySenderType.CUSTOMER,
    UserRole.PROVIDER: QuerySenderType.PROVIDER,
}


def sender_type_for(principal: Principal) -> QuerySenderType:
    sender_type = SENDER_TYPES.get(principal.role)
    if sender_type is None:
        raise Unauthorized("Support queries are raised by customers and providers")
    return sender_type


@router.post("/queries", response_model=dict, status_code=status.HTTP_201_CREATED)
async def create_support_query(
    data: SupportQueryCreate,
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db),
    now: datetime = Depends(get_now)
):
    query = support_service.submit_support_query(
        db,
        sender_type_for(principal),
        principal.id,
        data.subject,
        data.message,
        now
    )
    return {"success": True, "message": "Query submitted successfully", "query_id": query.id}


@router.get("/queries", response_model=dict)
async def my_support_queries(
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db)
):
    """The caller's own queries with any admin response"""
    return support_service.list_sender_queries(db, sender_type_for(principal), principal.id)


@router.post("/guest-queries", response_model=dict, status_code=status.HTTP_201_CREATED)
@limiter.limit("10/hour")
async def create_guest_query(
    request: Request,
    data: GuestQueryCreate,
    response: Response,
    db: Session = Depends(get_db),
    now: datetime = Depends(get_now)
):
    """
    Public contact form

    No account needed; the admin answer goes to the given e-mail address.
    """
    query = support_service.submit_guest_query(db, data.name, data.email, data.subject, data.message, now)
    return {"success": True, "message": "Query submitted successfully!", "query_id": query.id}
