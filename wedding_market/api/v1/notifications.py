"""In-app notification endpoints for providers and customers"""
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from wedding_market.db.session import get_db
from wedding_market.dependencies.auth import Principal, get_current_principal
from wedding_market.exceptions import NotFound, Unauthorized
from wedding_market.models import ReceiverType
from wedding_market.services import notification_service
from wedding_market.utils.auth import UserRole

router = APIRouter()

RECEIVER_TYPES = {
    UserRole.CUSTOMER: ReceiverType.CUSTOMER,
    UserRole.PROVIDER: ReceiverType.PROVIDER,
}


def receiver_type_for(principal: Principal) -> ReceiverType:
    receiver_type = RECEIVER_TYPES.get(principal.role)
    if receiver_type is None:
        raise Unauthorized("Notifications are available to customers and providers")
    return receiver_type


@router.get("", response_model=dict)
async def list_notifications(
    unread_only: bool = False,
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=200),
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db)
):
    return notification_service.list_notifications(
        db,
        receiver_type_for(principal),
        principal.id,
        unread_only=unread_only,
        skip=skip,
        limit=limit
    )


@router.post("/{notification_id}/read", response_model=dict)
async def mark_read(
    notification_id: int,
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db)
):
    if not notification_service.mark_notification_read(db, receiver_type_for(principal), principal.id, notification_id):
        raise NotFound("Notification not found")
    return {"success": True}
