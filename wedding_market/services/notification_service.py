"""
In-app notifications for booking events
"""
import logging
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from wedding_market.models import Notification, NotificationStatus, ReceiverType

logger = logging.getLogger(__name__)


def create_notification(
    db: Session,
    receiver_type: ReceiverType,
    receiver_id: int,
    message: str,
    booking_id: Optional[int] = None
) -> Optional[Notification]:
    """
    Persist a notification in its own commit

    Best-effort: a failure is logged and rolled back, never raised, so the
    booking change that triggered it stays committed.
    """
    try:
        notification = Notification(
            receiver_type=receiver_type,
            receiver_id=receiver_id,
            booking_id=booking_id,
            message=message,
            status=NotificationStatus.UNREAD
        )
        db.add(notification)
        db.commit()
        db.refresh(notification)
        return notification
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Failed to store notification for {receiver_type.value} {receiver_id}: {e}")
        return None


def list_notifications(
    db: Session,
    receiver_type: ReceiverType,
    receiver_id: int,
    unread_only: bool = False,
    skip: int = 0,
    limit: int = 50
) -> dict:
    query = db.query(Notification).filter(
        Notification.receiver_type == receiver_type,
        Notification.receiver_id == receiver_id
    )
    if unread_only:
        query = query.filter(Notification.status == NotificationStatus.UNREAD)

    total = query.count()
    unread = db.query(Notification).filter(
        Notification.receiver_type == receiver_type,
        Notification.receiver_id == receiver_id,
        Notification.status == NotificationStatus.UNREAD
    ).count()
    notifications = query.order_by(Notification.created_at.desc(), Notification.id.desc()).offset(skip).limit(limit).all()

    return {
        "notifications": [
            {
                "id": n.id,
                "booking_id": n.booking_id,
                "message": n.message,
                "status": n.status.value,
                "created_at": n.created_at.isoformat(),
            }
            for n in notifications
        ],
        "total": total,
        "unread": unread,
    }


def mark_notification_read(db: Session, receiver_type: ReceiverType, receiver_id: int, notification_id: int) -> bool:
    """Returns False when the notification does not belong to the receiver"""
    notification = db.query(Notification).filter(
        Notification.id == notification_id,
        Notification.receiver_type == receiver_type,
        Notification.receiver_id == receiver_id
    ).first()
    if notification is None:
        return False
    notification.status = NotificationStatus.READ
    db.commit()
    return True
