"""
Help desk: support queries raised from an account, guest queries from the
public contact form

An admin claims a pending query before answering it. The claim keeps other
admins out for SUPPORT_CLAIM_MINUTES; after that any admin may take it over.
Answering resolves the query and e-mails the sender.
"""
import logging
import math
from datetime import datetime, timedelta
from typing import Optional, Tuple, Type, Union

from sqlalchemy import or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from wedding_market.config import Settings
from wedding_market.exceptions import Conflict, NotFound, Unauthorized, ValidationError
from wedding_market.models import (
    Admin,
    AuditLog,
    Customer,
    GuestQuery,
    QuerySenderType,
    QueryStatus,
    ServiceProvider,
    SupportQuery,
)
from wedding_market.services.email_service import EmailService

logger = logging.getLogger(__name__)

HelpDeskQuery = Union[SupportQuery, GuestQuery]

SENDER_MODELS = {
    QuerySenderType.CUSTOMER: Customer,
    QuerySenderType.PROVIDER: ServiceProvider,
}


def _required(value: Optional[str], field: str) -> str:
    text = (value or "").strip()
    if not text:
        raise ValidationError(f"{field} is required")
    return text


def serialize_query(query: HelpDeskQuery) -> dict:
    data = {
        "id": query.id,
        "subject": query.subject,
        "message": query.message,
        "status": query.status.value,
        "assigned_admin_id": query.assigned_admin_id,
        "assigned_at": query.assigned_at.isoformat() if query.assigned_at else None,
        "response_message": query.response_message,
        "responded_at": query.responded_at.isoformat() if query.responded_at else None,
        "created_at": query.created_at.isoformat(),
    }
    if isinstance(query, GuestQuery):
        data.update(name=query.name, email=query.email)
    else:
        data.update(user_id=query.user_id, user_type=query.user_type.value)
    return data


# ============ SUBMISSION ============

def submit_support_query(
    db: Session,
    sender_type: QuerySenderType,
    sender_id: int,
    subject: str,
    message: str,
    now: datetime
) -> SupportQuery:
    query = SupportQuery(
        user_id=sender_id,
        user_type=sender_type,
        subject=_required(subject, "subject"),
        message=_required(message, "message"),
        status=QueryStatus.PENDING,
        created_at=now
    )
    db.add(query)
    db.commit()
    db.refresh(query)
    logger.info(f"Support query {query.id} raised by {sender_type.value} {sender_id}")
    return query


def submit_guest_query(db: Session, name: str, email: str, subject: str, message: str, now: datetime) -> GuestQuery:
    query = GuestQuery(
        name=_required(name, "name"),
        email=email.strip().lower(),
        subject=_required(subject, "subject"),
        message=_required(message, "message"),
        status=QueryStatus.PENDING,
        created_at=now
    )
    db.add(query)
    db.commit()
    db.refresh(query)
    logger.info(f"Guest query {query.id} received")
    return query


def list_sender_queries(db: Session, sender_type: QuerySenderType, sender_id: int) -> dict:
    queries = db.query(SupportQuery).filter(
        SupportQuery.user_type == sender_type,
        SupportQuery.user_id == sender_id
    ).order_by(SupportQuery.created_at.desc(), SupportQuery.id.desc()).all()
    return {"queries": [serialize_query(q) for q in queries], "total": len(queries)}


# ============ ADMIN DESK ============

def _open_to(model: Type[HelpDeskQuery], admin_id: int, cutoff: datetime):
    """Unclaimed, claimed by this admin, or claim older than the cutoff"""
    return or_(
        model.assigned_admin_id.is_(None),
        model.assigned_admin_id == admin_id,
        model.assigned_at < cutoff
    )


def list_open_queries(
    db: Session,
    model: Type[HelpDeskQuery],
    admin: Admin,
    now: datetime,
    settings: Settings,
    page: int = 1,
    limit: Optional[int] = None
) -> dict:
    """Pending queries this admin may pick up, newest first"""
    limit = limit or settings.SUPPORT_QUERIES_PAGE_SIZE
    cutoff = now - timedelta(minutes=settings.SUPPORT_CLAIM_MINUTES)
    query = db.query(model).filter(model.status == QueryStatus.PENDING, _open_to(model, admin.id, cutoff))

    total = query.count()
    queries = query.order_by(model.created_at.desc(), model.id.desc()).offset((page - 1) * limit).limit(limit).all()
    return {
        "queries": [serialize_query(q) for q in queries],
        "total": total,
        "page": page,
        "total_pages": math.ceil(total / limit) if total else 0,
    }


def _get_pending(db: Session, model: Type[HelpDeskQuery], query_id: int) -> HelpDeskQuery:
    query = db.query(model).filter(model.id == query_id).first()
    if query is None:
        raise NotFound("Query not found")
    if query.status != QueryStatus.PENDING:
        raise Conflict("Query has already been resolved")
    return query


def assign_query(
    db: Session,
    model: Type[HelpDeskQuery],
    query_id: int,
    admin: Admin,
    now: datetime,
    settings: Settings
) -> HelpDeskQuery:
    """Claim a pending query; re-claiming your own query refreshes the claim"""
    query = _get_pending(db, model, query_id)
    cutoff = now - timedelta(minutes=settings.SUPPORT_CLAIM_MINUTES)

    try:
        updated = db.query(model).filter(
            model.id == query_id,
            model.status == QueryStatus.PENDING,
            _open_to(model, admin.id, cutoff)
        ).update({"assigned_admin_id": admin.id, "assigned_at": now}, synchronize_session=False)
        if updated == 0:
            db.rollback()
            raise Unauthorized("Query already handled by another admin")
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.exception(f"Failed to assign {model.__tablename__} {query_id}")
        raise

    db.refresh(query)
    logger.info(f"Admin {admin.id} claimed {model.__tablename__} {query.id}")
    return query


def _recipient(db: Session, query: HelpDeskQuery) -> Tuple[Optional[str], Optional[str]]:
    if isinstance(query, GuestQuery):
        return query.email, query.name
    account_model = SENDER_MODELS[query.user_type]
    account = db.query(account_model).filter(account_model.id == query.user_id).first()
    if account is None:
        logger.warning(f"Support query {query.id}: {query.user_type.value} {query.user_id} no longer exists")
        return None, None
    return account.email, account.name


def reply_to_query(
    db: Session,
    model: Type[HelpDeskQuery],
    query_id: int,
    admin: Admin,
    reply: str,
    now: datetime,
    mailer: EmailService
) -> HelpDeskQuery:
    """Answer a query this admin holds; the sender is e-mailed best-effort"""
    reply = _required(reply, "reply message")
    query = _get_pending(db, model, query_id)
    if query.assigned_admin_id != admin.id:
        raise Unauthorized("Query not assigned to you")

    try:
        updated = db.query(model).filter(
            model.id == query_id,
            model.status == QueryStatus.PENDING,
            model.assigned_admin_id == admin.id
        ).update({
            "status": QueryStatus.RESOLVED,
            "response_message": reply,
            "responded_by": admin.id,
            "responded_at": now,
        }, synchronize_session=False)
        if updated == 0:
            db.rollback()
            raise Conflict("Query was answered or reassigned in the meantime")
        db.add(AuditLog(
            actor_id=admin.id,
            action="query_resolved",
            target_type=model.__tablename__,
            target_id=query_id,
            details=query.subject,
            timestamp=now
        ))
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.exception(f"Failed to resolve {model.__tablename__} {query_id}")
        raise

    db.refresh(query)
    logger.info(f"Admin {admin.id} resolved {model.__tablename__} {query.id}")

    email, name = _recipient(db, query)
    try:
        mailer.send_query_resolved_email(email, name or "there", query.subject, reply)
    except Exception as e:
        logger.error(f"Failed to queue reply email for {model.__tablename__} {query.id}: {e}")

    return query
