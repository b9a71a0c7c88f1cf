"""
Admin moderation of provider accounts

Every status decision is written to audit_logs in the same commit.
"""
import logging
import math
from typing import Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session

from wedding_market.exceptions import NotFound, ValidationError
from wedding_market.models import Admin, AuditLog, Customer, ProviderStatus, ServiceProvider
from wedding_market.services.email_service import EmailService

logger = logging.getLogger(__name__)

MODERATION_OUTCOMES = (ProviderStatus.APPROVED, ProviderStatus.REJECTED)


def serialize_provider(provider: ServiceProvider) -> dict:
    return {
        "id": provider.id,
        "name": provider.name,
        "email": provider.email,
        "phone_no": provider.phone_no,
        "business_name": provider.business_name,
        "gst_number": provider.gst_number,
        "pan_number": provider.pan_number,
        "aadhar_number": provider.aadhar_number,
        "address": provider.address,
        "city": provider.city,
        "state": provider.state,
        "status": provider.status.value,
        "rejection_reason": provider.rejection_reason,
        "created_at": provider.created_at.isoformat(),
    }


def list_providers(
    db: Session,
    status: Optional[str] = None,
    search: Optional[str] = None,
    page: int = 1,
    limit: int = 20
) -> dict:
    query = db.query(ServiceProvider)
    if status:
        try:
            query = query.filter(ServiceProvider.status == ProviderStatus(status.strip().lower()))
        except ValueError:
            raise ValidationError(f"Unknown provider status '{status}'")
    if search and search.strip():
        pattern = f"%{search.strip()}%"
        query = query.filter(or_(
            ServiceProvider.name.ilike(pattern),
            ServiceProvider.business_name.ilike(pattern),
            ServiceProvider.email.ilike(pattern)
        ))

    total = query.count()
    providers = query.order_by(ServiceProvider.created_at.desc(), ServiceProvider.id.desc()).offset((page - 1) * limit).limit(limit).all()
    return {
        "providers": [serialize_provider(p) for p in providers],
        "total": total,
        "page": page,
        "total_pages": math.ceil(total / limit) if total else 0,
    }


def update_provider_status(
    db: Session,
    admin: Admin,
    provider_id: int,
    new_status: str,
    reason: Optional[str],
    ip_address: Optional[str],
    mailer: EmailService
) -> ServiceProvider:
    """Approve or reject a provider that is awaiting review"""
    try:
        target = ProviderStatus((new_status or "").strip().lower())
    except ValueError:
        target = None
    if target not in MODERATION_OUTCOMES:
        raise ValidationError("status must be approved or rejected")

    reason = (reason or "").strip()
    if target == ProviderStatus.REJECTED and not reason:
        raise ValidationError("A reason is required to reject a provider")

    provider = db.query(ServiceProvider).filter(ServiceProvider.id == provider_id).first()
    if provider is None:
        raise NotFound("Provider not found")
    if provider.status != ProviderStatus.PENDING_APPROVAL:
        raise ValidationError(f"Provider is not awaiting approval (status: {provider.status.value})")

    previous = provider.status
    provider.status = target
    provider.rejection_reason = reason if target == ProviderStatus.REJECTED else None
    db.add(AuditLog(
        actor_id=admin.id,
        action=f"provider_{target.value}",
        target_type="service_provider",
        target_id=provider.id,
        details=f"{previous.value} -> {target.value}",
        reason=reason or None,
        ip_address=ip_address
    ))
    db.commit()
    db.refresh(provider)
    logger.info(f"Admin {admin.id} set provider {provider.id} to {target.value}")

    try:
        mailer.send_provider_status_email(provider)
    except Exception as e:
        logger.error(f"Failed to queue status email for provider {provider.id}: {e}")

    return provider


def list_customers(db: Session, search: Optional[str] = None, page: int = 1, limit: int = 20) -> dict:
    query = db.query(Customer)
    if search and search.strip():
        pattern = f"%{search.strip()}%"
        query = query.filter(or_(Customer.name.ilike(pattern), Customer.email.ilike(pattern)))

    total = query.count()
    customers = query.order_by(Customer.created_at.desc(), Customer.id.desc()).offset((page - 1) * limit).limit(limit).all()
    return {
        "customers": [
            {
                "id": c.id,
                "name": c.name,
                "email": c.email,
                "phone_no": c.phone_no,
                "address": c.address,
                "created_at": c.created_at.isoformat(),
            }
            for c in customers
        ],
        "total": total,
        "page": page,
        "total_pages": math.ceil(total / limit) if total else 0,
    }


def list_audit_logs(db: Session, page: int = 1, limit: int = 50) -> dict:
    query = db.query(AuditLog)
    total = query.count()
    logs = query.order_by(AuditLog.timestamp.desc(), AuditLog.id.desc()).offset((page - 1) * limit).limit(limit).all()
    return {
        "logs": [
            {
                "id": log.id,
                "actor_id": log.actor_id,
                "action": log.action,
                "target_type": log.target_type,
                "target_id": log.target_id,
                "details": log.details,
                "reason": log.reason,
                "ip_address": log.ip_address,
                "timestamp": log.timestamp.isoformat(),
            }
            for log in logs
        ],
        "total": total,
        "page": page,
    }
