"""
Customer, provider and admin accounts
"""
import logging
from datetime import datetime

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from wedding_market.config import Settings
from wedding_market.exceptions import AuthenticationError, Conflict, Unauthorized, ValidationError
from wedding_market.models import Admin, Customer, ProviderStatus, ServiceProvider
from wedding_market.schemas.auth import BusinessDetailsRequest, CustomerRegister, ProviderRegister
from wedding_market.services.token_service import consume_verified_email
from wedding_market.utils.auth import UserRole, get_password_hash, validate_password_strength, verify_password

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "Incorrect email or password"


def _ensure_email_free(db: Session, model, email: str) -> None:
    if db.query(model).filter(model.email == email).first():
        raise Conflict("Email already registered")


def _commit_new_account(db: Session, account) -> None:
    db.add(account)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise Conflict("Email already registered")
    db.refresh(account)


def register_customer(db: Session, data: CustomerRegister, settings: Settings) -> Customer:
    email = data.email.strip().lower()
    validate_password_strength(data.password)
    _ensure_email_free(db, Customer, email)
    if settings.REQUIRE_EMAIL_VERIFICATION:
        consume_verified_email(db, email, UserRole.CUSTOMER)

    customer = Customer(
        name=data.name.strip(),
        email=email,
        password_hash=get_password_hash(data.password),
        phone_no=data.phone_no,
        alternate_phone=data.alternate_phone,
        address=data.address
    )
    _commit_new_account(db, customer)
    logger.info(f"Customer {customer.id} registered")
    return customer


def register_provider(db: Session, data: ProviderRegister, settings: Settings) -> ServiceProvider:
    """Basic registration; business details follow before admin review"""
    email = data.email.strip().lower()
    validate_password_strength(data.password)
    _ensure_email_free(db, ServiceProvider, email)
    if settings.REQUIRE_EMAIL_VERIFICATION:
        consume_verified_email(db, email, UserRole.PROVIDER)

    provider = ServiceProvider(
        name=data.name.strip(),
        email=email,
        password_hash=get_password_hash(data.password),
        phone_no=data.phone_no,
        city=data.city,
        state=data.state,
        status=ProviderStatus.BASIC_REGISTERED
    )
    _commit_new_account(db, provider)
    logger.info(f"Provider {provider.id} registered")
    return provider


def authenticate(db: Session, model, email: str, password: str):
    """Customer / provider login"""
    account = db.query(model).filter(model.email == email.strip().lower()).first()
    if account is None or not verify_password(password, account.password_hash):
        raise AuthenticationError(INVALID_CREDENTIALS)
    return account


def authenticate_admin(db: Session, email: str, password: str, now: datetime, settings: Settings) -> Admin:
    """Admin login; repeated failures lock the account"""
    admin = db.query(Admin).filter(Admin.email == email.strip().lower()).first()
    if admin is None:
        raise AuthenticationError(INVALID_CREDENTIALS)
    if not admin.is_active:
        raise Unauthorized("Admin account is inactive")

    if not verify_password(password, admin.password_hash):
        admin.failed_login_attempts = (admin.failed_login_attempts or 0) + 1
        if admin.failed_login_attempts >= settings.ADMIN_MAX_FAILED_LOGINS:
            admin.is_active = False
            logger.warning(f"Admin {admin.id} locked after {admin.failed_login_attempts} failed logins")
        db.commit()
        raise AuthenticationError(INVALID_CREDENTIALS)

    admin.failed_login_attempts = 0
    admin.last_login = now
    db.commit()
    db.refresh(admin)
    return admin


def change_password(db: Session, account, old_password: str, new_password: str) -> None:
    if not verify_password(old_password, account.password_hash):
        raise ValidationError("Incorrect password")
    validate_password_strength(new_password)
    account.password_hash = get_password_hash(new_password)
    db.commit()


def update_profile(db: Session, account, changes: dict) -> None:
    """Apply whitelisted profile fields; None values are ignored"""
    for field, value in changes.items():
        if value is not None and hasattr(account, field):
            setattr(account, field, value.strip() if isinstance(value, str) else value)
    db.commit()
    db.refresh(account)


def submit_business_details(db: Session, provider: ServiceProvider, data: BusinessDetailsRequest) -> ServiceProvider:
    """Move a provider into the admin review queue"""
    if provider.status in (ProviderStatus.PENDING_APPROVAL, ProviderStatus.APPROVED):
        raise ValidationError(f"Business details already submitted (status: {provider.status.value})")

    provider.business_name = data.business_name.strip()
    provider.gst_number = data.gst_number
    provider.pan_number = data.pan_number
    provider.aadhar_number = data.aadhar_number
    provider.address = data.address
    if data.city:
        provider.city = data.city
    if data.state:
        provider.state = data.state
    if data.alternate_phone:
        provider.alternate_phone = data.alternate_phone
    provider.status = ProviderStatus.PENDING_APPROVAL
    provider.rejection_reason = None
    db.commit()
    db.refresh(provider)
    logger.info(f"Provider {provider.id} submitted business details for approval")
    return provider
