"""
Single-use password reset and e-mail verification tokens

Consuming a token is a conditional UPDATE on its status, executed in the
same transaction as the change it authorizes, so a token works at most once.
"""
import logging
import secrets
from datetime import datetime, timedelta

from sqlalchemy.orm import Session

from wedding_market.config import Settings
from wedding_market.exceptions import Conflict, InvalidOrExpiredToken, TooManyRequests, ValidationError
from wedding_market.models import Customer, EmailVerificationToken, ResetToken, ServiceProvider, TokenStatus
from wedding_market.services.email_service import EmailService
from wedding_market.utils.auth import (
    UserRole,
    create_reset_token,
    decode_reset_token,
    get_password_hash,
    hash_token,
    validate_password_strength,
)

logger = logging.getLogger(__name__)

SELF_SERVICE_MODELS = {
    UserRole.CUSTOMER: Customer,
    UserRole.PROVIDER: ServiceProvider,
}


def _account_model(role: UserRole):
    model = SELF_SERVICE_MODELS.get(role)
    if model is None:
        raise ValidationError("Role must be customer or provider")
    return model


def find_account(db: Session, role: UserRole, email: str):
    model = _account_model(role)
    return db.query(model).filter(model.email == email.strip().lower()).first()


# ============ PASSWORD RESET ============

def request_password_reset(
    db: Session,
    email: str,
    role: UserRole,
    now: datetime,
    mailer: EmailService,
    settings: Settings
) -> None:
    """
    Issue a reset token and e-mail the link

    Unknown addresses are silently ignored so the response never reveals
    whether an account exists.
    """
    email = email.strip().lower()
    account = find_account(db, role, email)
    if account is None:
        logger.info(f"Password reset requested for unknown {role.value} address")
        return

    recent = db.query(ResetToken).filter(
        ResetToken.email == email,
        ResetToken.role == role.value,
        ResetToken.created_at > now - timedelta(hours=1)
    ).count()
    if recent >= settings.FORGOT_PASSWORD_MAX_PER_HOUR:
        raise TooManyRequests("Too many password reset requests. Try again in an hour.")

    token = create_reset_token(email, role, settings=settings)
    db.add(ResetToken(
        email=email,
        role=role.value,
        token_hash=hash_token(token),
        expiry=now + timedelta(minutes=settings.RESET_TOKEN_EXPIRE_MINUTES),
        status=TokenStatus.PENDING,
        created_at=now
    ))
    db.commit()
    logger.info(f"Password reset token issued for {role.value} {account.id}")

    try:
        mailer.send_password_reset_email(email, account.name, token)
    except Exception as e:
        logger.error(f"Failed to queue password reset email for {role.value} {account.id}: {e}")


def reset_password(db: Session, token: str, new_password: str, now: datetime, settings: Settings) -> None:
    """Consume a reset token and set the new password in one transaction"""
    validate_password_strength(new_password)
    payload = decode_reset_token(token, settings=settings)

    try:
        role = UserRole(payload.get("role"))
    except ValueError:
        raise InvalidOrExpiredToken()

    consumed = db.query(ResetToken).filter(
        ResetToken.token_hash == hash_token(token),
        ResetToken.status == TokenStatus.PENDING,
        ResetToken.expiry > now
    ).update({"status": TokenStatus.USED}, synchronize_session=False)
    if consumed == 0:
        db.rollback()
        raise InvalidOrExpiredToken()

    account = find_account(db, role, payload["sub"])
    if account is None:
        db.rollback()
        raise InvalidOrExpiredToken()

    # Older outstanding links for the same account stop working too
    db.query(ResetToken).filter(
        ResetToken.email == account.email,
        ResetToken.role == role.value,
        ResetToken.status == TokenStatus.PENDING
    ).update({"status": TokenStatus.USED}, synchronize_session=False)

    account.password_hash = get_password_hash(new_password)
    db.commit()
    logger.info(f"Password reset completed for {role.value} {account.id}")


# ============ EMAIL VERIFICATION ============

def send_verification(
    db: Session,
    email: str,
    role: UserRole,
    now: datetime,
    mailer: EmailService,
    settings: Settings
) -> None:
    email = email.strip().lower()
    if find_account(db, role, email) is not None:
        raise Conflict("Email already registered")

    token = secrets.token_urlsafe(24)
    db.add(EmailVerificationToken(
        email=email,
        role=role.value,
        token=token,
        expiry=now + timedelta(minutes=settings.VERIFICATION_TOKEN_EXPIRE_MINUTES),
        status=TokenStatus.PENDING,
        created_at=now
    ))
    db.commit()

    try:
        mailer.send_verification_email(email, token)
    except Exception as e:
        logger.error(f"Failed to queue verification email: {e}")


def verify_email(db: Session, token: str, now: datetime) -> str:
    """Mark a pending verification token verified; returns the e-mail it covers"""
    record = db.query(EmailVerificationToken).filter(EmailVerificationToken.token == token).first()
    updated = db.query(EmailVerificationToken).filter(
        EmailVerificationToken.token == token,
        EmailVerificationToken.status == TokenStatus.PENDING,
        EmailVerificationToken.expiry > now
    ).update({"status": TokenStatus.VERIFIED}, synchronize_session=False)
    if record is None or updated == 0:
        db.rollback()
        raise InvalidOrExpiredToken()
    db.commit()
    return record.email


def consume_verified_email(db: Session, email: str, role: UserRole) -> None:
    """
    Flip the verified row for this address to used

    Does not commit: the caller commits together with the new account.
    """
    consumed = db.query(EmailVerificationToken).filter(
        EmailVerificationToken.email == email.strip().lower(),
        EmailVerificationToken.role == role.value,
        EmailVerificationToken.status == TokenStatus.VERIFIED
    ).update({"status": TokenStatus.USED}, synchronize_session=False)
    if consumed == 0:
        raise ValidationError("Email address has not been verified")
