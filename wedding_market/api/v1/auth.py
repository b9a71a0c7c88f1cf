"""
Authentication endpoints for the Wedding Market API
"""
from datetime import datetime

from fastapi import APIRouter, Depends, status, Response, Request
from sqlalchemy.orm import Session

from wedding_market.config import Settings, get_settings
from wedding_market.db.session import get_db
from wedding_market.dependencies.auth import Principal, get_current_principal
from wedding_market.dependencies.common import get_email_service, get_now
from wedding_market.exceptions import ValidationError
from wedding_market.middleware.rate_limit import limiter
from wedding_market.models import Customer, ServiceProvider
from wedding_market.schemas.auth import (
    AccountResponse,
    CustomerRegister,
    PasswordChange,
    PasswordReset,
    PasswordResetConfirm,
    ProfileUpdate,
    ProviderRegister,
    Token,
    UserLogin,
    VerificationConfirm,
    VerificationRequest,
)
from wedding_market.services import account_service, token_service
from wedding_market.services.email_service import EmailService
from wedding_market.utils.auth import UserRole, create_access_token

router = APIRouter()


def account_response(account, role: UserRole) -> AccountResponse:
    account_status = getattr(account, "status", None)
    return AccountResponse(
        id=account.id,
        name=account.name,
        email=account.email,
        role=role.value,
        phone_no=account.phone_no,
        status=account_status.value if account_status is not None else None,
        created_at=account.created_at
    )


def issue_token(response: Response, account, role: UserRole, settings: Settings) -> dict:
    """Create an access token, set it as an httpOnly cookie and return the login body"""
    access_token = create_access_token(account.id, role, account.email, settings=settings)

    response.set_cookie(
        key="access_token",
        value=access_token,
        max_age=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
        httponly=True,  # Prevents JavaScript access (XSS protection)
        secure=settings.ENVIRONMENT == "production",  # HTTPS only in production
        samesite="lax",
        path="/",
    )

    return {
        "access_token": access_token,
        "token_type": "bearer",
        "user": account_response(account, role)
    }


def parse_self_service_role(value: str) -> UserRole:
    try:
        role = UserRole((value or "").strip().lower())
    except ValueError:
        role = None
    if role not in (UserRole.CUSTOMER, UserRole.PROVIDER):
        raise ValidationError("role must be customer or provider")
    return role


# ============ CUSTOMERS ============

@router.post("/customer/register", response_model=Token, status_code=status.HTTP_201_CREATED)
@limiter.limit("5/hour")
async def register_customer(
    request: Request,
    data: CustomerRegister,
    response: Response,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings)
):
    """
    Register a customer (requires a verified e-mail unless disabled)
    """
    customer = account_service.register_customer(db, data, settings)
    return issue_token(response, customer, UserRole.CUSTOMER, settings)


@router.post("/customer/login", response_model=Token)
@limiter.limit("5/minute")
async def login_customer(
    request: Request,
    credentials: UserLogin,
    response: Response,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings)
):
    customer = account_service.authenticate(db, Customer, credentials.email, credentials.password)
    return issue_token(response, customer, UserRole.CUSTOMER, settings)


# ============ PROVIDERS ============

@router.post("/provider/register", response_model=Token, status_code=status.HTTP_201_CREATED)
@limiter.limit("5/hour")
async def register_provider(
    request: Request,
    data: ProviderRegister,
    response: Response,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings)
):
    """
    Basic provider registration; business details are submitted afterwards
    """
    provider = account_service.register_provider(db, data, settings)
    return issue_token(response, provider, UserRole.PROVIDER, settings)


@router.post("/provider/login", response_model=Token)
@limiter.limit("5/minute")
async def login_provider(
    request: Request,
    credentials: UserLogin,
    response: Response,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings)
):
    provider = account_service.authenticate(db, ServiceProvider, credentials.email, credentials.password)
    return issue_token(response, provider, UserRole.PROVIDER, settings)


# ============ ADMINS ============

@router.post("/admin/login", response_model=Token)
@limiter.limit("5/minute")
async def login_admin(
    request: Request,
    credentials: UserLogin,
    response: Response,
    db: Session = Depends(get_db),
    now: datetime = Depends(get_now),
    settings: Settings = Depends(get_settings)
):
    admin = account_service.authenticate_admin(db, credentials.email, credentials.password, now, settings)
    return issue_token(response, admin, UserRole.ADMIN, settings)


# ============ CURRENT ACCOUNT ============

@router.get("/me", response_model=AccountResponse)
async def get_current_account(principal: Principal = Depends(get_current_principal)):
    """
    Get current account information
    """
    return account_response(principal.account, principal.role)


@router.put("/me", response_model=AccountResponse)
async def update_current_account(
    data: ProfileUpdate,
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db)
):
    """
    Update profile fields; e-mail changes are not supported
    """
    account_service.update_profile(db, principal.account, data.model_dump(exclude_unset=True))
    return account_response(principal.account, principal.role)


@router.post("/change-password")
async def change_password(
    password_data: PasswordChange,
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db)
):
    account_service.change_password(db, principal.account, password_data.old_password, password_data.new_password)
    return {"message": "Password updated successfully"}


@router.post("/logout")
async def logout(response: Response):
    """
    Logout by clearing the httpOnly cookie
    """
    response.delete_cookie(
        key="access_token",
        path="/",
        samesite="lax"
    )
    return {"message": "Logged out successfully"}


# ============ PASSWORD RESET ============

@router.post("/forgot-password")
@limiter.limit("5/hour")
async def forgot_password(
    request: Request,
    reset_data: PasswordReset,
    response: Response,
    db: Session = Depends(get_db),
    now: datetime = Depends(get_now),
    mailer: EmailService = Depends(get_email_service),
    settings: Settings = Depends(get_settings)
):
    """
    Request password reset (send email with reset link)
    """
    role = parse_self_service_role(reset_data.role)
    token_service.request_password_reset(db, reset_data.email, role, now, mailer, settings)
    return {"message": "If the email exists, a password reset link has been sent"}


@router.post("/reset-password")
async def reset_password(
    reset_data: PasswordResetConfirm,
    db: Session = Depends(get_db),
    now: datetime = Depends(get_now),
    settings: Settings = Depends(get_settings)
):
    """
    Set a new password with a single-use reset token
    """
    token_service.reset_password(db, reset_data.token, reset_data.new_password, now, settings)
    return {"message": "Password reset successfully"}


# ============ EMAIL VERIFICATION ============

@router.post("/send-verification")
@limiter.limit("5/hour")
async def send_verification(
    request: Request,
    data: VerificationRequest,
    response: Response,
    db: Session = Depends(get_db),
    now: datetime = Depends(get_now),
    mailer: EmailService = Depends(get_email_service),
    settings: Settings = Depends(get_settings)
):
    role = parse_self_service_role(data.role)
    token_service.send_verification(db, data.email, role, now, mailer, settings)
    return {"message": "Verification code sent"}


@router.post("/verify-email")
async def verify_email(
    data: VerificationConfirm,
    db: Session = Depends(get_db),
    now: datetime = Depends(get_now)
):
    email = token_service.verify_email(db, data.token, now)
    return {"message": "Email verified", "email": email}
