"""
Authentication dependencies for FastAPI
"""
from dataclasses import dataclass
from typing import Optional, Union

from fastapi import Depends, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session

from wedding_market.config import Settings, get_settings
from wedding_market.db.session import get_db
from wedding_market.exceptions import AuthenticationError, Unauthorized
from wedding_market.models import Admin, Customer, ServiceProvider
from wedding_market.utils.auth import UserRole, decode_access_token

security = HTTPBearer(auto_error=False)  # Don't auto-raise error, check cookie first

ACCOUNT_MODELS = {
    UserRole.CUSTOMER: Customer,
    UserRole.PROVIDER: ServiceProvider,
    UserRole.ADMIN: Admin,
}


@dataclass
class Principal:
    """Authenticated caller: role plus the loaded account row"""
    role: UserRole
    account: Union[Customer, ServiceProvider, Admin]

    @property
    def id(self) -> int:
        return self.account.id


async def get_current_principal(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings)
) -> Principal:
    """
    Resolve the caller from a JWT
    Supports both Authorization header and httpOnly cookie
    """
    if credentials:
        token = credentials.credentials
    else:
        token = request.cookies.get("access_token")

    if not token:
        raise AuthenticationError("Authentication required")

    payload = decode_access_token(token, settings=settings)
    role = UserRole(payload["role"])

    try:
        account_id = int(payload["sub"])
    except (TypeError, ValueError):
        raise AuthenticationError()

    model = ACCOUNT_MODELS[role]
    account = db.query(model).filter(model.id == account_id).first()
    if account is None:
        raise AuthenticationError()

    if role == UserRole.ADMIN and not account.is_active:
        raise Unauthorized("Admin account is inactive")

    return Principal(role=role, account=account)


def require_role(required_role: UserRole):
    """
    Dependency factory for role-based access control
    Usage: Depends(require_role(UserRole.CUSTOMER))
    """
    async def role_checker(principal: Principal = Depends(get_current_principal)) -> Principal:
        if principal.role != required_role:
            raise Unauthorized(f"Access denied. Required role: {required_role.value}")
        return principal

    return role_checker


# ============ ROLE-SPECIFIC DEPENDENCIES ============

async def get_current_customer(
    principal: Principal = Depends(require_role(UserRole.CUSTOMER))
) -> Customer:
    return principal.account


async def get_current_provider(
    principal: Principal = Depends(require_role(UserRole.PROVIDER))
) -> ServiceProvider:
    return principal.account


async def get_approved_provider(
    provider: ServiceProvider = Depends(get_current_provider)
) -> ServiceProvider:
    """Providers may manage listings only once an admin approved them"""
    if not provider.is_approved:
        raise Unauthorized("Your account is awaiting admin approval")
    return provider


async def get_current_admin(
    principal: Principal = Depends(require_role(UserRole.ADMIN))
) -> Admin:
    return principal.account
