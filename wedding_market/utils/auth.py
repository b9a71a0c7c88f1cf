"""
Password hashing and JWT helpers
"""
import enum
import hashlib
import re
import secrets
from datetime import timedelta
from typing import Optional

from jose import jwt, JWTError, ExpiredSignatureError
from passlib.context import CryptContext

from wedding_market.config import Settings, settings as default_settings
from wedding_market.exceptions import AuthenticationError, TokenExpired, InvalidOrExpiredToken, ValidationError
from wedding_market.utils.clock import utc_now

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

PASSWORD_PATTERN = re.compile(r"^(?=.*[a-z])(?=.*[A-Z])(?=.*\d)(?=.*[^A-Za-z0-9]).{8,}$")
MIN_SECRET_LENGTH = 32


class UserRole(str, enum.Enum):
    """Roles carried in access tokens"""
    CUSTOMER = "customer"
    PROVIDER = "provider"
    ADMIN = "admin"


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)


def validate_password_strength(password: str) -> None:
    """Upper, lower, digit, special character, at least 8 long"""
    if not PASSWORD_PATTERN.match(password or ""):
        raise ValidationError(
            "Password must be at least 8 characters with upper and lower case letters, a digit and a special character"
        )


def _signing_key(secret: str) -> str:
    if len(secret) < MIN_SECRET_LENGTH:
        raise RuntimeError(f"JWT secret must be at least {MIN_SECRET_LENGTH} characters")
    return secret


def create_access_token(
    user_id: int,
    role: UserRole,
    email: str,
    expires_delta: Optional[timedelta] = None,
    settings: Settings = default_settings
) -> str:
    """
    Create a signed access token

    Claims: sub (account id), role, email, exp, iat
    """
    now = utc_now()
    expire = now + (expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES))
    to_encode = {
        "sub": str(user_id),
        "role": UserRole(role).value,
        "email": email,
        "iat": now,
        "exp": expire,
    }
    return jwt.encode(to_encode, _signing_key(settings.SECRET_KEY), algorithm=settings.ALGORITHM)


def decode_access_token(token: str, settings: Settings = default_settings) -> dict:
    """
    Decode and validate an access token

    Raises TokenExpired for an expired token, AuthenticationError for anything else.
    """
    try:
        payload = jwt.decode(token, _signing_key(settings.SECRET_KEY), algorithms=[settings.ALGORITHM])
    except ExpiredSignatureError:
        raise TokenExpired()
    except JWTError:
        raise AuthenticationError()

    if payload.get("sub") is None or payload.get("role") not in {role.value for role in UserRole}:
        raise AuthenticationError()
    return payload


def create_reset_token(
    email: str,
    role: UserRole,
    expires_delta: Optional[timedelta] = None,
    settings: Settings = default_settings
) -> str:
    """Password reset token, signed with its own secret"""
    now = utc_now()
    expire = now + (expires_delta or timedelta(minutes=settings.RESET_TOKEN_EXPIRE_MINUTES))
    to_encode = {
        "sub": email,
        "role": UserRole(role).value,
        "type": "password_reset",
        "jti": secrets.token_hex(8),
        "iat": now,
        "exp": expire,
    }
    return jwt.encode(to_encode, _signing_key(settings.RESET_SECRET_KEY), algorithm=settings.ALGORITHM)


def decode_reset_token(token: str, settings: Settings = default_settings) -> dict:
    try:
        payload = jwt.decode(token, _signing_key(settings.RESET_SECRET_KEY), algorithms=[settings.ALGORITHM])
    except JWTError:
        raise InvalidOrExpiredToken()

    if payload.get("type") != "password_reset" or not payload.get("sub"):
        raise InvalidOrExpiredToken()
    return payload


def hash_token(token: str) -> str:
    """Stable lookup key for tokens stored in the database"""
    return hashlib.sha256(token.encode("utf-8")).hexdigest()
