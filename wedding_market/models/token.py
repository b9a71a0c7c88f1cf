"""Single-use password reset and e-mail verification tokens"""
from sqlalchemy import Column, String, Integer, DateTime

import enum

from wedding_market.models.base import Base, enum_column_type
from wedding_market.utils.clock import utc_now


class TokenStatus(str, enum.Enum):
    PENDING = "pending"
    VERIFIED = "verified"
    USED = "used"


class ResetToken(Base):
    """Password reset request; consumed exactly once"""
    __tablename__ = "reset_tokens"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    email = Column(String(255), nullable=False, index=True)
    role = Column(String(20), nullable=False)
    token_hash = Column(String(64), nullable=False, unique=True, index=True)
    expiry = Column(DateTime, nullable=False)
    status = Column(enum_column_type(TokenStatus, "reset_token_status"), nullable=False, default=TokenStatus.PENDING)
    created_at = Column(DateTime, default=utc_now, nullable=False)


class EmailVerificationToken(Base):
    """Pre-registration e-mail ownership check"""
    __tablename__ = "email_verification_tokens"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    email = Column(String(255), nullable=False, index=True)
    role = Column(String(20), nullable=False)
    token = Column(String(64), nullable=False, unique=True, index=True)
    expiry = Column(DateTime, nullable=False)
    status = Column(
        enum_column_type(TokenStatus, "verification_token_status"),
        nullable=False,
        default=TokenStatus.PENDING
    )
    created_at = Column(DateTime, default=utc_now, nullable=False)
