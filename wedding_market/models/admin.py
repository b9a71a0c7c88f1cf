"""Admin accounts and moderation audit trail"""
from sqlalchemy import Column, String, Integer, Boolean, DateTime, Text, ForeignKey

import enum

from wedding_market.models.base import Base, TimestampMixin, enum_column_type
from wedding_market.utils.clock import utc_now


class AdminRole(str, enum.Enum):
    """Admin role types"""
    SUPER_ADMIN = "super_admin"
    SUPPORT_ADMIN = "support_admin"


class Admin(Base, TimestampMixin):
    """Marketplace administrators"""
    __tablename__ = "admins"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    name = Column(String(255), nullable=False)
    email = Column(String(255), unique=True, nullable=False, index=True)
    password_hash = Column(String(255), nullable=False)
    phone_no = Column(String(20), nullable=True)
    address = Column(Text, nullable=True)
    role = Column(enum_column_type(AdminRole, "admin_role"), nullable=False, default=AdminRole.SUPPORT_ADMIN)
    is_active = Column(Boolean, default=True, nullable=False)
    failed_login_attempts = Column(Integer, default=0, nullable=False)
    last_login = Column(DateTime, nullable=True)


class AuditLog(Base):
    """Admin actions on providers and other accounts"""
    __tablename__ = "audit_logs"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    actor_id = Column(Integer, ForeignKey("admins.id"), nullable=False, index=True)
    action = Column(String(100), nullable=False)
    target_type = Column(String(50), nullable=False)
    target_id = Column(Integer, nullable=False)
    details = Column(Text, nullable=True)
    reason = Column(Text, nullable=True)
    ip_address = Column(String(45), nullable=True)
    timestamp = Column(DateTime, default=utc_now, nullable=False, index=True)
