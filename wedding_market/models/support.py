"""Help-desk queries from signed-in users and from site visitors"""
from sqlalchemy import Column, String, Integer, DateTime, Text, ForeignKey

import enum

from wedding_market.models.base import Base, enum_column_type
from wedding_market.utils.clock import utc_now


class QueryStatus(str, enum.Enum):
    PENDING = "pending"
    RESOLVED = "resolved"


class QuerySenderType(str, enum.Enum):
    CUSTOMER = "Customer"
    PROVIDER = "ServiceProvider"


class QueryClaimMixin:
    """Admin claim and reply columns shared by both query tables"""
    subject = Column(String(255), nullable=False)
    message = Column(Text, nullable=False)
    assigned_at = Column(DateTime, nullable=True)
    response_message = Column(Text, nullable=True)
    responded_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=utc_now, nullable=False, index=True)


class SupportQuery(Base, QueryClaimMixin):
    """Question raised by a customer or provider from their account"""
    __tablename__ = "support_queries"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    user_id = Column(Integer, nullable=False, index=True)
    user_type = Column(enum_column_type(QuerySenderType, "support_query_user_type"), nullable=False)
    status = Column(
        enum_column_type(QueryStatus, "support_query_status"),
        nullable=False,
        default=QueryStatus.PENDING,
        index=True
    )
    assigned_admin_id = Column(Integer, ForeignKey("admins.id"), nullable=True)
    responded_by = Column(Integer, ForeignKey("admins.id"), nullable=True)


class GuestQuery(Base, QueryClaimMixin):
    """Contact-form message from a visitor without an account"""
    __tablename__ = "guest_queries"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    name = Column(String(100), nullable=False)
    email = Column(String(150), nullable=False)
    status = Column(
        enum_column_type(QueryStatus, "guest_query_status"),
        nullable=False,
        default=QueryStatus.PENDING,
        index=True
    )
    assigned_admin_id = Column(Integer, ForeignKey("admins.id"), nullable=True)
    responded_by = Column(Integer, ForeignKey("admins.id"), nullable=True)
