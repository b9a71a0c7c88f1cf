"""Declarative base and shared column helpers"""
from sqlalchemy import Column, DateTime, Enum as SQLEnum
from sqlalchemy.orm import declarative_base

from wedding_market.utils.clock import utc_now

Base = declarative_base()


class TimestampMixin:
    """Adds created_at / updated_at columns"""
    created_at = Column(DateTime, default=utc_now, nullable=False)
    updated_at = Column(DateTime, default=utc_now, onupdate=utc_now, nullable=False)


def enum_column_type(enum_cls, name: str) -> SQLEnum:
    """Enum column persisted by value ('Pending'), not by member name ('PENDING')"""
    return SQLEnum(
        enum_cls,
        name=name,
        values_callable=lambda members: [member.value for member in members],
        validate_strings=True
    )
