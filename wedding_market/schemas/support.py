"""
Support Desk Schemas
"""
from pydantic import BaseModel, EmailStr, Field


class SupportQueryCreate(BaseModel):
    subject: str = Field(..., min_length=1, max_length=255)
    message: str = Field(..., min_length=1, max_length=5000)


class GuestQueryCreate(SupportQueryCreate):
    """Contact form for visitors without an account"""
    name: str = Field(..., min_length=1, max_length=100)
    email: EmailStr


class QueryReply(BaseModel):
    message: str = Field(..., min_length=1, max_length=5000)
