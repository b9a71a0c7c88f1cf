"""
Authentication Schemas for the Wedding Market API
"""
from pydantic import BaseModel, EmailStr, Field
from typing import Optional
from datetime import datetime


class UserLogin(BaseModel):
    email: EmailStr
    password: str


class CustomerRegister(BaseModel):
    name: str = Field(..., min_length=2, max_length=255)
    email: EmailStr
    password: str
    phone_no: Optional[str] = Field(None, max_length=20)
    alternate_phone: Optional[str] = Field(None, max_length=20)
    address: Optional[str] = None


class ProviderRegister(BaseModel):
    name: str = Field(..., min_length=2, max_length=255)
    email: EmailStr
    password: str
    phone_no: Optional[str] = Field(None, max_length=20)
    city: Optional[str] = None
    state: Optional[str] = None


class BusinessDetailsRequest(BaseModel):
    business_name: str = Field(..., min_length=2, max_length=255)
    gst_number: Optional[str] = Field(None, max_length=20)
    pan_number: str = Field(..., min_length=10, max_length=10)
    aadhar_number: str = Field(..., min_length=12, max_length=12)
    address: str = Field(..., min_length=1)
    city: Optional[str] = None
    state: Optional[str] = None
    alternate_phone: Optional[str] = Field(None, max_length=20)


class ProfileUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=2, max_length=255)
    phone_no: Optional[str] = Field(None, max_length=20)
    alternate_phone: Optional[str] = Field(None, max_length=20)
    address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None


class AccountResponse(BaseModel):
    id: int
    name: str
    email: str
    role: str
    phone_no: Optional[str] = None
    status: Optional[str] = None
    created_at: Optional[datetime] = None


class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user: AccountResponse


class PasswordReset(BaseModel):
    email: EmailStr
    role: str = "customer"


class PasswordResetConfirm(BaseModel):
    token: str
    new_password: str


class PasswordChange(BaseModel):
    old_password: str
    new_password: str


class VerificationRequest(BaseModel):
    email: EmailStr
    role: str = "customer"


class VerificationConfirm(BaseModel):
    token: str
