from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, EmailStr, field_validator


class Designation(str, Enum):
    """Staff designation enumeration"""

    DOCTOR = "doctor"
    NURSE = "nurse"
    STAFF = "staff"


class UserStatus(str, Enum):
    """User status enumeration"""

    ACTIVE = "active"
    INACTIVE = "inactive"
    TEMPORARILY_INACTIVE = "temporarily_inactive"


class OTPType(str, Enum):
    """Purpose an OTP was issued for"""

    REGISTRATION = "registration"
    LOGIN = "login"
    FORGOT_PASSWORD = "forgot_password"


def _normalize_email(v: str) -> str:
    return v.strip().lower()


class UserRegisterSchema(BaseModel):
    """
    Schema for staff and admin registration.

    Mobile number, password and designation rules are enforced by the auth
    service so that they surface as registry error codes.
    """

    name: str
    mobile: str
    email: EmailStr
    designation: str = Designation.STAFF.value
    password: str

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Name cannot be empty")
        if len(v) > 255:
            raise ValueError("Name must not exceed 255 characters")
        return v

    @field_validator("mobile", "designation")
    @classmethod
    def strip_value(cls, v: str) -> str:
        return v.strip()

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str) -> str:
        return _normalize_email(v)


class VerifyOTPSchema(BaseModel):
    email: EmailStr
    otp: str
    otp_type: OTPType = OTPType.REGISTRATION

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str) -> str:
        return _normalize_email(v)

    @field_validator("otp")
    @classmethod
    def validate_otp(cls, v: str) -> str:
        return v.strip()


class UserLoginSchema(BaseModel):
    """Password login. ``identifier`` is an email address or a mobile number."""

    identifier: str
    password: str

    @field_validator("identifier")
    @classmethod
    def validate_identifier(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Email or mobile number is required")
        return v.lower() if "@" in v else v

    @field_validator("password")
    @classmethod
    def validate_password(cls, v: str) -> str:
        if not v:
            raise ValueError("Password cannot be empty")
        return v


class IdentifierSchema(BaseModel):
    """Request carrying only an email address or a mobile number."""

    identifier: str

    @field_validator("identifier")
    @classmethod
    def validate_identifier(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Email or mobile number is required")
        return v.lower() if "@" in v else v


class OTPLoginSchema(BaseModel):
    email: EmailStr
    otp: str

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str) -> str:
        return _normalize_email(v)


class ResendOTPSchema(BaseModel):
    email: EmailStr
    otp_type: OTPType

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str) -> str:
        return _normalize_email(v)


class ResetPasswordSchema(BaseModel):
    email: EmailStr
    otp: str
    new_password: str

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str) -> str:
        return _normalize_email(v)


class RefreshTokenSchema(BaseModel):
    refresh_token: str


class UserStatusUpdateSchema(BaseModel):
    status: UserStatus


class UserSchema(BaseModel):
    """Schema for returning user data."""

    id: int
    name: str
    mobile: str
    email: EmailStr
    designation: Designation
    status: UserStatus
    is_admin: bool
    is_approved: bool
    is_verified: bool
    approved_by: Optional[int] = None
    last_login_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class TokenResponse(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    expires_in: int
    user: UserSchema


class MessageResponse(BaseModel):
    message: str


class PendingApprovalsResponse(BaseModel):
    users: List[UserSchema]
    total: int
