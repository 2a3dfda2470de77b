"""User-related Pydantic schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from zap_auth.models.user import AccountKind


class UserResponse(BaseModel):
    """Public view of a user account."""

    id: str = Field(..., description="Opaque user identifier")
    username: str
    email: str | None = None
    wallet_address: str | None = Field(None, description="Base58 Ed25519 public key")
    is_verified: bool
    account_kind: AccountKind
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class SignUpRequest(BaseModel):
    """Schema for email/password registration."""

    username: str = Field(..., min_length=3, max_length=20)
    email: EmailStr
    password: str = Field(..., min_length=6, max_length=72)


class SignUpResponse(BaseModel):
    message: str
    username: str


class VerifyOtpRequest(BaseModel):
    """Schema for submitting an emailed one-time code."""

    username: str = Field(..., min_length=3, max_length=20)
    otp: str = Field(..., min_length=6, max_length=6, description="6-digit code")


class ResendOtpRequest(BaseModel):
    username: str = Field(..., min_length=3, max_length=20)


class SignInRequest(BaseModel):
    """Schema for email/password sign-in."""

    email: EmailStr
    password: str = Field(..., min_length=6, max_length=72)


class SignInResponse(BaseModel):
    """Response returned after a successful sign-in."""

    access_token: str = Field(..., description="JWT access token")
    token_type: str = Field("bearer", description="Token type (always 'bearer')")
    user: UserResponse


class MessageResponse(BaseModel):
    message: str
