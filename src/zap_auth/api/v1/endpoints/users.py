# src/zap_auth/api/v1/endpoints/users.py
"""Email/password account endpoints: sign-up, verification and sign-in."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Response, status

from zap_auth.api.v1.dependencies import CredentialAuthenticatorDep, CurrentUserDep
from zap_auth.core.settings import settings
from zap_auth.schemas.user import (
    MessageResponse,
    ResendOtpRequest,
    SignInRequest,
    SignInResponse,
    SignUpRequest,
    SignUpResponse,
    UserResponse,
    VerifyOtpRequest,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/user", tags=["users"])


@router.post("/signup", response_model=SignUpResponse, status_code=status.HTTP_201_CREATED)
def sign_up(body: SignUpRequest, authenticator: CredentialAuthenticatorDep) -> SignUpResponse:
    """Register a new account and email it a verification code."""
    user = authenticator.sign_up(body.username, body.email, body.password)
    return SignUpResponse(
        message="User registered. Check your email for the verification code.",
        username=user.username,
    )


@router.post("/verify", response_model=MessageResponse)
def verify_email(body: VerifyOtpRequest, authenticator: CredentialAuthenticatorDep) -> MessageResponse:
    authenticator.verify_email(body.username, body.otp)
    return MessageResponse(message="Email verified successfully.")


@router.post("/resend-otp", response_model=MessageResponse)
def resend_otp(body: ResendOtpRequest, authenticator: CredentialAuthenticatorDep) -> MessageResponse:
    authenticator.resend_verification(body.username)
    return MessageResponse(message="Verification code sent.")


@router.post("/signin", response_model=SignInResponse)
def sign_in(
    body: SignInRequest,
    response: Response,
    authenticator: CredentialAuthenticatorDep,
) -> SignInResponse:
    """Exchange email and password for a session token.

    The token is returned in the body and also set as an HTTP-only cookie.
    """
    result = authenticator.sign_in(body.email, body.password)
    response.set_cookie(
        key=settings.auth_cookie_name,
        value=result.access_token,
        max_age=settings.access_token_expire_seconds,
        httponly=True,
        secure=settings.auth_cookie_secure,
        samesite="lax",
    )
    return SignInResponse(
        access_token=result.access_token,
        user=UserResponse.model_validate(result.user),
    )


@router.get("/me", response_model=UserResponse)
def read_current_user(current_user: CurrentUserDep) -> UserResponse:
    return UserResponse.model_validate(current_user)
