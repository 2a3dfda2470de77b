# src/zap_auth/api/v1/endpoints/auth.py
"""Wallet authentication endpoints for the Zap Auth API."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Query

from zap_auth.api.v1.dependencies import WalletAuthenticatorDep
from zap_auth.schemas.user import UserResponse
from zap_auth.schemas.wallet import WalletLoginRequest, WalletLoginResponse, WalletUserResponse

router = APIRouter(prefix="/auth", tags=["authentication"])


@router.post("/wallet", response_model=WalletLoginResponse)
def login_with_wallet(
    body: WalletLoginRequest,
    wallet_authenticator: WalletAuthenticatorDep,
) -> WalletLoginResponse:
    """Authenticate a wallet with its signed nonce, registering it if new.

    The signed message must be exactly::

        Verify wallet ownership: <walletAddress>
        Nonce: <nonce>

    ``username`` is required the first time a wallet logs in.
    """
    result = wallet_authenticator.login_with_wallet(
        body.wallet_address,
        body.signature,
        username=body.username,
        email=body.email,
    )
    return WalletLoginResponse(
        access_token=result.access_token,
        created=result.created,
        user=UserResponse.model_validate(result.user),
    )


@router.get("/wallet", response_model=WalletUserResponse)
def get_user_by_wallet(
    wallet_authenticator: WalletAuthenticatorDep,
    wallet_address: Annotated[str, Query(alias="walletAddress")],
) -> WalletUserResponse:
    user = wallet_authenticator.get_user_by_wallet(wallet_address)
    return WalletUserResponse(user=UserResponse.model_validate(user))
