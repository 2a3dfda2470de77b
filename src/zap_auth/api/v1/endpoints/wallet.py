# src/zap_auth/api/v1/endpoints/wallet.py
"""Wallet nonce issuance and account linking endpoints."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Query

from zap_auth.api.v1.dependencies import (
    CurrentUserDep,
    NonceManagerDep,
    SignedWalletUserDep,
    WalletAuthenticatorDep,
)
from zap_auth.schemas.user import UserResponse
from zap_auth.schemas.wallet import ConnectWalletRequest, NonceResponse, WalletUserResponse

router = APIRouter(prefix="/wallet", tags=["wallet"])


@router.get("/nonce", response_model=NonceResponse)
def get_nonce(
    wallet_authenticator: WalletAuthenticatorDep,
    nonce_manager: NonceManagerDep,
    wallet_address: Annotated[str, Query(alias="walletAddress")],
) -> NonceResponse:
    """Issue a fresh nonce for the wallet to sign.

    Requesting again replaces any nonce still outstanding for the address.
    """
    nonce = wallet_authenticator.request_nonce(wallet_address)
    return NonceResponse(nonce=nonce, expires_in=nonce_manager.ttl_seconds)


@router.post("/connect", response_model=WalletUserResponse)
def connect_wallet(
    body: ConnectWalletRequest,
    current_user: CurrentUserDep,
    wallet_authenticator: WalletAuthenticatorDep,
) -> WalletUserResponse:
    """Link a wallet to the signed-in account after verifying its signature."""
    user = wallet_authenticator.connect_wallet(current_user, body.wallet_address, body.signature)
    return WalletUserResponse(user=UserResponse.model_validate(user))


@router.get("/session", response_model=WalletUserResponse)
def read_signed_wallet_user(wallet_user: SignedWalletUserDep) -> WalletUserResponse:
    """Resolve the wallet user from ``X-Wallet-*`` signed headers."""
    return WalletUserResponse(user=UserResponse.model_validate(wallet_user))
