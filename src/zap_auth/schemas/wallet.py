"""Wallet authentication Pydantic schemas."""

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from zap_auth.schemas.user import UserResponse


class NonceResponse(BaseModel):
    """Nonce the wallet must embed in its signed challenge."""

    nonce: str = Field(..., description="Hex-encoded 256-bit nonce")
    expires_in: int = Field(..., description="Seconds until the nonce expires")


class WalletLoginRequest(BaseModel):
    """Signed login challenge, with registration details for new wallets."""

    wallet_address: str = Field(..., alias="walletAddress", description="Base58 public key")
    signature: str = Field(..., description="Base58 detached Ed25519 signature")
    username: str | None = Field(None, min_length=3, max_length=20)
    email: EmailStr | None = None

    model_config = ConfigDict(populate_by_name=True)


class WalletLoginResponse(BaseModel):
    access_token: str = Field(..., description="JWT access token")
    token_type: str = Field("bearer", description="Token type (always 'bearer')")
    created: bool = Field(..., description="True if a new account was registered")
    user: UserResponse


class ConnectWalletRequest(BaseModel):
    """Signed connect challenge for linking a wallet to the current account."""

    wallet_address: str = Field(..., alias="walletAddress", description="Base58 public key")
    signature: str = Field(..., description="Base58 detached Ed25519 signature")

    model_config = ConfigDict(populate_by_name=True)


class WalletUserResponse(BaseModel):
    user: UserResponse
