"""Shared API dependencies for authentication and service wiring."""

from typing import Annotated

from fastapi import Depends, Header, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from zap_auth.core.errors import UnauthorizedError
from zap_auth.core.settings import settings
from zap_auth.db.session import get_db
from zap_auth.models import User
from zap_auth.services.credentials import CredentialAuthenticator
from zap_auth.services.directory import UserDirectory
from zap_auth.services.ephemeral import EphemeralStore, get_ephemeral_store
from zap_auth.services.nonce import NonceManager
from zap_auth.services.notifications import Notifier, get_notifier
from zap_auth.services.otp import OtpManager
from zap_auth.services.tokens import INVALID_TOKEN_MESSAGE, TokenService, get_token_service
from zap_auth.services.wallet import WalletAuthenticator

# Bearer is optional because browsers authenticate with the session cookie
bearer_scheme = HTTPBearer(auto_error=False)

# Type alias for database session dependency
SessionDep = Annotated[Session, Depends(get_db)]
EphemeralStoreDep = Annotated[EphemeralStore, Depends(get_ephemeral_store)]
NotifierDep = Annotated[Notifier, Depends(get_notifier)]
TokenServiceDep = Annotated[TokenService, Depends(get_token_service)]


def get_user_directory(db: SessionDep) -> UserDirectory:
    return UserDirectory(db)


UserDirectoryDep = Annotated[UserDirectory, Depends(get_user_directory)]


def get_nonce_manager(store: EphemeralStoreDep) -> NonceManager:
    return NonceManager(store)


def get_otp_manager(store: EphemeralStoreDep) -> OtpManager:
    return OtpManager(store)


NonceManagerDep = Annotated[NonceManager, Depends(get_nonce_manager)]
OtpManagerDep = Annotated[OtpManager, Depends(get_otp_manager)]


def get_credential_authenticator(
    directory: UserDirectoryDep,
    otp_manager: OtpManagerDep,
    notifier: NotifierDep,
    token_service: TokenServiceDep,
) -> CredentialAuthenticator:
    return CredentialAuthenticator(directory, otp_manager, notifier, token_service)


def get_wallet_authenticator(
    directory: UserDirectoryDep,
    nonce_manager: NonceManagerDep,
    token_service: TokenServiceDep,
) -> WalletAuthenticator:
    return WalletAuthenticator(directory, nonce_manager, token_service)


CredentialAuthenticatorDep = Annotated[
    CredentialAuthenticator, Depends(get_credential_authenticator)
]
WalletAuthenticatorDep = Annotated[WalletAuthenticator, Depends(get_wallet_authenticator)]


def get_current_user(
    request: Request,
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)],
    directory: UserDirectoryDep,
    token_service: TokenServiceDep,
) -> User:
    """Get the current authenticated user from a bearer token or session cookie.

    Args:
        request: Incoming request, consulted for the session cookie
        credentials: HTTP Bearer token credentials, if supplied
        directory: User lookups
        token_service: Session token verification

    Returns:
        User object for the authenticated user

    Raises:
        UnauthorizedError: If no token is present, it is invalid, or the
            account no longer exists
    """
    token = credentials.credentials if credentials is not None else None
    if not token:
        token = request.cookies.get(settings.auth_cookie_name)
    if not token:
        raise UnauthorizedError("Unauthorized. No token provided")

    claims = token_service.verify_token(token)
    user = directory.find_by_id(claims.user_id)
    if user is None:
        raise UnauthorizedError(INVALID_TOKEN_MESSAGE)
    return user


def get_signed_wallet_user(
    wallet_authenticator: WalletAuthenticatorDep,
    x_wallet_address: Annotated[str | None, Header()] = None,
    x_wallet_signature: Annotated[str | None, Header()] = None,
    x_wallet_message: Annotated[str | None, Header()] = None,
) -> User:
    """Resolve a registered wallet from ``X-Wallet-*`` signed headers.

    This mode has no server-side nonce and is replayable; it is only suitable
    for low-value capability checks.
    """
    return wallet_authenticator.authenticate_signed_request(
        x_wallet_address, x_wallet_signature, x_wallet_message
    )


# Type alias for current user dependency
CurrentUserDep = Annotated[User, Depends(get_current_user)]
SignedWalletUserDep = Annotated[User, Depends(get_signed_wallet_user)]
