"""Session token issuance and verification."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from functools import lru_cache

from jose import JWTError, jwt

from zap_auth.core.errors import UnauthorizedError
from zap_auth.core.settings import settings

INVALID_TOKEN_MESSAGE = "Unauthorized. Invalid token"


@dataclass(frozen=True)
class TokenClaims:
    """Identity claims carried by a session token.

    Claims are a snapshot taken at sign-in; re-fetch the user before making
    authorization decisions.
    """

    user_id: str
    email: str | None
    username: str
    expires_at: datetime


class TokenService:
    """Sign and verify HS256 bearer tokens with a fixed lifetime."""

    def __init__(
        self,
        secret_key: str | None = None,
        *,
        algorithm: str | None = None,
        expire_minutes: int | None = None,
    ) -> None:
        self._secret_key = secret_key or settings.secret_key
        self.algorithm = algorithm or settings.jwt_algorithm
        self.expire_minutes = (
            expire_minutes if expire_minutes is not None else settings.access_token_expire_minutes
        )

    def issue_token(self, user_id: str, email: str | None, username: str) -> str:
        """Create a signed token for the given identity."""
        issued_at = datetime.now(UTC)
        to_encode: dict[str, object] = {
            "sub": user_id,
            "email": email,
            "username": username,
            "iat": issued_at,
            "exp": issued_at + timedelta(minutes=self.expire_minutes),
        }
        encoded_jwt: str = jwt.encode(to_encode, self._secret_key, algorithm=self.algorithm)
        return encoded_jwt

    def verify_token(self, token: str) -> TokenClaims:
        """Validate ``token`` and return its claims.

        Raises:
            UnauthorizedError: If the signature, algorithm or expiry check fails,
                or the token carries no subject.
        """
        try:
            payload = jwt.decode(
                token,
                self._secret_key,
                algorithms=[self.algorithm],
                options={"require_exp": True},
            )
        except JWTError as err:
            raise UnauthorizedError(INVALID_TOKEN_MESSAGE) from err

        subject = payload.get("sub")
        username = payload.get("username")
        if not subject or not isinstance(subject, str) or not username:
            raise UnauthorizedError(INVALID_TOKEN_MESSAGE)

        return TokenClaims(
            user_id=subject,
            email=payload.get("email"),
            username=str(username),
            expires_at=datetime.fromtimestamp(int(payload["exp"]), UTC),
        )


@lru_cache(maxsize=1)
def get_token_service() -> TokenService:
    """Return the process-wide token service."""
    return TokenService()
