# tests/conftest.py
from __future__ import annotations

import os
import threading
from collections.abc import Callable, Generator, Iterator
from dataclasses import dataclass, field
from typing import Any

import base58
import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from nacl.signing import SigningKey
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

os.environ.setdefault("SECRET_KEY", "test-secret-key-for-zap-auth")
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("AUTO_CREATE_TABLES", "false")
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("LOG_LEVEL", "WARNING")

from zap_auth.api.v1.dependencies import get_nonce_manager, get_otp_manager
from zap_auth.core.security import hash_password
from zap_auth.db.session import Base
from zap_auth.db.session import get_db as app_get_session
from zap_auth.main import app as fastapi_app
from zap_auth.models import User
from zap_auth.services.directory import UserDirectory
from zap_auth.services.ephemeral import get_ephemeral_store
from zap_auth.services.nonce import NonceManager
from zap_auth.services.notifications import Notification, get_notifier
from zap_auth.services.otp import OtpManager
from zap_auth.services.tokens import TokenService, get_token_service

TEST_DB_URL = "sqlite://"
TEST_PASSWORD = "secret1"


class FakeClock:
    """Manually advanced clock returning seconds since the epoch."""

    def __init__(self, start: float = 1_700_000_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeEphemeralStore:
    """In-process stand-in for Redis honouring TTLs against a fake clock."""

    def __init__(self, clock: Callable[[], float]) -> None:
        self._clock = clock
        self._data: dict[str, tuple[str, float]] = {}
        self._lock = threading.Lock()

    def _live(self, key: str) -> str | None:
        entry = self._data.get(key)
        if entry is None:
            return None
        value, expires_at = entry
        if self._clock() >= expires_at:
            del self._data[key]
            return None
        return value

    def get(self, key: str) -> str | None:
        with self._lock:
            return self._live(key)

    def set(self, key: str, value: str, ttl_seconds: int) -> None:
        with self._lock:
            self._data[key] = (value, self._clock() + ttl_seconds)

    def delete(self, key: str) -> None:
        with self._lock:
            self._data.pop(key, None)

    def compare_and_delete(self, key: str, expected: str) -> bool:
        with self._lock:
            if self._live(key) != expected:
                return False
            del self._data[key]
            return True

    def set_if_absent(self, key: str, value: str, ttl_seconds: int) -> bool:
        with self._lock:
            if self._live(key) is not None:
                return False
            self._data[key] = (value, self._clock() + ttl_seconds)
            return True

    def increment(self, key: str, ttl_seconds: int) -> int:
        with self._lock:
            current = self._live(key)
            if current is None:
                self._data[key] = ("1", self._clock() + ttl_seconds)
                return 1
            count = int(current) + 1
            self._data[key] = (str(count), self._data[key][1])
            return count


@dataclass
class RecordingNotifier:
    """Notifier that records every message instead of sending it."""

    fail: bool = False
    sent: list[tuple[str, Notification]] = field(default_factory=list)

    def send(self, recipient: str, notification: Notification) -> bool:
        self.sent.append((recipient, notification))
        return not self.fail

    def last_otp_for(self, recipient: str) -> str:
        for sent_to, notification in reversed(self.sent):
            if sent_to == recipient and notification.subject == "Verify your account":
                return notification.text.split("Your verification code is ")[1][:6]
        raise AssertionError(f"no OTP sent to {recipient}")


@dataclass(frozen=True)
class WalletIdentity:
    signing_key: SigningKey
    address: str

    def sign(self, message: str) -> str:
        signature = self.signing_key.sign(message.encode("utf-8")).signature
        return base58.b58encode(signature).decode("ascii")


def generate_wallet() -> WalletIdentity:
    signing_key = SigningKey.generate()
    address = base58.b58encode(signing_key.verify_key.encode()).decode("ascii")
    return WalletIdentity(signing_key=signing_key, address=address)


@pytest.fixture(scope="session")
def engine() -> Generator[Engine, None, None]:
    engine = create_engine(
        TEST_DB_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture()
def db_session(engine: Engine) -> Iterator[Session]:
    SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.rollback()
        session.close()
        # Ensure each test sees a clean database even if commits occurred.
        with engine.begin() as cleanup_conn:
            for table in reversed(Base.metadata.sorted_tables):
                cleanup_conn.execute(table.delete())


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def ephemeral_store(clock: FakeClock) -> FakeEphemeralStore:
    return FakeEphemeralStore(clock)


@pytest.fixture()
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture()
def token_service() -> TokenService:
    return TokenService()


@pytest.fixture()
def directory(db_session: Session) -> UserDirectory:
    return UserDirectory(db_session)


@pytest.fixture()
def nonce_manager(ephemeral_store: FakeEphemeralStore, clock: FakeClock) -> NonceManager:
    return NonceManager(ephemeral_store, ttl_seconds=300, grace_seconds=60, clock=clock)


@pytest.fixture()
def otp_manager(ephemeral_store: FakeEphemeralStore, clock: FakeClock) -> OtpManager:
    return OtpManager(
        ephemeral_store,
        length=6,
        ttl_seconds=300,
        resend_cooldown_seconds=0,
        max_attempts=5,
        grace_seconds=60,
        clock=clock,
    )


@pytest.fixture(scope="session")
def app() -> FastAPI:
    return fastapi_app


@pytest.fixture(autouse=True)
def override_dependencies(
    app: FastAPI,
    db_session: Session,
    ephemeral_store: FakeEphemeralStore,
    nonce_manager: NonceManager,
    otp_manager: OtpManager,
    notifier: RecordingNotifier,
    token_service: TokenService,
) -> Iterator[None]:
    def _get_session_override() -> Generator[Session, None, None]:
        yield db_session

    overrides: dict[Callable[..., Any], Callable[..., Any]] = {
        app_get_session: _get_session_override,
        get_ephemeral_store: lambda: ephemeral_store,
        get_nonce_manager: lambda: nonce_manager,
        get_otp_manager: lambda: otp_manager,
        get_notifier: lambda: notifier,
        get_token_service: lambda: token_service,
    }
    app.dependency_overrides.update(overrides)
    try:
        yield
    finally:
        for dependency in overrides:
            app.dependency_overrides.pop(dependency, None)


@pytest.fixture()
def client(app: FastAPI) -> Iterator[TestClient]:
    with TestClient(app, base_url="http://test") as test_client:
        yield test_client


@pytest.fixture()
def wallet() -> WalletIdentity:
    """Return a fresh Ed25519 wallet."""
    return generate_wallet()


@pytest.fixture()
def other_wallet() -> WalletIdentity:
    return generate_wallet()


@pytest.fixture()
def verified_user(directory: UserDirectory) -> User:
    """Create and return a verified email/password account."""
    user = User.for_credentials("bob", "bob@x.com", hash_password(TEST_PASSWORD))
    user.is_verified = True
    return directory.insert(user)


@pytest.fixture()
def wallet_user(directory: UserDirectory, wallet: WalletIdentity) -> User:
    """Create and return a wallet-only account for ``wallet``."""
    return directory.insert(User.for_wallet("alice", wallet.address))


@pytest.fixture()
def auth_headers(verified_user: User, token_service: TokenService) -> dict[str, str]:
    """Return authorization headers for the verified credential user."""
    token = token_service.issue_token(verified_user.id, verified_user.email, verified_user.username)
    return {"Authorization": f"Bearer {token}"}
