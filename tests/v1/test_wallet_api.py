# tests/v1/test_wallet_api.py
"""End-to-end tests for the wallet authentication endpoints."""

from fastapi import status
from fastapi.testclient import TestClient

from zap_auth.services.crypto import build_connect_message, build_login_message


def _request_nonce(client: TestClient, address: str) -> str:
    response = client.get("/api/v1/wallet/nonce", params={"walletAddress": address})
    assert response.status_code == status.HTTP_200_OK
    body = response.json()
    assert body["expires_in"] == 300
    return body["nonce"]


def test_wallet_registration_then_replay(client: TestClient, wallet) -> None:
    nonce = _request_nonce(client, wallet.address)
    signature = wallet.sign(f"Verify wallet ownership: {wallet.address}\nNonce: {nonce}")
    payload = {"walletAddress": wallet.address, "signature": signature, "username": "alice"}

    response = client.post("/api/v1/auth/wallet", json=payload)
    assert response.status_code == status.HTTP_200_OK
    body = response.json()
    assert body["created"] is True
    assert body["token_type"] == "bearer"
    assert body["user"]["username"] == "alice"
    assert body["user"]["wallet_address"] == wallet.address
    assert body["user"]["account_kind"] == "wallet"

    replay = client.post("/api/v1/auth/wallet", json=payload)
    assert replay.status_code == status.HTTP_400_BAD_REQUEST
    assert "nonce" in replay.json()["detail"].lower()


def test_wallet_token_opens_profile(client: TestClient, wallet) -> None:
    nonce = _request_nonce(client, wallet.address)
    signature = wallet.sign(build_login_message(wallet.address, nonce))
    token = client.post(
        "/api/v1/auth/wallet",
        json={"wallet_address": wallet.address, "signature": signature, "username": "alice"},
    ).json()["access_token"]

    response = client.get("/api/v1/user/me", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == status.HTTP_200_OK
    assert response.json()["email"] is None


def test_new_wallet_without_username(client: TestClient, wallet) -> None:
    nonce = _request_nonce(client, wallet.address)
    signature = wallet.sign(build_login_message(wallet.address, nonce))

    response = client.post(
        "/api/v1/auth/wallet",
        json={"walletAddress": wallet.address, "signature": signature},
    )
    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json()["detail"] == "Username is required for registration"


def test_bad_signature_is_unauthorized(client: TestClient, wallet, other_wallet) -> None:
    nonce = _request_nonce(client, wallet.address)
    signature = other_wallet.sign(build_login_message(wallet.address, nonce))

    response = client.post(
        "/api/v1/auth/wallet",
        json={"walletAddress": wallet.address, "signature": signature, "username": "alice"},
    )
    assert response.status_code == status.HTTP_401_UNAUTHORIZED
    assert response.json()["detail"] == "Invalid signature"


def test_expired_nonce(client: TestClient, wallet, clock) -> None:
    nonce = _request_nonce(client, wallet.address)
    signature = wallet.sign(build_login_message(wallet.address, nonce))
    clock.advance(301)

    response = client.post(
        "/api/v1/auth/wallet",
        json={"walletAddress": wallet.address, "signature": signature, "username": "alice"},
    )
    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert "expired" in response.json()["detail"].lower()


def test_nonce_for_malformed_address(client: TestClient) -> None:
    response = client.get("/api/v1/wallet/nonce", params={"walletAddress": "0OIl"})
    assert response.status_code == status.HTTP_400_BAD_REQUEST


def test_nonce_requires_address(client: TestClient) -> None:
    response = client.get("/api/v1/wallet/nonce")
    assert response.status_code == status.HTTP_400_BAD_REQUEST


def test_get_user_by_wallet(client: TestClient, wallet, wallet_user, other_wallet) -> None:
    response = client.get("/api/v1/auth/wallet", params={"walletAddress": wallet.address})
    assert response.status_code == status.HTTP_200_OK
    assert response.json()["user"]["id"] == wallet_user.id

    missing = client.get("/api/v1/auth/wallet", params={"walletAddress": other_wallet.address})
    assert missing.status_code == status.HTTP_404_NOT_FOUND


def test_connect_wallet(client: TestClient, auth_headers, verified_user, wallet) -> None:
    nonce = _request_nonce(client, wallet.address)
    signature = wallet.sign(build_connect_message(verified_user.id, nonce))

    response = client.post(
        "/api/v1/wallet/connect",
        json={"walletAddress": wallet.address, "signature": signature},
        headers=auth_headers,
    )
    assert response.status_code == status.HTTP_200_OK
    user = response.json()["user"]
    assert user["wallet_address"] == wallet.address
    assert user["account_kind"] == "linked"


def test_connect_wallet_requires_session(client: TestClient, wallet) -> None:
    response = client.post(
        "/api/v1/wallet/connect",
        json={"walletAddress": wallet.address, "signature": "x"},
    )
    assert response.status_code == status.HTTP_401_UNAUTHORIZED


def test_connect_wallet_owned_elsewhere(
    client: TestClient, auth_headers, verified_user, wallet, wallet_user
) -> None:
    nonce = _request_nonce(client, wallet.address)
    signature = wallet.sign(build_connect_message(verified_user.id, nonce))

    response = client.post(
        "/api/v1/wallet/connect",
        json={"walletAddress": wallet.address, "signature": signature},
        headers=auth_headers,
    )
    assert response.status_code == status.HTTP_409_CONFLICT


def test_signed_header_session(client: TestClient, wallet, wallet_user) -> None:
    message = "Sign in to Zap at 2024-01-01T00:00:00Z"
    headers = {
        "X-Wallet-Address": wallet.address,
        "X-Wallet-Signature": wallet.sign(message),
        "X-Wallet-Message": message,
    }
    response = client.get("/api/v1/wallet/session", headers=headers)
    assert response.status_code == status.HTTP_200_OK
    assert response.json()["user"]["id"] == wallet_user.id

    headers["X-Wallet-Message"] = "tampered"
    assert client.get("/api/v1/wallet/session", headers=headers).status_code == 401


def test_signed_header_session_requires_headers(client: TestClient) -> None:
    response = client.get("/api/v1/wallet/session")
    assert response.status_code == status.HTTP_401_UNAUTHORIZED


def test_wallet_login_rejects_malformed_email(client: TestClient, wallet) -> None:
    nonce = _request_nonce(client, wallet.address)
    signature = wallet.sign(build_login_message(wallet.address, nonce))
    payload = {"walletAddress": wallet.address, "signature": signature, "username": "alice"}

    response = client.post("/api/v1/auth/wallet", json={**payload, "email": "alice@x..com"})
    assert response.status_code == status.HTTP_400_BAD_REQUEST

    retry = client.post("/api/v1/auth/wallet", json=payload)
    assert retry.status_code == status.HTTP_200_OK
