from fastapi import status
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from app.core.jwt_utils import create_access_token
from app.models.users import User
from tests.helpers import Wallet, auth_headers, login, login_token, request_challenge


class TestChallengeAPI:
    """Test cases for the /auth/challenge endpoint"""

    def test_get_challenge(self, client: TestClient, wallet: Wallet):
        response = client.get("/auth/challenge", params={"walletAddress": wallet.address})

        assert response.status_code == status.HTTP_200_OK
        body = response.json()
        assert body["success"] is True
        data = body["data"]
        assert f"Wallet: {wallet.address}" in data["message"]
        assert f"Nonce: {data['nonce']}" in data["message"]
        assert f"Timestamp: {data['timestamp']}" in data["message"]

    def test_missing_wallet_address(self, client: TestClient):
        response = client.get("/auth/challenge")

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json() == {
            "success": False,
            "error": "Wallet address is required",
            "code": "MISSING_FIELD",
        }

    def test_invalid_wallet_address(self, client: TestClient):
        response = client.get("/auth/challenge", params={"walletAddress": "not-a-wallet!"})

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["code"] == "INVALID_WALLET_ADDRESS"


class TestWalletAuthAPI:
    """Test cases for the /auth/wallet endpoint"""

    def test_end_to_end_login(self, client: TestClient, wallet: Wallet):
        response = login(client, wallet)

        assert response.status_code == status.HTTP_200_OK
        body = response.json()
        assert body["success"] is True
        assert body["message"] == "Authentication successful"
        user = body["data"]["user"]
        assert user["walletAddress"] == wallet.address
        assert user["username"] == f"user_{wallet.address[:8]}"
        assert user["email"] is None
        assert body["data"]["token"]

        verify = client.get("/auth/verify", headers=auth_headers(body["data"]["token"]))
        assert verify.status_code == status.HTTP_200_OK
        assert verify.json()["data"]["user"]["id"] == user["id"]

    def test_reauthentication_returns_same_user(self, client: TestClient, wallet: Wallet):
        first = login(client, wallet).json()["data"]["user"]
        second = login(client, wallet, encoding="base58").json()["data"]["user"]

        assert first["id"] == second["id"]

    def test_username_for_new_user(self, client: TestClient, wallet: Wallet):
        response = login(client, wallet, username="alice")
        assert response.json()["data"]["user"]["username"] == "alice"

    def test_replayed_challenge_is_rejected(self, client: TestClient, wallet: Wallet):
        message = request_challenge(client, wallet)
        body = {
            "walletAddress": wallet.address,
            "signature": wallet.sign_base64(message),
            "message": message,
        }
        assert client.post("/auth/wallet", json=body).status_code == status.HTTP_200_OK

        replay = client.post("/auth/wallet", json=body)
        assert replay.status_code == status.HTTP_401_UNAUTHORIZED
        assert replay.json()["code"] == "CHALLENGE_NOT_FOUND"

    def test_self_made_message_is_rejected(self, client: TestClient, wallet: Wallet):
        message = "Sign this message to authenticate with SkillChain Platform.\n\nNonce: mine"
        response = client.post(
            "/auth/wallet",
            json={"walletAddress": wallet.address, "signature": wallet.sign_base64(message), "message": message},
        )

        assert response.status_code == status.HTTP_401_UNAUTHORIZED
        assert response.json()["code"] == "CHALLENGE_NOT_FOUND"

    def test_bad_signature_does_not_burn_challenge(
        self, client: TestClient, wallet: Wallet, other_wallet: Wallet
    ):
        message = request_challenge(client, wallet)
        bad = client.post(
            "/auth/wallet",
            json={
                "walletAddress": wallet.address,
                "signature": other_wallet.sign_base64(message),
                "message": message,
            },
        )
        assert bad.status_code == status.HTTP_401_UNAUTHORIZED
        assert bad.json() == {"success": False, "error": "Invalid signature", "code": "INVALID_SIGNATURE"}

        good = client.post(
            "/auth/wallet",
            json={"walletAddress": wallet.address, "signature": wallet.sign_base58(message), "message": message},
        )
        assert good.status_code == status.HTTP_200_OK

    def test_undecodable_signature(self, client: TestClient, wallet: Wallet):
        message = request_challenge(client, wallet)
        response = client.post(
            "/auth/wallet",
            json={"walletAddress": wallet.address, "signature": "%%%", "message": message},
        )

        assert response.status_code == status.HTTP_401_UNAUTHORIZED
        assert response.json()["code"] == "INVALID_SIGNATURE_ENCODING"

    def test_missing_fields(self, client: TestClient, wallet: Wallet):
        response = client.post("/auth/wallet", json={"walletAddress": wallet.address})

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        body = response.json()
        assert body["success"] is False
        assert body["code"] == "MISSING_FIELD"

    def test_empty_fields(self, client: TestClient, wallet: Wallet):
        response = client.post(
            "/auth/wallet", json={"walletAddress": wallet.address, "signature": "", "message": ""}
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["code"] == "MISSING_FIELD"


class TestSessionAPI:
    """Test cases for /auth/verify and /auth/logout"""

    def test_verify_without_token(self, client: TestClient):
        response = client.get("/auth/verify")

        assert response.status_code == status.HTTP_401_UNAUTHORIZED
        assert response.json()["code"] == "TOKEN_MISSING"

    def test_verify_expired_token(self, client: TestClient, user: User):
        token = create_access_token(user.id, user.wallet_address, expires_in_seconds=-10)
        response = client.get("/auth/verify", headers=auth_headers(token))

        assert response.status_code == status.HTTP_401_UNAUTHORIZED
        assert response.json()["code"] == "TOKEN_EXPIRED"

    def test_verify_malformed_token(self, client: TestClient):
        response = client.get("/auth/verify", headers=auth_headers("garbage"))

        assert response.status_code == status.HTTP_401_UNAUTHORIZED
        assert response.json()["code"] == "TOKEN_MALFORMED"

    def test_verify_deleted_user(self, client: TestClient, db_session: Session, user: User):
        token = create_access_token(user.id, user.wallet_address)
        db_session.delete(user)
        db_session.commit()

        response = client.get("/auth/verify", headers=auth_headers(token))
        assert response.status_code == status.HTTP_401_UNAUTHORIZED
        assert response.json()["code"] == "USER_NOT_FOUND"

    def test_logout(self, client: TestClient, wallet: Wallet):
        token = login_token(client, wallet)
        response = client.post("/auth/logout", headers=auth_headers(token))

        assert response.status_code == status.HTTP_200_OK
        assert response.json() == {"success": True, "message": "Logged out successfully"}


class TestOversizedAuthInput:
    """Oversized wallet addresses and signatures are rejected up front"""

    def test_oversized_wallet_address_on_challenge(self, client: TestClient):
        response = client.get("/auth/challenge", params={"walletAddress": "2" * 40_000})

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["code"] == "INVALID_WALLET_ADDRESS"

    def test_oversized_signature_on_login(self, client: TestClient, wallet: Wallet):
        message = request_challenge(client, wallet)
        response = client.post(
            "/auth/wallet",
            json={"walletAddress": wallet.address, "signature": "2" * 40_000, "message": message},
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["success"] is False

    def test_oversized_wallet_address_on_login(self, client: TestClient, wallet: Wallet):
        response = client.post(
            "/auth/wallet",
            json={"walletAddress": "2" * 40_000, "signature": wallet.sign_base64("x"), "message": "x"},
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
