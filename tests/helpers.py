import base64
from typing import Dict, Optional

import base58
from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PrivateKey
from cryptography.hazmat.primitives.serialization import Encoding, PublicFormat
from fastapi.testclient import TestClient


class Wallet:
    """Throwaway ED25519 keypair with a base58 address, like a browser wallet"""

    def __init__(self):
        self.private_key = Ed25519PrivateKey.generate()
        self.public_key = self.private_key.public_key().public_bytes(Encoding.Raw, PublicFormat.Raw)
        self.address = base58.b58encode(self.public_key).decode("ascii")

    def sign(self, message: str) -> bytes:
        return self.private_key.sign(message.encode("utf-8"))

    def sign_base64(self, message: str) -> str:
        return base64.b64encode(self.sign(message)).decode("ascii")

    def sign_base58(self, message: str) -> str:
        return base58.b58encode(self.sign(message)).decode("ascii")


def request_challenge(client: TestClient, wallet: Wallet) -> str:
    response = client.get("/auth/challenge", params={"walletAddress": wallet.address})
    assert response.status_code == 200, response.text
    return response.json()["data"]["message"]


def login(
    client: TestClient,
    wallet: Wallet,
    username: Optional[str] = None,
    encoding: str = "base64",
):
    """Run the challenge / sign / verify round trip and return the response"""
    message = request_challenge(client, wallet)
    signature = wallet.sign_base58(message) if encoding == "base58" else wallet.sign_base64(message)
    body = {"walletAddress": wallet.address, "signature": signature, "message": message}
    if username:
        body["username"] = username
    return client.post("/auth/wallet", json=body)


def login_token(client: TestClient, wallet: Wallet) -> str:
    response = login(client, wallet)
    assert response.status_code == 200, response.text
    return response.json()["data"]["token"]


def auth_headers(token: str) -> Dict[str, str]:
    return {"Authorization": f"Bearer {token}"}
