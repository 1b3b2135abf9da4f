from datetime import datetime, timezone

import jwt
import pytest

from app.core.config import settings
from app.core.errors import AuthError, ErrorKind
from app.core.jwt_utils import create_access_token, verify_token


class TestAccessToken:
    """Test cases for session token creation and verification"""

    def test_round_trip_claims(self):
        token = create_access_token("user-1", "WalletAddress111")
        claims = verify_token(token)

        assert claims.user_id == "user-1"
        assert claims.wallet_address == "WalletAddress111"
        assert claims.expires_at > datetime.now(timezone.utc)

    def test_payload_uses_camel_case_claims(self):
        token = create_access_token("user-1", "WalletAddress111")
        payload = jwt.decode(token, settings.ENCODE_KEY, algorithms=[settings.ENCODE_ALGORITHM])

        assert payload["userId"] == "user-1"
        assert payload["walletAddress"] == "WalletAddress111"
        assert payload["exp"] - payload["iat"] == settings.ACCESS_TOKEN_EXPIRE_SECONDS

    def test_requires_user_and_wallet(self):
        with pytest.raises(ValueError):
            create_access_token("", "WalletAddress111")

    def test_missing_token(self):
        with pytest.raises(AuthError) as exc_info:
            verify_token(None)
        assert exc_info.value.kind == ErrorKind.TOKEN_MISSING

    def test_expired_token(self):
        token = create_access_token("user-1", "WalletAddress111", expires_in_seconds=-60)

        with pytest.raises(AuthError) as exc_info:
            verify_token(token)
        assert exc_info.value.kind == ErrorKind.TOKEN_EXPIRED

    def test_token_signed_with_other_key(self):
        token = jwt.encode(
            {"userId": "user-1", "walletAddress": "W", "exp": 4102444800},
            "some-other-signing-key-0123456789abcdef",
            algorithm="HS256",
        )

        with pytest.raises(AuthError) as exc_info:
            verify_token(token)
        assert exc_info.value.kind == ErrorKind.TOKEN_MALFORMED

    def test_garbage_token(self):
        with pytest.raises(AuthError) as exc_info:
            verify_token("not.a.jwt")
        assert exc_info.value.kind == ErrorKind.TOKEN_MALFORMED

    def test_token_without_user_claim(self):
        token = jwt.encode(
            {"walletAddress": "W", "exp": 4102444800},
            settings.ENCODE_KEY,
            algorithm=settings.ENCODE_ALGORITHM,
        )

        with pytest.raises(AuthError) as exc_info:
            verify_token(token)
        assert exc_info.value.kind == ErrorKind.TOKEN_MALFORMED
