"""
JWT Token Utilities

This module handles JSON Web Token (JWT) creation and verification for wallet sessions.
After a user successfully signs a login challenge, this module creates a JWT token
that can be used for subsequent authenticated API requests.

Flow:
1. User verifies wallet signature -> create_access_token() generates JWT
2. User makes API request with JWT in Authorization header -> verify_token() validates it
3. Protected endpoints use get_current_user() from dependencies.py to load the User

The JWT contains:
- userId: Id of the authenticated user
- walletAddress: The authenticated wallet address
- iat: Issued at timestamp
- exp: Expiration timestamp (ACCESS_TOKEN_EXPIRE_SECONDS, 7 days by default)

Sessions are stateless: there is no server-side session table and no revocation.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

import jwt

from app.core.config import settings
from app.core.errors import AuthError, ErrorKind


if not settings.ENCODE_KEY:
    raise RuntimeError("ENCODE_KEY is not configured")


@dataclass(frozen=True)
class SessionClaims:
    user_id: str
    wallet_address: str
    expires_at: datetime


def create_access_token(
    user_id: str,
    wallet_address: str,
    extra_claims: Optional[Dict[str, Any]] = None,
    expires_in_seconds: Optional[int] = None,
) -> str:
    """
    Create a JWT access token for an authenticated user.

    Args:
        user_id: Id of the user row
        wallet_address: The wallet address that was verified
        extra_claims: Optional additional claims to include in the JWT payload
        expires_in_seconds: Override of ACCESS_TOKEN_EXPIRE_SECONDS

    Returns:
        A JWT token string that can be used in Authorization: Bearer <token> header

    Raises:
        ValueError: If user_id or wallet_address is empty
    """
    if not user_id or not wallet_address:
        raise ValueError("user_id and wallet_address are required")

    lifetime = settings.ACCESS_TOKEN_EXPIRE_SECONDS if expires_in_seconds is None else expires_in_seconds
    now = datetime.now(timezone.utc)
    payload: Dict[str, Any] = {
        "userId": user_id,
        "walletAddress": wallet_address,
        "iat": int(now.timestamp()),
        "exp": int((now + timedelta(seconds=lifetime)).timestamp()),
    }
    if extra_claims:
        payload.update(extra_claims)

    return jwt.encode(payload, settings.ENCODE_KEY, algorithm=settings.ENCODE_ALGORITHM)


def verify_token(token: Optional[str]) -> SessionClaims:
    """
    Verify and decode a JWT token.

    Raises:
        AuthError(TOKEN_MISSING): no token
        AuthError(TOKEN_EXPIRED): token past its exp claim
        AuthError(TOKEN_MALFORMED): bad signature, garbage, or missing claims
    """
    if not token:
        raise AuthError("Access token required", ErrorKind.TOKEN_MISSING)

    try:
        payload = jwt.decode(token, settings.ENCODE_KEY, algorithms=[settings.ENCODE_ALGORITHM])
    except jwt.ExpiredSignatureError:
        raise AuthError("Token expired", ErrorKind.TOKEN_EXPIRED)
    except jwt.InvalidTokenError:
        raise AuthError("Invalid token", ErrorKind.TOKEN_MALFORMED)

    if not payload.get("userId") or not payload.get("walletAddress") or "exp" not in payload:
        raise AuthError("Invalid token payload", ErrorKind.TOKEN_MALFORMED)

    return SessionClaims(
        user_id=str(payload["userId"]),
        wallet_address=str(payload["walletAddress"]),
        expires_at=datetime.fromtimestamp(int(payload["exp"]), tz=timezone.utc),
    )
