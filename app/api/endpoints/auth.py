import logging
from typing import List

from fastapi import APIRouter, Depends, Query, status

import app.schemas.auth as schemas
from app.core.challenge_store import ChallengeStore
from app.core.config import settings
from app.core.dependencies import get_challenge_store, get_current_user, get_session_issuer
from app.core.errors import ErrorKind, SignatureError, ValidationError
from app.core.wallet_auth import build_challenge, decode_wallet_address, verify_wallet_signature
from app.models.users import User
from app.schemas.my_base_model import Envelope
from app.services.session_issuer import SessionIssuer

logger = logging.getLogger(__name__)

router = APIRouter()
group_tags: List[str] = ["Auth"]


@router.get(
    "/challenge",
    tags=group_tags,
    response_model=schemas.ChallengeResponse,
    status_code=status.HTTP_200_OK,
)
def get_auth_challenge(
    wallet_address: str = Query(default="", alias="walletAddress", description="Base58 wallet address"),
    store: ChallengeStore = Depends(get_challenge_store),
) -> schemas.ChallengeResponse:
    """Generate and store a single-use challenge for a wallet address."""
    wallet_address = wallet_address.strip()
    if not wallet_address:
        raise ValidationError("Wallet address is required", ErrorKind.MISSING_FIELD)
    decode_wallet_address(wallet_address)

    challenge = build_challenge(wallet_address)
    store.issue(challenge, settings.NONCE_EXPIRY_SECONDS)

    return schemas.ChallengeResponse(
        data=schemas.ChallengeData(
            message=challenge.message,
            timestamp=challenge.issued_at_ms,
            nonce=challenge.nonce,
        )
    )


@router.post(
    "/wallet",
    tags=group_tags,
    response_model=schemas.WalletAuthResponse,
)
def authenticate_wallet(
    body: schemas.WalletAuthRequest,
    store: ChallengeStore = Depends(get_challenge_store),
    issuer: SessionIssuer = Depends(get_session_issuer),
) -> schemas.WalletAuthResponse:
    """
    Verify a signed challenge and return the user with an access token.

    The signature is checked before the challenge is consumed, so a bad
    signature does not burn a valid challenge.

    *Sample request body:*
    {
        "walletAddress": "9xQeWvG816bUx9EPjHmaT23yvVM2ZWbrrpZb9PusVFin",
        "signature": "base64 or base58 signature",
        "message": "Sign this message to authenticate with SkillChain Platform. ...",
        "username": "alice"
    }
    """
    wallet_address = body.wallet_address.strip()
    if not wallet_address or not body.signature or not body.message:
        raise ValidationError(
            "Missing required fields: walletAddress, signature, message", ErrorKind.MISSING_FIELD
        )

    verify_wallet_signature(wallet_address, body.message, body.signature)

    if not store.consume(wallet_address, body.message):
        raise SignatureError("Challenge not found, expired or already used", ErrorKind.CHALLENGE_NOT_FOUND)

    session = issuer.issue(wallet_address, body.username)
    return schemas.WalletAuthResponse(
        message="Authentication successful",
        data=schemas.SessionData(
            user=schemas.UserOut.from_record(session.user),
            token=session.token,
        ),
    )


@router.get(
    "/verify",
    tags=group_tags,
    response_model=schemas.VerifyTokenResponse,
)
def verify_session(user: User = Depends(get_current_user)) -> schemas.VerifyTokenResponse:
    """Verify the bearer token and return its user."""
    return schemas.VerifyTokenResponse(
        data=schemas.UserData(user=schemas.UserOut.from_record(user))
    )


@router.post(
    "/logout",
    tags=group_tags,
    response_model=Envelope,
    response_model_exclude_none=True,
)
def logout(user: User = Depends(get_current_user)) -> Envelope:
    """Sessions are stateless JWTs; the client discards its token."""
    return Envelope(message="Logged out successfully")
