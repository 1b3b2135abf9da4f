"""
Solana Wallet Authentication Utilities

This module handles the wallet-specific cryptographic operations for authentication.

Authentication Flow:
1. Backend builds a challenge message for a wallet -> build_challenge()
2. Frontend signs the message with the wallet (signMessage)
3. Frontend sends: walletAddress, message, signature
4. Backend verifies: verify_wallet_signature()
   - Decodes the wallet address into an ED25519 public key
   - Decodes the signature (base64 or base58)
   - Verifies the detached ED25519 signature over the raw message bytes

The signature verification uses:
- ED25519 cryptography (Solana's signature algorithm)
- base58 for wallet addresses, the canonical text form of a public key
"""

import base64
import binascii
import secrets
import time
from dataclasses import dataclass

import base58
from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PublicKey

from app.core.errors import ErrorKind, SignatureError, ValidationError


NONCE_NUM_BYTES = 16  # 16 bytes = 128 bits = 32 hex characters
PUBLIC_KEY_LENGTH = 32
SIGNATURE_LENGTH = 64
# longest text forms: base58 of 32 bytes, base64 or base58 of 64 bytes
MAX_WALLET_ADDRESS_CHARS = 44
MAX_SIGNATURE_CHARS = 88

CHALLENGE_TEMPLATE = """Sign this message to authenticate with SkillChain Platform.

Wallet: {wallet_address}
Timestamp: {issued_at_ms}
Nonce: {nonce}

This request will not trigger any blockchain transaction or cost any gas fees."""


@dataclass(frozen=True)
class AuthChallenge:
    message: str
    wallet_address: str
    issued_at_ms: int
    nonce: str


def generate_nonce(num_bytes: int = NONCE_NUM_BYTES) -> str:
    """
    Generate a cryptographically secure random nonce for wallet authentication.

    Args:
        num_bytes: Number of random bytes to generate (default: 16 = 32 hex chars)

    Returns:
        Hex-encoded random string (e.g., "a1b2c3d4...")
    """
    if num_bytes <= 0:
        num_bytes = NONCE_NUM_BYTES
    return secrets.token_hex(num_bytes)


def build_challenge(wallet_address: str) -> AuthChallenge:
    """
    Build the human readable message a wallet must sign to log in.

    The message embeds the wallet address, the issue time in milliseconds and a
    random nonce. Nothing is stored here; see ChallengeStore for single use.
    """
    issued_at_ms = int(time.time() * 1000)
    nonce = generate_nonce()
    message = CHALLENGE_TEMPLATE.format(
        wallet_address=wallet_address,
        issued_at_ms=issued_at_ms,
        nonce=nonce,
    )
    return AuthChallenge(
        message=message,
        wallet_address=wallet_address,
        issued_at_ms=issued_at_ms,
        nonce=nonce,
    )


def _decode_base64(value: str) -> bytes:
    """Helper: Decode base64 string to bytes."""
    return base64.b64decode(value, validate=True)


def _decode_base58(value: str) -> bytes:
    """Helper: Decode base58 string to bytes."""
    return base58.b58decode(value)


def decode_wallet_address(wallet_address: str) -> bytes:
    """
    Decode a base58 wallet address into raw ED25519 public key bytes.

    Raises:
        ValidationError(INVALID_WALLET_ADDRESS): not base58 or not 32 bytes long
    """
    value = (wallet_address or "").strip()
    if not value:
        raise ValidationError("Wallet address is required", ErrorKind.INVALID_WALLET_ADDRESS)
    if len(value) > MAX_WALLET_ADDRESS_CHARS:
        raise ValidationError("Invalid wallet address", ErrorKind.INVALID_WALLET_ADDRESS)
    try:
        public_key = _decode_base58(value)
    except ValueError:
        raise ValidationError("Invalid wallet address", ErrorKind.INVALID_WALLET_ADDRESS)
    if len(public_key) != PUBLIC_KEY_LENGTH:
        raise ValidationError("Invalid wallet address", ErrorKind.INVALID_WALLET_ADDRESS)
    return public_key


def decode_signature(signature: str) -> bytes:
    """
    Decode a signature sent as base64 or base58.

    Wallet adapters send either format, so base64 is tried first and base58
    second. A decoding only counts when it yields a 64 byte ED25519 signature:
    many base58 strings are also valid base64 and decode to the wrong length.

    Raises:
        SignatureError(INVALID_SIGNATURE_ENCODING): neither encoding applies
    """
    value = (signature or "").strip()
    if len(value) > MAX_SIGNATURE_CHARS:
        raise SignatureError("Invalid signature encoding", ErrorKind.INVALID_SIGNATURE_ENCODING)
    for decode in (_decode_base64, _decode_base58):
        try:
            decoded = decode(value)
        except (binascii.Error, ValueError):
            continue
        if len(decoded) == SIGNATURE_LENGTH:
            return decoded
    raise SignatureError("Invalid signature encoding", ErrorKind.INVALID_SIGNATURE_ENCODING)


def verify_signature(message: bytes, signature: bytes, public_key: bytes) -> bool:
    """
    Verify a detached ED25519 signature over raw message bytes.

    Returns:
        True if the signature matches the public key, False otherwise
    """
    try:
        Ed25519PublicKey.from_public_bytes(public_key).verify(signature, message)
    except (InvalidSignature, ValueError):
        return False
    return True


def verify_wallet_signature(wallet_address: str, message: str, signature: str) -> bytes:
    """
    Verify that ``message`` was signed by the holder of ``wallet_address``.

    This is the main function called by the /auth/wallet endpoint. Checks run
    in order and each failure has its own kind:
    1. The wallet address decodes to a 32 byte public key (INVALID_WALLET_ADDRESS)
    2. The signature decodes from base64 or base58 (INVALID_SIGNATURE_ENCODING)
    3. The ED25519 signature is cryptographically valid (INVALID_SIGNATURE)

    Returns:
        The public key bytes of the verified wallet

    Example:
        verify_wallet_signature(
            wallet_address="9xQeWvG816bUx9EPjHmaT23yvVM2ZWbrrpZb9PusVFin",
            message=challenge.message,
            signature="base64_or_base58_signature",
        )
    """
    public_key = decode_wallet_address(wallet_address)
    signature_bytes = decode_signature(signature)
    if not verify_signature(message.encode("utf-8"), signature_bytes, public_key):
        raise SignatureError("Invalid signature", ErrorKind.INVALID_SIGNATURE)
    return public_key
