"""
Error taxonomy for the SkillChain API.

Every component raises one of the classes below with an explicit ``ErrorKind``
tag. Route handlers never inspect messages or exception names: the exception
handlers registered in ``main.py`` switch on the class (HTTP status) and the
kind (machine readable ``code`` in the response body).
"""

from enum import Enum
from typing import Any, Dict, Optional

from fastapi import status


class ErrorKind(str, Enum):
    # validation
    MISSING_FIELD = "MISSING_FIELD"
    INVALID_WALLET_ADDRESS = "INVALID_WALLET_ADDRESS"
    WALLET_MISMATCH = "WALLET_MISMATCH"
    # wallet signature
    INVALID_SIGNATURE_ENCODING = "INVALID_SIGNATURE_ENCODING"
    INVALID_SIGNATURE = "INVALID_SIGNATURE"
    CHALLENGE_NOT_FOUND = "CHALLENGE_NOT_FOUND"
    # session
    TOKEN_MISSING = "TOKEN_MISSING"
    TOKEN_EXPIRED = "TOKEN_EXPIRED"
    TOKEN_MALFORMED = "TOKEN_MALFORMED"
    USER_NOT_FOUND = "USER_NOT_FOUND"
    ADMIN_REQUIRED = "ADMIN_REQUIRED"
    # lookups
    QUEST_NOT_FOUND = "QUEST_NOT_FOUND"
    CREDENTIAL_NOT_FOUND = "CREDENTIAL_NOT_FOUND"
    # conflicts
    ALREADY_COMPLETED = "ALREADY_COMPLETED"
    DUPLICATE_TOKEN_MINT = "DUPLICATE_TOKEN_MINT"
    CREDENTIAL_EXISTS = "CREDENTIAL_EXISTS"
    NON_TRANSFERABLE = "NON_TRANSFERABLE"
    PROFILE_CONFLICT = "PROFILE_CONFLICT"
    # upstream metadata storage
    PROVIDER_FAILED = "PROVIDER_FAILED"
    METADATA_UPLOAD_FAILED = "METADATA_UPLOAD_FAILED"
    # everything else
    INTERNAL = "INTERNAL"
    MINT_EXHAUSTED = "MINT_EXHAUSTED"


class SkillChainError(Exception):
    """
    Base exception for all SkillChain errors.

    Args:
        message: Human readable message, returned to the client as ``error``
        kind: Tag identifying the failure, returned as ``code``
        details: Optional structured context for logs
    """

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_kind: ErrorKind = ErrorKind.INTERNAL

    def __init__(
        self,
        message: str,
        kind: Optional[ErrorKind] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.kind = kind or self.default_kind
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        """Failure envelope for API responses."""
        return {
            "success": False,
            "error": self.message,
            "code": self.kind.value,
        }


class ValidationError(SkillChainError):
    """Missing or malformed request fields."""

    status_code = status.HTTP_400_BAD_REQUEST
    default_kind = ErrorKind.MISSING_FIELD


class SignatureError(SkillChainError):
    """Wallet signature could not be decoded or does not match."""

    status_code = status.HTTP_401_UNAUTHORIZED
    default_kind = ErrorKind.INVALID_SIGNATURE


class AuthError(SkillChainError):
    """Bearer token absent, expired, invalid, or its user is gone."""

    status_code = status.HTTP_401_UNAUTHORIZED
    default_kind = ErrorKind.TOKEN_MALFORMED


class NotFoundError(SkillChainError):
    status_code = status.HTTP_404_NOT_FOUND
    default_kind = ErrorKind.QUEST_NOT_FOUND


class ConflictError(SkillChainError):
    status_code = status.HTTP_409_CONFLICT
    default_kind = ErrorKind.ALREADY_COMPLETED


class UpstreamError(SkillChainError):
    """A metadata storage provider failed."""

    status_code = status.HTTP_502_BAD_GATEWAY
    default_kind = ErrorKind.PROVIDER_FAILED

    def __init__(
        self,
        message: str,
        kind: Optional[ErrorKind] = None,
        provider: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, kind, details)
        self.provider = provider
        if provider:
            self.details["provider"] = provider


class InternalError(SkillChainError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_kind = ErrorKind.INTERNAL
