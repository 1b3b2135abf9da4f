"""
FastAPI Authentication and Service Dependencies
This module provides FastAPI dependency functions that can be injected into route handlers.
Usage in endpoints:
    @router.get("/protected")
    def protected_route(user: User = Depends(get_current_user)):
        # user is loaded from the JWT in the Authorization header
        return {"user": user.id}
Flow:
1. Client sends request with Authorization: Bearer <token> header
2. FastAPI calls get_current_user() dependency
3. _extract_token() extracts token from header
4. SessionIssuer.resolve() validates the JWT and re-fetches the user
5. Returns the User to the route handler

Shared collaborators (challenge store, metadata gateway) are built once and
handed out through dependencies so tests can override them.
"""

import secrets
from functools import lru_cache
from typing import Optional

from fastapi import Depends, Header
from fastapi.security import HTTPBasic, HTTPBasicCredentials
from sqlalchemy.orm import Session

from app.core.challenge_store import ChallengeStore
from app.core.config import settings
from app.core.errors import AuthError, ErrorKind
from app.db.session import get_db
from app.models.users import User
from app.services.credential_pipeline import CredentialIssuancePipeline
from app.services.credential_registry import CredentialRegistry
from app.services.metadata_storage import MetadataStorageGateway, build_metadata_gateway
from app.services.session_issuer import SessionIssuer

admin_security = HTTPBasic(auto_error=False)


def _extract_token(authorization: Optional[str]) -> Optional[str]:
    """
    Extract JWT token from Authorization header.
    Supports both "Bearer <token>" and plain token formats.
    Args:
        authorization: The Authorization header value (e.g., "Bearer eyJ...")
    Returns:
        The extracted token string, or None if the header is absent or empty
    """
    if not authorization:
        return None

    authorization = authorization.strip()
    if authorization.lower().startswith("bearer "):
        token = authorization[7:].strip()
    else:
        token = authorization
    return token or None


def get_current_user(
    authorization: Optional[str] = Header(None, alias="Authorization"),
    db: Session = Depends(get_db),
) -> User:
    """
    returning the authenticated user.
    """
    return SessionIssuer(db).resolve(_extract_token(authorization))


def get_optional_user(
    authorization: Optional[str] = Header(None, alias="Authorization"),
    db: Session = Depends(get_db),
) -> Optional[User]:
    """
    Like get_current_user, but anonymous or invalid tokens yield None.
    """
    token = _extract_token(authorization)
    if token is None:
        return None
    try:
        return SessionIssuer(db).resolve(token)
    except AuthError:
        return None


def require_admin(credentials: Optional[HTTPBasicCredentials] = Depends(admin_security)) -> str:
    if credentials is None or not settings.ADMIN_PASSWORD:
        raise AuthError("Admin credentials required", ErrorKind.ADMIN_REQUIRED)
    correct_username = secrets.compare_digest(credentials.username, settings.ADMIN_USERNAME)
    correct_password = secrets.compare_digest(credentials.password, settings.ADMIN_PASSWORD)
    if not (correct_username and correct_password):
        raise AuthError("Admin credentials required", ErrorKind.ADMIN_REQUIRED)
    return credentials.username


@lru_cache
def get_challenge_store() -> ChallengeStore:
    return ChallengeStore.from_settings()


@lru_cache
def get_metadata_gateway() -> MetadataStorageGateway:
    return build_metadata_gateway()


def get_session_issuer(db: Session = Depends(get_db)) -> SessionIssuer:
    return SessionIssuer(db)


def get_credential_registry(db: Session = Depends(get_db)) -> CredentialRegistry:
    return CredentialRegistry(db)


def get_issuance_pipeline(
    db: Session = Depends(get_db),
    gateway: MetadataStorageGateway = Depends(get_metadata_gateway),
) -> CredentialIssuancePipeline:
    return CredentialIssuancePipeline(db, gateway)
