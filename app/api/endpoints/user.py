from typing import Dict, List, Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.core.dependencies import get_credential_registry, get_current_user, get_optional_user
from app.core.errors import ErrorKind, NotFoundError
from app.db.session import get_db
from app.models.users import User
from app.schemas.auth import UserOut
from app.schemas.credentials import (
    CredentialListResponse,
    CredentialOut,
    PassportCredential,
    PassportData,
    PassportResponse,
)
from app.schemas.user import (
    PublicUserOut,
    PublicUserResponse,
    UpdateProfileRequest,
    UserResponse,
)
from app.services.credential_registry import CredentialRegistry
from app.services.user_directory import UserDirectory

router = APIRouter()
group_tags: List[str] = ["user"]


@router.get("/me/credentials", tags=group_tags, response_model=CredentialListResponse)
def get_my_credentials(
    user: User = Depends(get_current_user),
    registry: CredentialRegistry = Depends(get_credential_registry),
) -> CredentialListResponse:
    """Skill passport: every credential held by the authenticated user, newest first."""
    credentials = registry.list_for_user(user.id)
    return CredentialListResponse(data=[CredentialOut.from_record(c) for c in credentials])


@router.put("/me", tags=group_tags, response_model=UserResponse)
def update_my_profile(
    body: UpdateProfileRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> UserResponse:
    """
    Update username and/or email of the authenticated user.

    *Sample request body:*
    {
        "username": "alice",
        "email": "alice@example.com"
    }
    """
    updated = UserDirectory(db).update_profile(user, username=body.username, email=body.email)
    return UserResponse(message="Profile updated successfully", data=UserOut.from_record(updated))


@router.get("/{user_id}", tags=group_tags, response_model=PublicUserResponse)
def get_user_profile(
    user_id: str,
    viewer: Optional[User] = Depends(get_optional_user),
    db: Session = Depends(get_db),
) -> PublicUserResponse:
    """Public profile. The email is only returned to the user themselves."""
    user = UserDirectory(db).get_by_id(user_id)
    if user is None:
        raise NotFoundError("User not found", ErrorKind.USER_NOT_FOUND)
    profile = PublicUserOut.from_record(user)
    if viewer is None or viewer.id != user.id:
        profile.email = None
    return PublicUserResponse(data=profile)


@router.get("/{user_id}/credentials", tags=group_tags, response_model=PassportResponse)
def get_user_credentials(
    user_id: str,
    db: Session = Depends(get_db),
    registry: CredentialRegistry = Depends(get_credential_registry),
) -> PassportResponse:
    """Public skill passport: credentials newest first, also grouped by quest category."""
    if UserDirectory(db).get_by_id(user_id) is None:
        raise NotFoundError("User not found", ErrorKind.USER_NOT_FOUND)

    credentials = [PassportCredential.from_record(c) for c in registry.list_for_user(user_id)]
    by_category: Dict[str, List[PassportCredential]] = {}
    for credential in credentials:
        by_category.setdefault(credential.quest.category, []).append(credential)

    return PassportResponse(
        data=PassportData(
            credentials=credentials,
            credentials_by_category=by_category,
            total_credentials=len(credentials),
            categories=sorted(by_category),
        )
    )
