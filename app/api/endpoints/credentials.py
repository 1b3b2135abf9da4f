import math
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, Query

import app.schemas.credentials as schemas
from app.core.dependencies import get_credential_registry, get_current_user, require_admin
from app.core.errors import ErrorKind, NotFoundError
from app.models.users import User
from app.services.credential_metadata import build_credential_metadata
from app.services.credential_registry import CredentialRegistry

router = APIRouter()
group_tags: List[str] = ["Credentials"]


@router.get("", tags=group_tags, response_model=schemas.CredentialPageResponse)
def get_all_credentials(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    category: Optional[str] = Query(None, description="Quest category"),
    difficulty: Optional[str] = Query(None, description="Quest difficulty"),
    registry: CredentialRegistry = Depends(get_credential_registry),
) -> schemas.CredentialPageResponse:
    """Every issued credential, newest first, with holder and quest summaries."""
    credentials, total = registry.list_all(page, limit, category=category, difficulty=difficulty)
    return schemas.CredentialPageResponse(
        data=schemas.CredentialPage(
            credentials=[schemas.CredentialDetail.from_record(c) for c in credentials],
            pagination=schemas.Pagination(
                page=page, limit=limit, total=total, pages=math.ceil(total / limit)
            ),
        )
    )


@router.get("/{credential_id}", tags=group_tags, response_model=schemas.CredentialDetailResponse)
def get_credential_by_id(
    credential_id: int,
    registry: CredentialRegistry = Depends(get_credential_registry),
) -> schemas.CredentialDetailResponse:
    credential = registry.get_by_id(credential_id)
    if credential is None:
        raise NotFoundError("Credential not found", ErrorKind.CREDENTIAL_NOT_FOUND)
    return schemas.CredentialDetailResponse(data=schemas.CredentialDetail.from_record(credential))


@router.get(
    "/verify/{token_mint}",
    tags=group_tags,
    response_model=schemas.CredentialVerificationResponse,
)
def verify_credential(
    token_mint: str,
    registry: CredentialRegistry = Depends(get_credential_registry),
) -> schemas.CredentialVerificationResponse:
    """
    Check whether a credential exists and is not burned.

    Unknown token mints are not an error: ``isValid`` is false and the other
    fields are null.
    """
    verification = registry.verify(token_mint)
    return schemas.CredentialVerificationResponse(
        data=schemas.CredentialVerificationOut(
            is_valid=verification.is_valid,
            token_mint=verification.token_mint,
            owner=verification.owner,
            metadata_uri=verification.metadata_uri,
            burned_at=verification.burned_at,
        )
    )


@router.get("/metadata/{token_mint}", tags=group_tags)
def get_credential_metadata(
    token_mint: str,
    registry: CredentialRegistry = Depends(get_credential_registry),
) -> Dict[str, Any]:
    """
    NFT metadata standard document for a credential (no envelope, so wallets
    and marketplaces can read it directly).
    """
    credential = registry.get_by_token_mint(token_mint)
    if credential is None:
        raise NotFoundError("Credential not found", ErrorKind.CREDENTIAL_NOT_FOUND)
    return build_credential_metadata(
        quest=credential.quest,
        username=credential.user.username,
        user_id=credential.user_id,
        issued_at=credential.minted_at,
        token_mint=credential.token_mint,
    )


@router.post("/{token_mint}/transfer", tags=group_tags, response_model=schemas.CredentialResponse)
def transfer_credential(
    token_mint: str,
    body: schemas.TransferRequest,
    user: User = Depends(get_current_user),
    registry: CredentialRegistry = Depends(get_credential_registry),
) -> schemas.CredentialResponse:
    """Credentials are soulbound. This endpoint always answers 409 NON_TRANSFERABLE."""
    registry.transfer(token_mint, user.wallet_address, body.to_wallet)


@router.post("/{token_mint}/burn", tags=group_tags, response_model=schemas.CredentialResponse)
def burn_credential(
    token_mint: str,
    admin: str = Depends(require_admin),
    registry: CredentialRegistry = Depends(get_credential_registry),
) -> schemas.CredentialResponse:
    """Administrative burn (HTTP Basic). Burning twice is not an error."""
    credential = registry.burn(token_mint)
    return schemas.CredentialResponse(
        message="Credential burned",
        data=schemas.CredentialOut.from_record(credential),
    )
