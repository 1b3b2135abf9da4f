from typing import List, Optional

from fastapi import APIRouter, Body, Depends, Path
from sqlalchemy.orm import Session

import app.schemas.quests as schemas
from app.core.dependencies import get_current_user, get_issuance_pipeline, get_optional_user
from app.core.errors import ErrorKind, NotFoundError
from app.db.session import get_db
from app.models.quests import Quest, QuestProgress
from app.models.users import User
from app.schemas.credentials import CredentialOut
from app.services.credential_pipeline import CredentialIssuancePipeline

router = APIRouter()
group_tags: List[str] = ["Quests"]


@router.get("", tags=group_tags, response_model=schemas.QuestListResponse)
def get_all_quests(db: Session = Depends(get_db)) -> schemas.QuestListResponse:
    """List all quests."""
    quests = db.query(Quest).order_by(Quest.id.asc()).all()
    return schemas.QuestListResponse(data=[schemas.QuestOut.from_record(q) for q in quests])


@router.get("/progress", tags=group_tags, response_model=schemas.QuestProgressListResponse)
def get_user_quest_progress(
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> schemas.QuestProgressListResponse:
    """Quest progress of the authenticated user."""
    rows = (
        db.query(QuestProgress)
        .filter(QuestProgress.user_id == user.id)
        .order_by(QuestProgress.quest_id.asc())
        .all()
    )
    return schemas.QuestProgressListResponse(
        data=[schemas.QuestProgressItem.from_record(row) for row in rows]
    )


@router.get("/{quest_id}", tags=group_tags, response_model=schemas.QuestDetailResponse)
def get_quest_by_id(
    quest_id: int = Path(...),
    user: Optional[User] = Depends(get_optional_user),
    db: Session = Depends(get_db),
) -> schemas.QuestDetailResponse:
    """
    Quest detail. With a valid bearer token the response also says whether
    the caller completed it.
    """
    quest = db.query(Quest).filter(Quest.id == quest_id).first()
    if quest is None:
        raise NotFoundError("Quest not found", ErrorKind.QUEST_NOT_FOUND)

    detail = schemas.QuestDetail.from_record(quest)
    if user is not None:
        progress = (
            db.query(QuestProgress)
            .filter(QuestProgress.user_id == user.id, QuestProgress.quest_id == quest.id)
            .first()
        )
        if progress is not None and progress.completed:
            detail.is_completed = True
            detail.completed_at = progress.completed_at
    return schemas.QuestDetailResponse(data=detail)


@router.post(
    "/{quest_id}/complete",
    tags=group_tags,
    response_model=schemas.CompleteQuestResponse,
    response_model_exclude_none=True,
)
def complete_quest(
    quest_id: int = Path(...),
    body: Optional[schemas.CompleteQuestRequest] = Body(default=None),
    user: User = Depends(get_current_user),
    pipeline: CredentialIssuancePipeline = Depends(get_issuance_pipeline),
) -> schemas.CompleteQuestResponse:
    """
    Complete a quest and issue its soulbound credential.

    When the credential cannot be issued right away the quest stays completed
    and the response is still a success, carrying a ``warning``.

    *Sample request body:*
    {
        "walletAddress": "9xQeWvG816bUx9EPjHmaT23yvVM2ZWbrrpZb9PusVFin"
    }
    """
    wallet_address = body.wallet_address if body else None
    outcome = pipeline.complete_and_issue(user, quest_id, wallet_address)

    data = schemas.CompleteQuestData(
        quest_progress=schemas.QuestProgressOut.from_record(outcome.quest_progress),
        credential=CredentialOut.from_record(outcome.credential) if outcome.credential else None,
    )
    if outcome.degraded:
        return schemas.CompleteQuestResponse(
            message="Quest completed! Credential minting in progress...",
            warning=outcome.warning,
            data=data,
        )
    return schemas.CompleteQuestResponse(message="Quest completed successfully!", data=data)
