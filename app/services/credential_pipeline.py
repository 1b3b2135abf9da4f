"""
Quest completion -> metadata upload -> credential registration.

Steps run strictly in order. The completion commit comes first: its
uniqueness is what keeps two concurrent requests from both minting. A failed
metadata upload never rolls the completion back; the caller gets a degraded
success (completion recorded, credential pending) instead of an error.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy.orm import Session

from app.core.errors import (
    ConflictError,
    ErrorKind,
    InternalError,
    NotFoundError,
    UpstreamError,
    ValidationError,
)
from app.models.credentials import Credential
from app.models.quests import Quest, QuestProgress
from app.models.users import User
from app.services.credential_metadata import build_credential_metadata
from app.services.credential_registry import CredentialRegistry
from app.services.metadata_storage import MetadataStorageGateway
from app.services.quest_completion import QuestCompletionCoordinator

logger = logging.getLogger(__name__)

CREDENTIAL_PENDING_WARNING = "Credential will be available shortly"


@dataclass
class IssuanceOutcome:
    quest_progress: QuestProgress
    credential: Optional[Credential] = None
    warning: Optional[str] = None

    @property
    def degraded(self) -> bool:
        return self.credential is None


class CredentialIssuancePipeline:
    def __init__(
        self,
        db: Session,
        gateway: MetadataStorageGateway,
        coordinator: Optional[QuestCompletionCoordinator] = None,
        registry: Optional[CredentialRegistry] = None,
    ):
        self.db = db
        self.gateway = gateway
        self.coordinator = coordinator or QuestCompletionCoordinator(db)
        self.registry = registry or CredentialRegistry(db)

    def _load_quest(self, quest_id: int) -> Quest:
        quest = self.db.query(Quest).filter(Quest.id == quest_id).first()
        if quest is None:
            raise NotFoundError("Quest not found", ErrorKind.QUEST_NOT_FOUND)
        return quest

    def complete_and_issue(
        self,
        user: User,
        quest_id: int,
        wallet_address: Optional[str] = None,
    ) -> IssuanceOutcome:
        """
        Complete ``quest_id`` for ``user`` and try to issue its credential.

        Raises:
            NotFoundError(QUEST_NOT_FOUND): unknown quest
            ValidationError(WALLET_MISMATCH): wallet_address is not the session wallet
            ConflictError(ALREADY_COMPLETED): nothing else is attempted
            InternalError: the registry could not record the credential
        """
        quest = self._load_quest(quest_id)
        if wallet_address and wallet_address != user.wallet_address:
            raise ValidationError(
                "Wallet address does not match the authenticated user", ErrorKind.WALLET_MISMATCH
            )

        progress = self.coordinator.complete(user.id, quest.id)

        document = build_credential_metadata(
            quest=quest,
            username=user.username,
            user_id=user.id,
            issued_at=datetime.now(timezone.utc),
        )
        try:
            metadata_uri = self.gateway.upload_metadata(document)
        except UpstreamError as e:
            logger.warning(
                "quest %s completed for user %s but credential issuance is pending: %s",
                quest.id, user.id, e.message,
            )
            return IssuanceOutcome(quest_progress=progress, warning=CREDENTIAL_PENDING_WARNING)

        try:
            credential = self.registry.issue(user.id, quest.id, metadata_uri)
        except ConflictError as e:
            # completion won the race above, so a conflict here is a ledger inconsistency
            logger.error(
                "credential for quest %s user %s could not be recorded: %s",
                quest.id, user.id, e.kind.value,
            )
            raise InternalError(
                "Failed to record credential",
                ErrorKind.INTERNAL,
                details={"cause": e.kind.value, "quest_id": quest.id, "user_id": user.id},
            )
        return IssuanceOutcome(quest_progress=progress, credential=credential)
