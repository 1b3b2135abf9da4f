from datetime import datetime
from typing import List, Optional

from pydantic import Field

from app.schemas.credentials import CredentialOut
from app.schemas.my_base_model import CustomBaseModel, Envelope


class QuestOut(CustomBaseModel):
    id: int
    title: str
    description: str
    category: str
    difficulty: str
    estimated_time: Optional[str] = None


class QuestDetail(QuestOut):
    is_completed: bool = False
    completed_at: Optional[datetime] = None


class QuestListResponse(Envelope):
    data: List[QuestOut]


class QuestDetailResponse(Envelope):
    data: QuestDetail


class QuestProgressOut(CustomBaseModel):
    id: int
    user_id: str
    quest_id: int
    completed: bool
    completed_at: Optional[datetime] = None


class QuestProgressItem(QuestProgressOut):
    quest: QuestOut


class QuestProgressListResponse(Envelope):
    data: List[QuestProgressItem]


class CompleteQuestRequest(CustomBaseModel):
    """Request model for quest completion - input validation"""

    wallet_address: Optional[str] = Field(None, description="Wallet to bind the credential to")


class CompleteQuestData(CustomBaseModel):
    quest_progress: QuestProgressOut
    credential: Optional[CredentialOut] = None


class CompleteQuestResponse(Envelope):
    data: CompleteQuestData
