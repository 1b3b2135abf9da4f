from datetime import datetime
from typing import Dict, List, Optional

from pydantic import Field

from app.schemas.my_base_model import CustomBaseModel, Envelope


class CredentialOut(CustomBaseModel):
    id: int
    user_id: str
    quest_id: int
    token_mint: str
    metadata_uri: str
    minted_at: datetime
    burned_at: Optional[datetime] = None


class CredentialListResponse(Envelope):
    data: List[CredentialOut]


class CredentialResponse(Envelope):
    data: CredentialOut


class UserSummary(CustomBaseModel):
    id: str
    username: str
    wallet_address: str


class QuestSummary(CustomBaseModel):
    id: int
    title: str
    category: str
    difficulty: str


class CredentialDetail(CredentialOut):
    user: UserSummary
    quest: QuestSummary


class CredentialDetailResponse(Envelope):
    data: CredentialDetail


class Pagination(CustomBaseModel):
    page: int
    limit: int
    total: int
    pages: int


class CredentialPage(CustomBaseModel):
    credentials: List[CredentialDetail]
    pagination: Pagination


class CredentialPageResponse(Envelope):
    data: CredentialPage


class PassportCredential(CredentialOut):
    quest: QuestSummary


class PassportData(CustomBaseModel):
    """Public skill passport of one user"""

    credentials: List[PassportCredential]
    credentials_by_category: Dict[str, List[PassportCredential]]
    total_credentials: int
    categories: List[str]


class PassportResponse(Envelope):
    data: PassportData


class CredentialVerificationOut(CustomBaseModel):
    is_valid: bool
    token_mint: str
    owner: Optional[str] = None
    metadata_uri: Optional[str] = None
    burned_at: Optional[datetime] = None


class CredentialVerificationResponse(Envelope):
    data: CredentialVerificationOut


class TransferRequest(CustomBaseModel):
    to_wallet: str = Field(..., description="Recipient wallet address")
