from datetime import datetime
from typing import Optional

from pydantic import Field

from app.schemas.my_base_model import CustomBaseModel, Envelope


class ChallengeData(CustomBaseModel):
    """Challenge message the wallet must sign - output"""

    message: str
    timestamp: int = Field(..., description="Issue time in milliseconds")
    nonce: str


class ChallengeResponse(Envelope):
    data: ChallengeData


class WalletAuthRequest(CustomBaseModel):
    """Request model for wallet authentication - input validation"""

    wallet_address: str = Field(..., max_length=64, description="Base58 wallet address")
    signature: str = Field(..., max_length=128, description="Signature of the message, base64 or base58")
    message: str = Field(..., max_length=1024, description="Challenge message returned by /auth/challenge")
    username: Optional[str] = Field(None, max_length=64, description="Display name for a new user")


class UserOut(CustomBaseModel):
    id: str
    wallet_address: str
    username: str
    email: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class SessionData(CustomBaseModel):
    user: UserOut
    token: str


class WalletAuthResponse(Envelope):
    data: SessionData


class UserData(CustomBaseModel):
    user: UserOut


class VerifyTokenResponse(Envelope):
    data: UserData
