from datetime import datetime
from typing import Optional

from pydantic import Field

from app.schemas.auth import UserOut
from app.schemas.my_base_model import CustomBaseModel, Envelope


class UpdateProfileRequest(CustomBaseModel):
    """Request model for profile updates - input validation"""

    username: Optional[str] = Field(None, min_length=1, max_length=64)
    email: Optional[str] = Field(None, max_length=255)


class UserResponse(Envelope):
    data: UserOut


class PublicUserOut(CustomBaseModel):
    """Profile as seen by anyone; email is only filled in for its owner"""

    id: str
    wallet_address: str
    username: str
    email: Optional[str] = None
    created_at: Optional[datetime] = None


class PublicUserResponse(Envelope):
    data: PublicUserOut
