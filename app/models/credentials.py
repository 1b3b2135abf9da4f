from sqlalchemy import (
    Column,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from app.db.base import Base
from app.models.quests import Quest
from app.models.users import User


class Credential(Base):
    """Soulbound credential issued for a completed quest
    Example:
    {
        "id": 1,
        "user_id": "550e8400-e29b-41d4-a716-446655440000",
        "quest_id": 1,
        "token_mint": "7Np41oeYqPefeNQEHSv1UDhYrehxin3NStELsSKCT4K2",
        "metadata_uri": "https://gateway.pinata.cloud/ipfs/Qm...",
        "minted_at": "2024-01-01T12:00:00",
        "burned_at": null
    }
    """

    __tablename__ = "credentials"
    __table_args__ = (
        UniqueConstraint("user_id", "quest_id", name="uq_credential_user_quest"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(
        String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    quest_id = Column(
        Integer, ForeignKey("quests.id", ondelete="CASCADE"), nullable=False, index=True
    )
    token_mint = Column(String(64), nullable=False, unique=True)
    metadata_uri = Column(Text, nullable=False)
    minted_at = Column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    burned_at = Column(DateTime(timezone=True), nullable=True)

    user = relationship(User)
    quest = relationship(Quest)
