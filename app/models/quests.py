from sqlalchemy import (
    Boolean,
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
from app.models.users import User


class Quest(Base):
    """Model for quests table (read only for the credential core)
    Example:
    {
        "id": 1,
        "title": "Solana Basics",
        "description": "Learn the account model",
        "category": "blockchain",
        "difficulty": "beginner",
        "estimated_time": "30 minutes"
    }
    """

    __tablename__ = "quests"

    id = Column(Integer, primary_key=True, autoincrement=True)
    title = Column(Text, nullable=False)
    description = Column(Text, nullable=False, default="")
    category = Column(String(64), nullable=False, index=True)
    difficulty = Column(String(32), nullable=False)
    estimated_time = Column(String(64), nullable=True)
    created_at = Column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )


class QuestProgress(Base):
    """Completion state of one quest for one user.

    (user_id, quest_id) is unique: the completion upsert relies on it.
    Once completed is true it is never set back to false.
    """

    __tablename__ = "user_quest_progress"
    __table_args__ = (
        UniqueConstraint("user_id", "quest_id", name="uq_user_quest_progress"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(
        String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    quest_id = Column(
        Integer, ForeignKey("quests.id", ondelete="CASCADE"), nullable=False, index=True
    )
    completed = Column(Boolean, nullable=False, default=False)
    completed_at = Column(DateTime(timezone=True), nullable=True)

    user = relationship(User)
    quest = relationship(Quest)
