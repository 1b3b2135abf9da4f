"""
Record quest completion exactly once per (user, quest).

State per pair: not started -> completed (terminal).

The transition is a single ``INSERT ... ON CONFLICT DO UPDATE ... WHERE
completed = false RETURNING`` statement, so the unique (user_id, quest_id)
constraint in the database decides which of several concurrent requests wins.
No read precedes the write.
"""

import logging
from datetime import datetime, timezone

from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.orm import Session

from app.core.errors import ConflictError, ErrorKind
from app.models.quests import QuestProgress

logger = logging.getLogger(__name__)

_UPSERT_BUILDERS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


def _insert_for(db: Session):
    dialect = db.get_bind().dialect.name
    try:
        return _UPSERT_BUILDERS[dialect]
    except KeyError:
        raise RuntimeError(f"quest completion upsert is not supported on {dialect}")


class QuestCompletionCoordinator:
    def __init__(self, db: Session):
        self.db = db

    def complete(self, user_id: str, quest_id: int) -> QuestProgress:
        """
        Mark ``quest_id`` completed for ``user_id`` and commit.

        Returns:
            The committed QuestProgress row

        Raises:
            ConflictError(ALREADY_COMPLETED): the pair was already completed;
                nothing is written
        """
        now = datetime.now(timezone.utc)
        insert = _insert_for(self.db)
        stmt = insert(QuestProgress).values(
            user_id=user_id,
            quest_id=quest_id,
            completed=True,
            completed_at=now,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=[QuestProgress.user_id, QuestProgress.quest_id],
            set_={"completed": True, "completed_at": now},
            where=QuestProgress.completed == False,  # noqa: E712
        ).returning(QuestProgress)

        progress = self.db.scalars(
            stmt, execution_options={"populate_existing": True}
        ).first()
        if progress is None:
            self.db.rollback()
            raise ConflictError("Quest already completed", ErrorKind.ALREADY_COMPLETED)

        self.db.commit()
        logger.info("quest %s completed by user %s", quest_id, user_id)
        return progress
