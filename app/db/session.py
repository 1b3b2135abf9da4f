import logging

from fastapi import HTTPException
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session

from app.core.config import settings
from app.core.errors import InternalError, SkillChainError

logger = logging.getLogger(__name__)


def _connect_args(database_url: str) -> dict:
    if database_url.startswith("sqlite"):
        return {"check_same_thread": False}
    return {"connect_timeout": 30}


# Create the SQLAlchemy engine
engine = create_engine(settings.DATABASE_URL,
                       connect_args=_connect_args(settings.DATABASE_URL),
                       pool_pre_ping=True,
                       pool_recycle=3600,
)

# Create a configured "Session" class
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def init_db() -> None:
    """Create missing tables (the relational store is otherwise managed externally)."""
    import app.models.credentials  # noqa: F401  register models on Base.metadata
    import app.models.quests  # noqa: F401
    import app.models.users  # noqa: F401
    from app.db.base import Base

    Base.metadata.create_all(bind=engine)


# do not change the order of the code below
# Dependency that can be used in routes to get the session
def get_db():
    db: Session = SessionLocal()  # generate a new SessionLocal
    try:
        yield db
    except (SkillChainError, HTTPException):
        db.rollback()
        raise
    except Exception as e:
        db.rollback()
        logger.error("database session error: %s", e, exc_info=True)
        raise InternalError("Query data error")
    finally:
        db.close()
