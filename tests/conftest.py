import os

# settings are read at import time
os.environ["ENCODE_KEY"] = "test-encode-key-0123456789abcdefghij"
os.environ["DATABASE_URL"] = "sqlite:///:memory:"
os.environ["ADMIN_USERNAME"] = "admin"
os.environ["ADMIN_PASSWORD"] = "admin-secret"
os.environ["REDIS_HOST"] = ""
os.environ["PINATA_API_KEY"] = ""
os.environ["IPFS_API_URL"] = ""

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool
from typing import Generator

from main import app
from app.core.challenge_store import ChallengeStore
from app.core.dependencies import get_challenge_store, get_metadata_gateway
from app.db.base import Base
from app.db.session import get_db
from app.models.quests import Quest
from app.models.users import User
from app.services.metadata_storage import LocalHashProvider, MetadataStorageGateway
from tests.helpers import Wallet


# Create in-memory SQLite database for testing
SQLALCHEMY_DATABASE_URL = "sqlite:///:memory:"
engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def override_get_db() -> Generator:
    """Override database dependency for testing"""
    try:
        db = TestingSessionLocal()
        yield db
    finally:
        db.close()


@pytest.fixture(autouse=True)
def setup_database():
    """Fresh schema for every test"""
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db_session() -> Generator[Session, None, None]:
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def challenge_store() -> ChallengeStore:
    """In-memory store (no redis pool)"""
    return ChallengeStore()


@pytest.fixture
def metadata_gateway() -> MetadataStorageGateway:
    return MetadataStorageGateway([LocalHashProvider(gateway_url="https://ipfs.test")])


@pytest.fixture
def client(challenge_store, metadata_gateway) -> TestClient:
    """Create a test client for the FastAPI application"""
    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_challenge_store] = lambda: challenge_store
    app.dependency_overrides[get_metadata_gateway] = lambda: metadata_gateway
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def wallet() -> Wallet:
    return Wallet()


@pytest.fixture
def other_wallet() -> Wallet:
    return Wallet()


@pytest.fixture
def quest(db_session: Session) -> Quest:
    row = Quest(
        title="Solana Basics",
        description="Learn the Solana account model",
        category="blockchain",
        difficulty="beginner",
        estimated_time="30 minutes",
    )
    db_session.add(row)
    db_session.commit()
    db_session.refresh(row)
    return row


@pytest.fixture
def second_quest(db_session: Session) -> Quest:
    row = Quest(
        title="Rust Ownership",
        description="Borrowing and lifetimes",
        category="programming",
        difficulty="intermediate",
    )
    db_session.add(row)
    db_session.commit()
    db_session.refresh(row)
    return row


@pytest.fixture
def user(db_session: Session, wallet: Wallet) -> User:
    row = User(wallet_address=wallet.address, username="alice")
    db_session.add(row)
    db_session.commit()
    db_session.refresh(row)
    return row
