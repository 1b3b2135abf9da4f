"""
Local ledger of soulbound credentials.

The ledger stands in for an on-chain program reachable through
register / verify / transfer / burn. It is consulted as an existence check
only; no chain is queried.

Credentials are soulbound: ``transfer`` always fails, whether or not the
token mint exists.
"""

import logging
import secrets
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, List, Optional, Tuple

import base58
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.errors import ConflictError, ErrorKind, InternalError, NotFoundError
from app.models.credentials import Credential
from app.models.quests import Quest

logger = logging.getLogger(__name__)

TOKEN_MINT_NUM_BYTES = 32


def generate_token_mint(num_bytes: int = TOKEN_MINT_NUM_BYTES) -> str:
    """Random base58 identifier shaped like a Solana account address."""
    return base58.b58encode(secrets.token_bytes(num_bytes)).decode("ascii")


@dataclass
class CredentialVerification:
    is_valid: bool
    token_mint: str
    owner: Optional[str] = None
    metadata_uri: Optional[str] = None
    burned_at: Optional[datetime] = None


class CredentialRegistry:
    def __init__(
        self,
        db: Session,
        mint_generator: Callable[[], str] = generate_token_mint,
        max_attempts: int = settings.MINT_MAX_ATTEMPTS,
    ):
        self.db = db
        self.mint_generator = mint_generator
        self.max_attempts = max(1, max_attempts)

    def get_by_token_mint(self, token_mint: str) -> Optional[Credential]:
        return self.db.query(Credential).filter(Credential.token_mint == token_mint).first()

    def list_for_user(self, user_id: str) -> List[Credential]:
        return (
            self.db.query(Credential)
            .filter(Credential.user_id == user_id)
            .order_by(Credential.minted_at.desc())
            .all()
        )

    def get_by_id(self, credential_id: int) -> Optional[Credential]:
        return self.db.query(Credential).filter(Credential.id == credential_id).first()

    def list_all(
        self,
        page: int = 1,
        limit: int = 20,
        category: Optional[str] = None,
        difficulty: Optional[str] = None,
    ) -> Tuple[List[Credential], int]:
        """
        One page of every issued credential, newest first, optionally filtered
        by the category and difficulty of its quest.

        Returns:
            (credentials on the page, total matching credentials)
        """
        query = self.db.query(Credential).join(Quest, Credential.quest_id == Quest.id)
        if category:
            query = query.filter(Quest.category == category)
        if difficulty:
            query = query.filter(Quest.difficulty == difficulty)

        total = query.count()
        credentials = (
            query.order_by(Credential.minted_at.desc(), Credential.id.desc())
            .offset((page - 1) * limit)
            .limit(limit)
            .all()
        )
        return credentials, total

    def register(self, user_id: str, quest_id: int, token_mint: str, metadata_uri: str) -> Credential:
        """
        Insert a credential row and commit.

        Raises:
            ConflictError(DUPLICATE_TOKEN_MINT): token_mint already used
            ConflictError(CREDENTIAL_EXISTS): the user already holds one for this quest
        """
        credential = Credential(
            user_id=user_id,
            quest_id=quest_id,
            token_mint=token_mint,
            metadata_uri=metadata_uri,
            minted_at=datetime.now(timezone.utc),
        )
        self.db.add(credential)
        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            if self.get_by_token_mint(token_mint) is not None:
                raise ConflictError("Token mint already exists", ErrorKind.DUPLICATE_TOKEN_MINT)
            raise ConflictError("Credential already issued for this quest", ErrorKind.CREDENTIAL_EXISTS)
        self.db.refresh(credential)
        return credential

    def issue(self, user_id: str, quest_id: int, metadata_uri: str) -> Credential:
        """
        Generate a token mint and register the credential, regenerating the
        mint on collision up to ``max_attempts`` times.

        Raises:
            ConflictError(CREDENTIAL_EXISTS): see ``register``
            InternalError(MINT_EXHAUSTED): every generated mint collided
        """
        for attempt in range(1, self.max_attempts + 1):
            token_mint = self.mint_generator()
            try:
                credential = self.register(user_id, quest_id, token_mint, metadata_uri)
            except ConflictError as e:
                if e.kind != ErrorKind.DUPLICATE_TOKEN_MINT:
                    raise
                logger.warning("token mint collision on attempt %d/%d", attempt, self.max_attempts)
                continue
            logger.info(
                "credential %s issued to user %s for quest %s",
                credential.token_mint, user_id, quest_id,
            )
            return credential

        raise InternalError("Failed to mint credential", ErrorKind.MINT_EXHAUSTED)

    def verify(self, token_mint: str) -> CredentialVerification:
        """Existence check; burned credentials are reported as not valid."""
        credential = self.get_by_token_mint(token_mint)
        if credential is None:
            return CredentialVerification(is_valid=False, token_mint=token_mint)
        return CredentialVerification(
            is_valid=credential.burned_at is None,
            token_mint=token_mint,
            owner=credential.user.wallet_address,
            metadata_uri=credential.metadata_uri,
            burned_at=credential.burned_at,
        )

    def transfer(self, token_mint: str, from_wallet: str, to_wallet: str) -> None:
        """Soulbound credentials cannot be transferred. Always raises."""
        logger.info("rejected transfer of %s from %s to %s", token_mint, from_wallet, to_wallet)
        raise ConflictError("Soulbound credentials cannot be transferred", ErrorKind.NON_TRANSFERABLE)

    def burn(self, token_mint: str) -> Credential:
        """
        Set burned_at. Burning an already burned credential is a no-op.

        Raises:
            NotFoundError(CREDENTIAL_NOT_FOUND): unknown token mint
        """
        credential = self.get_by_token_mint(token_mint)
        if credential is None:
            raise NotFoundError("Credential not found", ErrorKind.CREDENTIAL_NOT_FOUND)
        if credential.burned_at is None:
            credential.burned_at = datetime.now(timezone.utc)
            self.db.commit()
            self.db.refresh(credential)
            logger.info("credential %s burned", token_mint)
        return credential
