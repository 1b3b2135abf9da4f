import logging
from dataclasses import dataclass
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.errors import AuthError, ErrorKind, InternalError
from app.core.jwt_utils import SessionClaims, create_access_token, verify_token
from app.models.users import User
from app.services.user_directory import UserDirectory

logger = logging.getLogger(__name__)


@dataclass
class IssuedSession:
    user: User
    token: str
    created: bool = False


class SessionIssuer:
    """
    Turn a verified wallet into a user row and a signed session token.

    Callers must have verified the wallet signature before calling ``issue``.
    """

    def __init__(self, db: Session):
        self.users = UserDirectory(db)
        self.db = db

    def find_or_create(self, wallet_address: str, username: Optional[str] = None) -> tuple[User, bool]:
        """
        Find the user for ``wallet_address`` or create one.

        Two concurrent first logins for the same wallet race on the unique
        wallet_address constraint; the loser re-fetches the winner's row.
        """
        user = self.users.get_by_wallet(wallet_address)
        if user:
            return user, False
        try:
            return self.users.create(wallet_address, username), True
        except IntegrityError:
            self.db.rollback()
            user = self.users.get_by_wallet(wallet_address)
            if user is None:
                logger.error("user insert conflicted but no row found for %s", wallet_address)
                raise InternalError("Authentication failed")
            return user, False

    def issue(self, wallet_address: str, username: Optional[str] = None) -> IssuedSession:
        user, created = self.find_or_create(wallet_address, username)
        if created:
            logger.info("created user %s for wallet %s", user.id, wallet_address)
        token = create_access_token(user.id, user.wallet_address)
        return IssuedSession(user=user, token=token, created=created)

    def resolve(self, token: Optional[str]) -> User:
        """
        Verify a bearer token and load its user.

        Raises:
            AuthError: TOKEN_MISSING, TOKEN_EXPIRED, TOKEN_MALFORMED, USER_NOT_FOUND
        """
        claims: SessionClaims = verify_token(token)
        user = self.users.get_by_id(claims.user_id)
        if user is None:
            raise AuthError("User not found", ErrorKind.USER_NOT_FOUND)
        return user
