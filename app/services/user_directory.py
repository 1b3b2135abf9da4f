"""
handle user records keyed by wallet address
table: users
columns:
    id: str (uuid)
    wallet_address: str (unique)
    username: str
    email: str (optional, unique)
    created_at: datetime
    updated_at: datetime
"""

from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.errors import ConflictError, ErrorKind
from app.models.users import User

DEFAULT_USERNAME_PREFIX = "user_"
DEFAULT_USERNAME_WALLET_CHARS = 8


def default_username(wallet_address: str) -> str:
    """``user_`` followed by the first 8 characters of the wallet address."""
    return f"{DEFAULT_USERNAME_PREFIX}{wallet_address[:DEFAULT_USERNAME_WALLET_CHARS]}"


class UserDirectory:
    def __init__(self, db: Session):
        self.db = db

    def get_by_id(self, user_id: str) -> Optional[User]:
        return self.db.query(User).filter(User.id == user_id).first()

    def get_by_wallet(self, wallet_address: str) -> Optional[User]:
        return self.db.query(User).filter(User.wallet_address == wallet_address).first()

    def create(self, wallet_address: str, username: Optional[str] = None) -> User:
        """
        Insert a new user and commit.

        Raises:
            IntegrityError: another request created the same wallet first
        """
        user = User(
            wallet_address=wallet_address,
            username=username or default_username(wallet_address),
            email=None,
        )
        self.db.add(user)
        self.db.commit()
        self.db.refresh(user)
        return user

    def update_profile(
        self,
        user: User,
        username: Optional[str] = None,
        email: Optional[str] = None,
    ) -> User:
        """Change username and/or email; empty values are left untouched."""
        if username:
            user.username = username
        if email:
            user.email = email
        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            raise ConflictError("Username or email already exists", ErrorKind.PROFILE_CONFLICT)
        self.db.refresh(user)
        return user
