from abc import ABC, abstractmethod
from datetime import datetime
from typing import Optional
from uuid import UUID

from recovery_service.domain.entities import User


class ICredentialStore(ABC):
    """
    Credential store interface - application layer

    Implemented by the durable SQL store and the in-memory fallback store with
    identical semantics. Writes are atomic per record.

    Raises:
        DuplicateUserError: create() with an email, username or phone that
            already exists
        UserNotFoundError: a write targets an unknown user id
        StoreUnavailableError: the backing store cannot be reached
    """

    backend: str

    @abstractmethod
    async def find_by_email(self, email: str) -> Optional[User]:
        """Get user by email address (case-insensitive)"""
        pass

    @abstractmethod
    async def find_by_id(self, user_id: UUID) -> Optional[User]:
        """Get user by ID"""
        pass

    @abstractmethod
    async def find_by_phone(self, phone: str) -> Optional[User]:
        """Get user by normalized phone number"""
        pass

    @abstractmethod
    async def find_by_username(self, username: str) -> Optional[User]:
        """Get user by username (exact match)"""
        pass

    @abstractmethod
    async def create(self, user: User) -> User:
        """Create a new user"""
        pass

    @abstractmethod
    async def set_reset_token(
        self, user_id: UUID, token_hash: str, expires_at: datetime
    ) -> None:
        """Store a pending reset token, replacing any previous one"""
        pass

    @abstractmethod
    async def clear_reset_token(self, user_id: UUID) -> None:
        """Remove the pending reset token"""
        pass

    @abstractmethod
    async def update_password(self, user_id: UUID, password_hash: str) -> None:
        """Replace the stored password hash"""
        pass

    @abstractmethod
    async def consume_reset_token(
        self, user_id: UUID, token_hash: str, password_hash: str, now: datetime
    ) -> bool:
        """
        Redeem a pending token in one write.

        Sets the new password hash and clears both token fields only if the
        stored digest equals token_hash and has not expired at now. Returns
        False when nothing matched (wrong, cleared or expired token, unknown
        user), so at most one of several concurrent callers gets True.
        """
        pass

    @abstractmethod
    async def clear_expired_reset_tokens(self, now: datetime) -> int:
        """Clear every pending token that expired before now, return how many"""
        pass


def normalize_email(email: str) -> str:
    return email.strip().lower()
