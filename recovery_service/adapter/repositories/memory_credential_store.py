"""
In-memory fallback credential store.

Used when the durable store cannot be reached at startup. Records live for
the lifetime of the process, keyed by user id.
"""

import asyncio
from datetime import datetime
from typing import Dict, Iterable, Optional
from uuid import UUID

import bcrypt

from recovery_service.app.repositories.credential_store import (
    ICredentialStore,
    normalize_email,
)
from recovery_service.domain.entities import User
from recovery_service.domain.errors import (
    DuplicateEmailError,
    DuplicatePhoneError,
    DuplicateUsernameError,
    UserNotFoundError,
)
from recovery_service.domain.phone import normalize_phone

SEED_USER_ID = UUID("00000000-0000-4000-8000-000000000001")
SEED_USER_EMAIL = "fillds07@example.com"
SEED_USER_PASSWORD = "password"


def build_seed_user() -> User:
    """Single bootstrap record so a fresh fallback store is usable"""
    return User(
        id=SEED_USER_ID,
        email=SEED_USER_EMAIL,
        username="fillds07",
        password_hash=bcrypt.hashpw(SEED_USER_PASSWORD.encode(), bcrypt.gensalt(12)).decode(),
        created_at=datetime(2025, 1, 1),
        updated_at=datetime(2025, 1, 1),
    )


class InMemoryCredentialStore(ICredentialStore):
    """Credential store implementation backed by a dict"""

    backend = "memory"

    def __init__(self, users: Optional[Iterable[User]] = None):
        self._users: Dict[UUID, User] = {}
        self._lock = asyncio.Lock()
        for user in users or ():
            stored = self._copy(user)
            stored.email = normalize_email(stored.email)
            self._users[stored.id] = stored

    @classmethod
    def seeded(cls) -> "InMemoryCredentialStore":
        return cls([build_seed_user()])

    async def find_by_email(self, email: str) -> Optional[User]:
        """Get user by email address"""
        email = normalize_email(email)
        return self._find(lambda user: user.email == email)

    async def find_by_id(self, user_id: UUID) -> Optional[User]:
        """Get user by ID"""
        user = self._users.get(user_id)
        return self._copy(user) if user else None

    async def find_by_phone(self, phone: str) -> Optional[User]:
        """Get user by phone number"""
        phone = normalize_phone(phone)
        return self._find(lambda user: user.phone == phone)

    async def find_by_username(self, username: str) -> Optional[User]:
        """Get user by username"""
        username = username.strip()
        return self._find(lambda user: user.username == username)

    async def create(self, user: User) -> User:
        """Create a new user"""
        async with self._lock:
            stored = self._copy(user)
            stored.email = normalize_email(stored.email)
            if stored.phone:
                stored.phone = normalize_phone(stored.phone)
            self._ensure_unique(stored)
            self._users[stored.id] = stored
            return self._copy(stored)

    def _ensure_unique(self, candidate: User) -> None:
        checks = [("email", candidate.email, DuplicateEmailError)]
        if candidate.username:
            checks.append(("username", candidate.username, DuplicateUsernameError))
        if candidate.phone:
            checks.append(("phone", candidate.phone, DuplicatePhoneError))

        for field, value, error in checks:
            if any(getattr(user, field) == value for user in self._users.values()):
                raise error(value)

    async def set_reset_token(
        self, user_id: UUID, token_hash: str, expires_at: datetime
    ) -> None:
        await self._update_one(
            user_id, reset_token_hash=token_hash, reset_token_expires_at=expires_at
        )

    async def clear_reset_token(self, user_id: UUID) -> None:
        await self._update_one(user_id, reset_token_hash=None, reset_token_expires_at=None)

    async def update_password(self, user_id: UUID, password_hash: str) -> None:
        await self._update_one(user_id, password_hash=password_hash)

    async def consume_reset_token(
        self, user_id: UUID, token_hash: str, password_hash: str, now: datetime
    ) -> bool:
        async with self._lock:
            user = self._users.get(user_id)
            if (
                user is None
                or user.reset_token_hash != token_hash
                or user.reset_token_expires_at is None
                or user.reset_token_expires_at < now
            ):
                return False
            self._replace(
                user_id,
                password_hash=password_hash,
                reset_token_hash=None,
                reset_token_expires_at=None,
                updated_at=now,
            )
            return True

    async def clear_expired_reset_tokens(self, now: datetime) -> int:
        async with self._lock:
            expired = [
                user_id
                for user_id, user in self._users.items()
                if user.reset_token_expires_at is not None and user.reset_token_expires_at < now
            ]
            for user_id in expired:
                self._replace(
                    user_id,
                    reset_token_hash=None,
                    reset_token_expires_at=None,
                    updated_at=now,
                )
            return len(expired)

    async def _update_one(self, user_id: UUID, **values) -> None:
        async with self._lock:
            if user_id not in self._users:
                raise UserNotFoundError(user_id)
            self._replace(user_id, updated_at=datetime.utcnow(), **values)

    def _replace(self, user_id: UUID, **values) -> None:
        # Swap in a new object so readers holding a copy never see a half-applied write
        self._users[user_id] = User(**{**self._users[user_id].model_dump(), **values})

    def _find(self, predicate) -> Optional[User]:
        for user in self._users.values():
            if predicate(user):
                return self._copy(user)
        return None

    @staticmethod
    def _copy(user: User) -> User:
        return User(**user.model_dump())
