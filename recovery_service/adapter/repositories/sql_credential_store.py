from datetime import datetime
from typing import Optional
from uuid import UUID

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from recovery_service.app.repositories.credential_store import (
    ICredentialStore,
    normalize_email,
)
from recovery_service.domain.entities import User
from recovery_service.domain.errors import (
    DuplicateEmailError,
    DuplicatePhoneError,
    DuplicateUserError,
    DuplicateUsernameError,
    StoreUnavailableError,
    UserNotFoundError,
)
from recovery_service.domain.phone import normalize_phone


class SqlCredentialStore(ICredentialStore):
    """Credential store implementation using SQLModel"""

    backend = "sql"

    def __init__(self, engine: AsyncEngine):
        self.engine = engine
        self.session_factory = async_sessionmaker(
            engine, class_=AsyncSession, expire_on_commit=False, autoflush=False
        )

    async def find_by_email(self, email: str) -> Optional[User]:
        """Get user by email address"""
        stmt = select(User).where(User.email == normalize_email(email))
        return await self._one_or_none(stmt)

    async def find_by_id(self, user_id: UUID) -> Optional[User]:
        """Get user by ID"""
        stmt = select(User).where(User.id == user_id)
        return await self._one_or_none(stmt)

    async def find_by_phone(self, phone: str) -> Optional[User]:
        """Get user by phone number"""
        stmt = select(User).where(User.phone == normalize_phone(phone))
        return await self._one_or_none(stmt)

    async def find_by_username(self, username: str) -> Optional[User]:
        """Get user by username"""
        stmt = select(User).where(User.username == username.strip())
        return await self._one_or_none(stmt)

    async def create(self, user: User) -> User:
        """Create a new user"""
        user.email = normalize_email(user.email)
        if user.phone:
            user.phone = normalize_phone(user.phone)
        try:
            async with self.session_factory() as session:
                await self._ensure_unique(session, user)
                session.add(user)
                await session.commit()
                await session.refresh(user)
                return user
        except IntegrityError as exc:
            # Lost a race against a concurrent insert of the same value
            raise self._duplicate_error(user, exc) from exc
        except SQLAlchemyError as exc:
            raise StoreUnavailableError(str(exc)) from exc

    @staticmethod
    async def _ensure_unique(session: AsyncSession, user: User) -> None:
        checks = [(User.email, user.email, DuplicateEmailError)]
        if user.username:
            checks.append((User.username, user.username, DuplicateUsernameError))
        if user.phone:
            checks.append((User.phone, user.phone, DuplicatePhoneError))

        for column, value, error in checks:
            existing = await session.exec(select(User.id).where(column == value))
            if existing.first() is not None:
                raise error(value)

    @staticmethod
    def _duplicate_error(user: User, exc: IntegrityError) -> DuplicateUserError:
        message = str(exc.orig).lower()
        if user.phone and "phone" in message:
            return DuplicatePhoneError(user.phone)
        if user.username and "username" in message:
            return DuplicateUsernameError(user.username)
        return DuplicateEmailError(user.email)

    async def set_reset_token(
        self, user_id: UUID, token_hash: str, expires_at: datetime
    ) -> None:
        """Store token hash and expiry in one statement"""
        await self._update_one(
            user_id,
            reset_token_hash=token_hash,
            reset_token_expires_at=expires_at,
        )

    async def clear_reset_token(self, user_id: UUID) -> None:
        """Clear token hash and expiry in one statement"""
        await self._update_one(
            user_id,
            reset_token_hash=None,
            reset_token_expires_at=None,
        )

    async def update_password(self, user_id: UUID, password_hash: str) -> None:
        """Replace the password hash"""
        await self._update_one(user_id, password_hash=password_hash)

    async def consume_reset_token(
        self, user_id: UUID, token_hash: str, password_hash: str, now: datetime
    ) -> bool:
        """Conditional update: new password and token clear in one statement"""
        stmt = (
            update(User)
            .where(User.id == user_id)
            .where(User.reset_token_hash == token_hash)
            .where(User.reset_token_expires_at >= now)
            .values(
                password_hash=password_hash,
                reset_token_hash=None,
                reset_token_expires_at=None,
                updated_at=now,
            )
        )
        try:
            async with self.session_factory() as session:
                result = await session.execute(stmt)
                await session.commit()
        except SQLAlchemyError as exc:
            raise StoreUnavailableError(str(exc)) from exc
        return result.rowcount == 1

    async def clear_expired_reset_tokens(self, now: datetime) -> int:
        """Clear all pending tokens whose expiry is in the past"""
        stmt = (
            update(User)
            .where(User.reset_token_expires_at.is_not(None))
            .where(User.reset_token_expires_at < now)
            .values(reset_token_hash=None, reset_token_expires_at=None, updated_at=now)
        )
        try:
            async with self.session_factory() as session:
                result = await session.execute(stmt)
                await session.commit()
                return result.rowcount
        except SQLAlchemyError as exc:
            raise StoreUnavailableError(str(exc)) from exc

    async def _one_or_none(self, stmt) -> Optional[User]:
        try:
            async with self.session_factory() as session:
                result = await session.exec(stmt)
                return result.one_or_none()
        except SQLAlchemyError as exc:
            raise StoreUnavailableError(str(exc)) from exc

    async def _update_one(self, user_id: UUID, **values) -> None:
        stmt = (
            update(User)
            .where(User.id == user_id)
            .values(updated_at=datetime.utcnow(), **values)
        )
        try:
            async with self.session_factory() as session:
                result = await session.execute(stmt)
                await session.commit()
        except SQLAlchemyError as exc:
            raise StoreUnavailableError(str(exc)) from exc
        if result.rowcount == 0:
            raise UserNotFoundError(user_id)
