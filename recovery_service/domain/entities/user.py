"""
User Entity

Identity and credential holder for the PEAKMODE app.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID, uuid4

from sqlmodel import Column, DateTime, Field, Index, SQLModel


class User(SQLModel, table=True):
    """
    User entity - identity and credential holder.

    Business Rules:
    - Email must be unique across all users (stored lower-cased)
    - Username and phone are optional but unique when set, since both are
      password reset identifiers
    - Password stored as bcrypt hash (cost factor 12), never exposed by the API
    - Reset token is stored as a SHA-256 digest, never in plain text
    - reset_token_hash and reset_token_expires_at are set and cleared together
    - Only one pending reset per user; a new request overwrites the old one
    """

    __tablename__ = "users"

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    email: str = Field(unique=True, index=True, max_length=255)
    username: Optional[str] = Field(default=None, unique=True, index=True, max_length=64)
    phone: Optional[str] = Field(default=None, unique=True, index=True, max_length=20)
    password_hash: str = Field(max_length=60)  # Bcrypt output is 60 chars

    active: bool = Field(default=True)

    # Pending password reset
    reset_token_hash: Optional[str] = Field(default=None, max_length=64)
    reset_token_expires_at: Optional[datetime] = Field(
        default=None, sa_column=Column(DateTime, nullable=True)
    )

    # Timestamps
    created_at: datetime = Field(
        default_factory=lambda: datetime.utcnow(), sa_column=Column(DateTime)
    )
    updated_at: datetime = Field(
        default_factory=lambda: datetime.utcnow(), sa_column=Column(DateTime)
    )

    __table_args__ = (Index("idx_user_reset_token_expires_at", "reset_token_expires_at"),)

    @property
    def has_pending_reset(self) -> bool:
        return self.reset_token_hash is not None and self.reset_token_expires_at is not None
