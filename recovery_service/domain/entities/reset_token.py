"""
IssuedResetToken Value Object

Capability handed out when a reset is requested. Only the digest is persisted
on the owning User record; the raw token travels in the reset link.
"""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel


class IssuedResetToken(BaseModel):
    """Freshly issued reset token for a single user"""

    token: str
    token_hash: str
    user_id: UUID
    issued_at: datetime
    expires_at: datetime
