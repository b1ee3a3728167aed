"""
Password reset token service.

Generates, validates and invalidates reset tokens. Tokens are attached to the
user record as a SHA-256 digest; the raw value is only ever handed back to
the caller of issue().
"""

import hashlib
import hmac
import secrets
from datetime import datetime, timedelta
from typing import Callable
from uuid import UUID

from recovery_service.app.repositories.credential_store import ICredentialStore
from recovery_service.domain.entities import IssuedResetToken, TokenValidation

DEFAULT_TOKEN_TTL = timedelta(minutes=10)
TOKEN_BYTES = 32


def hash_token(token: str) -> str:
    return hashlib.sha256(token.encode()).hexdigest()


class TokenService:
    """
    Business Rules:
    - Token is 32 random bytes from the OS CSPRNG (256 bits, url-safe)
    - Expires 10 minutes after issue
    - Issuing overwrites any pending token, so only the newest is valid
    - Comparison is constant-time on the digests
    - Redemption is a conditional store write, so a token is consumed once
      even across processes sharing the store
    """

    def __init__(
        self,
        store: ICredentialStore,
        ttl: timedelta = DEFAULT_TOKEN_TTL,
        clock: Callable[[], datetime] = datetime.utcnow,
    ):
        self.store = store
        self.ttl = ttl
        self.clock = clock

    async def issue(self, user_id: UUID) -> IssuedResetToken:
        token = secrets.token_urlsafe(TOKEN_BYTES)
        issued_at = self.clock()
        issued = IssuedResetToken(
            token=token,
            token_hash=hash_token(token),
            user_id=user_id,
            issued_at=issued_at,
            expires_at=issued_at + self.ttl,
        )
        await self.store.set_reset_token(user_id, issued.token_hash, issued.expires_at)
        return issued

    async def validate(self, user_id: UUID, supplied_token: str) -> TokenValidation:
        user = await self.store.find_by_id(user_id)
        if user is None or not user.has_pending_reset:
            return TokenValidation.mismatch

        if self.clock() > user.reset_token_expires_at:
            return TokenValidation.expired

        if not hmac.compare_digest(hash_token(supplied_token), user.reset_token_hash):
            return TokenValidation.mismatch

        return TokenValidation.ok

    async def redeem(self, user_id: UUID, supplied_token: str, password_hash: str) -> bool:
        """
        Consume the token and set the new password in a single store write.

        Returns False if the token was no longer pending and unexpired when
        the write ran, e.g. a concurrent redemption got there first.
        """
        return await self.store.consume_reset_token(
            user_id, hash_token(supplied_token), password_hash, self.clock()
        )

    async def invalidate(self, user_id: UUID) -> None:
        await self.store.clear_reset_token(user_id)

    async def purge_expired(self) -> int:
        return await self.store.clear_expired_reset_tokens(self.clock())
