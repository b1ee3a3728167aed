"""
Use Case: Purge Expired Reset Tokens

Expiry-driven cleanup of pending reset tokens across all users.
"""

import logging

from pydantic import BaseModel

from recovery_service.app.services.token_service import TokenService
from recovery_service.domain.entities import RecoveryState
from recovery_service.domain.errors import StoreUnavailableError
from recovery_service.libs.result import Error, Result, Return

logger = logging.getLogger(__name__)


class PurgeExpiredResetTokensResponse(BaseModel):
    """Response DTO for PurgeExpiredResetTokensUseCase"""

    status: str
    tokens_cleared: int


class PurgeExpiredResetTokensUseCase:
    """
    Clear every reset token whose expiry has passed.

    Idempotent: a second run right after the first clears 0 tokens.
    """

    def __init__(self, token_service: TokenService):
        self.token_service = token_service

    async def execute(self) -> Result[PurgeExpiredResetTokensResponse]:
        try:
            cleared = await self.token_service.purge_expired()
        except StoreUnavailableError as exc:
            logger.error(f"Credential store unavailable during token purge: {exc}")
            return Return.err(
                Error("STORE_UNAVAILABLE", "Service temporarily unavailable, please try again")
            )

        logger.info(f"Recovery {RecoveryState.expired.value}: purged {cleared} expired reset token(s)")
        return Return.ok(PurgeExpiredResetTokensResponse(status="purged", tokens_cleared=cleared))
