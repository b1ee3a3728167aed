"""
Confirm Password Reset Use Case

Redeems a reset token and sets the new password.
"""

import logging
from uuid import UUID

from recovery_service.app.services.password_hasher import PasswordHasher
from recovery_service.app.services.token_service import TokenService
from recovery_service.domain.entities import RecoveryState, TokenValidation
from recovery_service.domain.errors import StoreUnavailableError
from recovery_service.libs.result import Error, Result, Return
from .dtos import ConfirmPasswordResetResponse

logger = logging.getLogger(__name__)

INVALID_TOKEN_MESSAGE = "Invalid or expired password reset token"


class ConfirmPasswordResetUseCase:
    """
    Use case for confirming password reset.

    Business Rules:
    - New password must meet the complexity policy
    - Expired and mismatched tokens share one user-facing message
    - Password update and token clear are a single conditional store write;
      of two concurrent redemptions of the same token exactly one succeeds,
      the other sees the token as already consumed
    """

    def __init__(self, token_service: TokenService, password_hasher: PasswordHasher):
        self.token_service = token_service
        self.password_hasher = password_hasher

    @staticmethod
    def _rejected(user_id: UUID, outcome: TokenValidation) -> Result[ConfirmPasswordResetResponse]:
        if outcome == TokenValidation.expired:
            logger.info(f"Recovery {RecoveryState.expired.value}: user={user_id}")
            return Return.err(Error("TOKEN_EXPIRED", INVALID_TOKEN_MESSAGE))

        logger.info(f"Reset token mismatch for user={user_id}")
        return Return.err(Error("INVALID_TOKEN", INVALID_TOKEN_MESSAGE))

    async def execute(
        self, user_id: UUID, token: str, new_password: str
    ) -> Result[ConfirmPasswordResetResponse]:
        """
        Execute confirm password reset use case.

        Args:
            user_id: Id of the user the token was issued for
            token: Password reset token (plain text from the reset link)
            new_password: New password to set

        Returns:
            Result with confirmation status, or Error

        Errors:
            - INVALID_PASSWORD: Password does not meet complexity requirements
            - INVALID_TOKEN: Token does not match the pending one (or none pending)
            - TOKEN_EXPIRED: Token has expired
            - STORE_UNAVAILABLE: Credential store unreachable (retryable)
        """
        password_validation = self.password_hasher.validate(new_password)
        if password_validation.is_err():
            return Return.err(password_validation.error)

        try:
            outcome = await self.token_service.validate(user_id, token)
            if outcome != TokenValidation.ok:
                return self._rejected(user_id, outcome)

            password_hash = self.password_hasher.hash(new_password)
            if not await self.token_service.redeem(user_id, token, password_hash):
                # Consumed or expired between validation and the write
                return self._rejected(user_id, await self.token_service.validate(user_id, token))
        except StoreUnavailableError as exc:
            logger.error(f"Credential store unavailable during reset confirmation: {exc}")
            return Return.err(
                Error("STORE_UNAVAILABLE", "Service temporarily unavailable, please try again")
            )

        logger.info(f"Recovery {RecoveryState.redeemed.value}: user={user_id}")
        return Return.ok(
            ConfirmPasswordResetResponse(
                status="success",
                message="Password has been reset successfully",
            )
        )
