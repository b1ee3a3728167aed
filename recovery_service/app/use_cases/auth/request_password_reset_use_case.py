"""
Request Password Reset Use Case

Issues a reset token and delivers the reset link over email or SMS.
"""

import logging
from typing import Optional

from recovery_service.app.repositories.credential_store import ICredentialStore
from recovery_service.app.services.notification import NotificationDispatcher
from recovery_service.app.services.token_service import TokenService
from recovery_service.domain.entities import DeliveryChannel, RecoveryState, User
from recovery_service.domain.errors import StoreUnavailableError, UserNotFoundError
from recovery_service.domain.phone import looks_like_phone
from recovery_service.libs.result import Error, Result, Return
from .dtos import RequestPasswordResetResponse

logger = logging.getLogger(__name__)

GENERIC_MESSAGE = "If an account with that identifier exists, a password reset link has been sent"


class RequestPasswordResetUseCase:
    """
    Use case for requesting password reset.

    Business Rules:
    - Identifier is an email address (contains "@"), a phone number (digits
      and separators) or otherwise a username
    - No account enumeration: unknown, inactive or unreachable users get the
      same response as a successful request, with no token and no delivery
    - New token overwrites any pending one (last write wins)
    - Delivery failure is reported as retryable; the token stays pending
    - Rate limiting is not handled here
    """

    def __init__(
        self,
        store: ICredentialStore,
        token_service: TokenService,
        dispatcher: NotificationDispatcher,
    ):
        self.store = store
        self.token_service = token_service
        self.dispatcher = dispatcher

    async def _find_user(self, identifier: str) -> Optional[User]:
        identifier = identifier.strip()
        if "@" in identifier:
            return await self.store.find_by_email(identifier)
        if looks_like_phone(identifier):
            return await self.store.find_by_phone(identifier)
        return await self.store.find_by_username(identifier)

    @staticmethod
    def _sent() -> Result[RequestPasswordResetResponse]:
        return Return.ok(RequestPasswordResetResponse(status="sent", message=GENERIC_MESSAGE))

    async def execute(
        self, identifier: str, channel: DeliveryChannel
    ) -> Result[RequestPasswordResetResponse]:
        """
        Execute request password reset use case.

        Args:
            identifier: User's email address, phone number or username
            channel: Delivery channel for the reset link

        Returns:
            Result with generic "sent" status, or Error

        Errors:
            - DELIVERY_FAILED: Transport rejected the message (retryable)
            - STORE_UNAVAILABLE: Credential store unreachable (retryable)
        """
        try:
            user = await self._find_user(identifier)

            if user is None or not user.active:
                logger.info(f"Password reset requested for unknown identifier via {channel.value}")
                return self._sent()

            if self.dispatcher.recipient_for(user, channel) is None:
                logger.info(f"User {user.id} has no {channel.value} address, skipping reset")
                return self._sent()

            logger.info(f"Recovery {RecoveryState.requested.value}: user={user.id} channel={channel.value}")
            if user.has_pending_reset:
                logger.info(f"Recovery {RecoveryState.abandoned.value}: user={user.id} superseded pending token")
            issued = await self.token_service.issue(user.id)
        except UserNotFoundError:
            # Record vanished between lookup and write
            return self._sent()
        except StoreUnavailableError as exc:
            logger.error(f"Credential store unavailable during reset request: {exc}")
            return Return.err(
                Error("STORE_UNAVAILABLE", "Service temporarily unavailable, please try again")
            )

        logger.info(
            f"Recovery {RecoveryState.token_issued.value}: user={user.id} "
            f"expires_at={issued.expires_at.isoformat()}"
        )

        delivery = await self.dispatcher.dispatch(channel, user, issued.token)
        if not delivery.success:
            logger.warning(
                f"Recovery delivery failed: user={user.id} channel={channel.value} error={delivery.error}"
            )
            return Return.err(
                Error(
                    "DELIVERY_FAILED",
                    "Could not deliver the password reset link, please try again",
                )
            )

        logger.info(
            f"Recovery {RecoveryState.delivered.value}: user={user.id} "
            f"channel={delivery.channel_used.value} ref={delivery.provider_reference}"
        )
        return self._sent()
