"""
Notification dispatch for password reset links.

Channels hide whether a real or a mock transport sits behind them; the
dispatcher only picks the channel and the recipient address.
"""

from abc import ABC, abstractmethod
from typing import Dict, Optional
from urllib.parse import urlencode

from recovery_service.domain.entities import DeliveryChannel, DeliveryResult, User


class INotificationChannel(ABC):
    """Notification channel interface - application layer"""

    channel: DeliveryChannel

    @property
    @abstractmethod
    def transport_name(self) -> str:
        """Name of the wired transport, e.g. smtp, twilio or mock"""
        pass

    @abstractmethod
    async def send_password_reset(
        self, recipient: str, username: str, reset_link: str
    ) -> DeliveryResult:
        """Deliver a reset link; transport failures come back as success=False"""
        pass


class NotificationDispatcher:
    """
    Routes reset links to the email or SMS channel.

    Constructed once at startup with an explicit base URL; the reset link is
    {base_url}{path}?token=...&user_id=...
    """

    def __init__(
        self,
        channels: Dict[DeliveryChannel, INotificationChannel],
        reset_link_base_url: str,
        reset_link_path: str = "/reset-password",
    ):
        if not reset_link_base_url:
            raise ValueError("reset_link_base_url is required")
        self.channels = channels
        self.reset_link_base_url = reset_link_base_url.rstrip("/")
        self.reset_link_path = "/" + reset_link_path.lstrip("/")

    def build_reset_link(self, user: User, token: str) -> str:
        query = urlencode({"token": token, "user_id": str(user.id)})
        return f"{self.reset_link_base_url}{self.reset_link_path}?{query}"

    @staticmethod
    def recipient_for(user: User, channel: DeliveryChannel) -> Optional[str]:
        if channel == DeliveryChannel.sms:
            return user.phone or None
        return user.email or None

    def transport_names(self) -> Dict[str, str]:
        return {channel.value: impl.transport_name for channel, impl in self.channels.items()}

    async def dispatch(self, channel: DeliveryChannel, user: User, token: str) -> DeliveryResult:
        recipient = self.recipient_for(user, channel)
        if recipient is None:
            return DeliveryResult(
                success=False,
                channel_used=channel,
                error=f"NO_RECIPIENT: user has no {channel.value} address",
            )

        impl = self.channels.get(channel)
        if impl is None:
            return DeliveryResult(
                success=False,
                channel_used=channel,
                error=f"Channel {channel.value} is not configured",
            )

        return await impl.send_password_reset(
            recipient,
            user.username or user.email,
            self.build_reset_link(user, token),
        )
