"""
SMS delivery of password reset links.

TwilioSmsTransport posts to the Twilio Messages REST API with httpx;
MockSmsTransport is wired when no Twilio account is configured.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import List, Optional

import httpx

from recovery_service.adapter.notifications.base import mock_reference, redact_reset_link
from recovery_service.app.services.notification import INotificationChannel
from recovery_service.domain.entities import DeliveryChannel, DeliveryResult
from recovery_service.domain.errors import DeliveryError
from recovery_service.domain.phone import normalize_phone

logger = logging.getLogger(__name__)

TWILIO_API_BASE_URL = "https://api.twilio.com"
MOCK_FROM_NUMBER = "+15555555555"


@dataclass
class SentSms:
    to: str
    from_number: str
    body: str
    reference: str


class SmsTransport(ABC):
    name: str

    @abstractmethod
    async def send(self, to: str, body: str) -> str:
        """Send the message and return the provider message sid"""
        pass


class TwilioSmsTransport(SmsTransport):
    name = "twilio"

    def __init__(
        self,
        account_sid: str,
        auth_token: str,
        from_number: str,
        api_base_url: str = TWILIO_API_BASE_URL,
        timeout: float = 15,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.account_sid = account_sid
        self.auth_token = auth_token
        self.from_number = from_number
        self.api_base_url = api_base_url.rstrip("/")
        self.timeout = timeout
        self.client = client

    @property
    def messages_url(self) -> str:
        return f"{self.api_base_url}/2010-04-01/Accounts/{self.account_sid}/Messages.json"

    async def send(self, to: str, body: str) -> str:
        data = {"To": to, "From": self.from_number, "Body": body}
        try:
            if self.client is not None:
                response = await self._post(self.client, data)
            else:
                async with httpx.AsyncClient(timeout=self.timeout) as client:
                    response = await self._post(client, data)
        except httpx.HTTPError as exc:
            raise DeliveryError(f"SMS gateway request failed: {exc}") from exc

        if response.status_code >= 400:
            raise DeliveryError(
                f"SMS gateway rejected message ({response.status_code}): {self._error_message(response)}"
            )

        return self._message_sid(response)

    async def _post(self, client: httpx.AsyncClient, data: dict) -> httpx.Response:
        return await client.post(
            self.messages_url,
            data=data,
            auth=(self.account_sid, self.auth_token),
        )

    @staticmethod
    def _message_sid(response: httpx.Response) -> str:
        # Accepted but unreadable body: the message was sent, the sid is unknown
        try:
            return response.json().get("sid") or ""
        except (ValueError, AttributeError):
            return ""

    @staticmethod
    def _error_message(response: httpx.Response) -> str:
        try:
            return response.json().get("message", response.text)
        except (ValueError, AttributeError):
            return response.text


class MockSmsTransport(SmsTransport):
    """Logs instead of sending; always succeeds"""

    name = "mock"

    def __init__(self, from_number: str = MOCK_FROM_NUMBER):
        self.from_number = from_number
        self.outbox: List[SentSms] = []

    async def send(self, to: str, body: str) -> str:
        reference = mock_reference("MOCK_SID_")
        self.outbox.append(
            SentSms(to=to, from_number=self.from_number, body=body, reference=reference)
        )
        logger.info(f"MOCK SMS to={to} from={self.from_number} sid={reference} body={redact_reset_link(body)!r}")
        return reference


class SmsChannel(INotificationChannel):
    """SMS implementation of the notification channel"""

    channel = DeliveryChannel.sms

    def __init__(
        self,
        transport: SmsTransport,
        product_name: str = "PEAKMODE",
        token_ttl_minutes: int = 10,
    ):
        self.transport = transport
        self.product_name = product_name
        self.token_ttl_minutes = token_ttl_minutes

    @property
    def transport_name(self) -> str:
        return self.transport.name

    def render_password_reset(self, username: str, reset_link: str) -> str:
        return (
            f"{self.product_name}: Hi {username}, reset your password by visiting {reset_link}. "
            f"This link will expire in {self.token_ttl_minutes} minutes."
        )

    async def send_password_reset(
        self, recipient: str, username: str, reset_link: str
    ) -> DeliveryResult:
        phone = normalize_phone(recipient)
        body = self.render_password_reset(username, reset_link)
        try:
            reference = await self.transport.send(phone, body)
        except DeliveryError as exc:
            logger.error(f"Password reset SMS to {phone} failed: {exc}")
            return DeliveryResult(success=False, channel_used=self.channel, error=str(exc))

        logger.info(f"Password reset SMS sent to {phone}, sid={reference}")
        return DeliveryResult(
            success=True, channel_used=self.channel, provider_reference=reference
        )
