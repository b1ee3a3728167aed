"""
Email delivery of password reset links.

SmtpEmailTransport talks to a real SMTP server; MockEmailTransport is wired
when no SMTP credentials are configured and only logs the message.
"""

import asyncio
import html
import logging
import smtplib
import ssl
from abc import ABC, abstractmethod
from dataclasses import dataclass
from email.message import EmailMessage
from email.utils import formataddr, make_msgid
from typing import List

from recovery_service.adapter.notifications.base import mock_reference, redact_reset_link
from recovery_service.app.services.notification import INotificationChannel
from recovery_service.domain.entities import DeliveryChannel, DeliveryResult
from recovery_service.domain.errors import DeliveryError

logger = logging.getLogger(__name__)


@dataclass
class EmailContent:
    subject: str
    text: str
    html: str


@dataclass
class SentEmail:
    to: str
    content: EmailContent
    reference: str


class EmailTransport(ABC):
    name: str

    @abstractmethod
    async def send(self, to: str, content: EmailContent) -> str:
        """Send the message and return the provider message id"""
        pass


class SmtpEmailTransport(EmailTransport):
    name = "smtp"

    def __init__(
        self,
        host: str,
        port: int,
        username: str,
        password: str,
        from_email: str,
        sender_name: str = "PEAKMODE Support",
        use_ssl: bool = True,
        timeout: float = 20,
    ):
        self.host = host
        self.port = port
        self.username = username
        self.password = password
        self.from_email = from_email or username
        self.sender_name = sender_name
        self.use_ssl = use_ssl
        self.timeout = timeout

    async def send(self, to: str, content: EmailContent) -> str:
        msg = EmailMessage()
        msg["From"] = formataddr((self.sender_name, self.from_email))
        msg["To"] = to
        msg["Subject"] = content.subject
        msg["Message-ID"] = make_msgid()
        msg.set_content(content.text)
        msg.add_alternative(content.html, subtype="html")

        try:
            await asyncio.to_thread(self._send_sync, msg)
        except (smtplib.SMTPException, OSError) as exc:
            raise DeliveryError(f"SMTP delivery failed: {exc}") from exc
        return msg["Message-ID"]

    def _send_sync(self, msg: EmailMessage) -> None:
        if self.use_ssl:
            context = ssl.create_default_context()
            with smtplib.SMTP_SSL(self.host, self.port, timeout=self.timeout, context=context) as server:
                server.login(self.username, self.password)
                server.send_message(msg)
        else:
            with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as server:
                server.starttls(context=ssl.create_default_context())
                server.login(self.username, self.password)
                server.send_message(msg)


class MockEmailTransport(EmailTransport):
    """Logs instead of sending; always succeeds"""

    name = "mock"

    def __init__(self):
        self.outbox: List[SentEmail] = []

    async def send(self, to: str, content: EmailContent) -> str:
        reference = mock_reference("MOCK_MSG_")
        self.outbox.append(SentEmail(to=to, content=content, reference=reference))
        logger.info(
            f"MOCK EMAIL to={to} subject={content.subject!r} ref={reference} "
            f"body={redact_reset_link(content.text)!r}"
        )
        return reference


class EmailChannel(INotificationChannel):
    """Email implementation of the notification channel"""

    channel = DeliveryChannel.email

    def __init__(
        self,
        transport: EmailTransport,
        product_name: str = "PEAKMODE",
        token_ttl_minutes: int = 10,
    ):
        self.transport = transport
        self.product_name = product_name
        self.token_ttl_minutes = token_ttl_minutes

    @property
    def transport_name(self) -> str:
        return self.transport.name

    def render_password_reset(self, username: str, reset_link: str) -> EmailContent:
        product = self.product_name
        text = (
            f"Hello {username},\n\n"
            f"You requested a password reset for your {product} account.\n\n"
            f"Reset your password here: {reset_link}\n\n"
            f"This link will expire in {self.token_ttl_minutes} minutes.\n\n"
            "If you didn't request this, please ignore this email.\n\n"
            f"Thanks,\nThe {product} Team"
        )
        safe_name = html.escape(username)
        safe_link = html.escape(reset_link, quote=True)
        body = f"""
<div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">
  <div style="background-color: #F5B431; padding: 20px; text-align: center; border-radius: 10px 10px 0 0;">
    <h1 style="color: white; margin: 0;">{product}</h1>
  </div>
  <div style="padding: 20px; border: 1px solid #e0e0e0; border-top: none; border-radius: 0 0 10px 10px;">
    <p>Hello <strong>{safe_name}</strong>,</p>
    <p>You requested a password reset for your {product} account.</p>
    <p style="text-align: center; margin: 25px 0;">
      <a href="{safe_link}" style="background-color: #F5B431; color: white; padding: 12px 24px; border-radius: 5px; text-decoration: none;">Reset Password</a>
    </p>
    <p>This link will expire in <strong>{self.token_ttl_minutes} minutes</strong>.</p>
    <p>If you didn't request this, please ignore this email.</p>
    <p>Thanks,<br>The {product} Team</p>
  </div>
</div>
"""
        return EmailContent(subject=f"Reset Your {product} Password", text=text, html=body)

    async def send_password_reset(
        self, recipient: str, username: str, reset_link: str
    ) -> DeliveryResult:
        content = self.render_password_reset(username, reset_link)
        try:
            reference = await self.transport.send(recipient, content)
        except DeliveryError as exc:
            logger.error(f"Password reset email to {recipient} failed: {exc}")
            return DeliveryResult(
                success=False, channel_used=self.channel, error=str(exc)
            )

        logger.info(f"Password reset email sent to {recipient}, ref={reference}")
        return DeliveryResult(
            success=True, channel_used=self.channel, provider_reference=reference
        )
