"""
Unit tests for notification channels, transports and dispatch
"""
import logging
from types import SimpleNamespace
from urllib.parse import parse_qs

import httpx
import pytest

from recovery_service.adapter.notifications.base import redact_reset_link
from recovery_service.adapter.notifications.email_channel import (
    EmailChannel,
    EmailTransport,
    MockEmailTransport,
    SmtpEmailTransport,
)
from recovery_service.adapter.notifications.factory import (
    build_email_transport,
    build_notification_dispatcher,
    build_sms_transport,
)
from recovery_service.adapter.notifications.sms_channel import (
    MockSmsTransport,
    SmsChannel,
    TwilioSmsTransport,
)
from recovery_service.app.services.notification import NotificationDispatcher
from recovery_service.domain.entities import DeliveryChannel
from recovery_service.domain.errors import DeliveryError
from recovery_service.domain.phone import normalize_phone
from tests.utils.factories import make_user
from tests.utils.outbox import extract_token, extract_user_id

RESET_LINK = "https://app.peakmode.test/reset-password?token=abc123&user_id=42"


def notification_config(**overrides):
    values = {
        "RESET_LINK_BASE_URL": "https://app.peakmode.test",
        "RESET_LINK_PATH": "/reset-password",
        "RESET_TOKEN_TTL_MINUTES": 10,
        "PRODUCT_NAME": "PEAKMODE",
        "SMTP_HOST": "",
        "SMTP_PORT": 465,
        "SMTP_USERNAME": "",
        "SMTP_PASSWORD": "",
        "SMTP_FROM_EMAIL": "",
        "SMTP_USE_SSL": True,
        "SMTP_TIMEOUT": 20,
        "TWILIO_ACCOUNT_SID": "",
        "TWILIO_AUTH_TOKEN": "",
        "TWILIO_FROM_NUMBER": "",
        "TWILIO_API_BASE_URL": "https://api.twilio.com",
        "SMS_TIMEOUT": 15,
    }
    values.update(overrides)
    return SimpleNamespace(**values)


class FailingEmailTransport(EmailTransport):
    name = "failing"

    async def send(self, to, content):
        raise DeliveryError("SMTP delivery failed: connection refused")


# ============================================================================
# Phone normalization
# ============================================================================


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("15551234567", "+15551234567"),
        ("+15551234567", "+15551234567"),
        ("1 (555) 123-4567", "+15551234567"),
        (" 44.20.7946.0958 ", "+442079460958"),
    ],
)
def test_normalize_phone(raw, expected):
    assert normalize_phone(raw) == expected


def test_normalize_phone_is_idempotent():
    once = normalize_phone("1 (555) 123-4567")

    assert normalize_phone(once) == once


# ============================================================================
# Email
# ============================================================================


@pytest.mark.asyncio
async def test_mock_email_transport_always_succeeds():
    transport = MockEmailTransport()
    channel = EmailChannel(transport)

    result = await channel.send_password_reset("user@example.com", "peakuser", RESET_LINK)

    assert result.success
    assert result.channel_used == DeliveryChannel.email
    assert result.provider_reference.startswith("MOCK_MSG_")
    assert result.error is None
    assert len(transport.outbox) == 1
    assert transport.outbox[0].to == "user@example.com"


def test_email_content_carries_link_and_expiry():
    channel = EmailChannel(MockEmailTransport(), product_name="PEAKMODE", token_ttl_minutes=10)

    content = channel.render_password_reset("peakuser", RESET_LINK)

    assert content.subject == "Reset Your PEAKMODE Password"
    assert RESET_LINK in content.text
    assert "10 minutes" in content.text
    assert "peakuser" in content.text
    assert "token=abc123&amp;user_id=42" in content.html


def test_email_html_escapes_username():
    channel = EmailChannel(MockEmailTransport())

    content = channel.render_password_reset("<script>", RESET_LINK)

    assert "<script>" not in content.html
    assert "&lt;script&gt;" in content.html


@pytest.mark.asyncio
async def test_email_transport_failure_becomes_failed_result():
    channel = EmailChannel(FailingEmailTransport())

    result = await channel.send_password_reset("user@example.com", "peakuser", RESET_LINK)

    assert not result.success
    assert result.channel_used == DeliveryChannel.email
    assert "connection refused" in result.error


@pytest.mark.asyncio
async def test_mock_email_logs_redacted_link(caplog):
    channel = EmailChannel(MockEmailTransport())

    with caplog.at_level(logging.INFO):
        await channel.send_password_reset("user@example.com", "peakuser", RESET_LINK)

    assert "abc123" not in caplog.text
    assert "[REDACTED]" in caplog.text


@pytest.mark.asyncio
async def test_smtp_transport_wraps_connection_errors(monkeypatch):
    transport = SmtpEmailTransport(
        host="smtp.example.com",
        port=465,
        username="support@example.com",
        password="secret",
        from_email="support@example.com",
    )

    def refuse(msg):
        raise ConnectionRefusedError("connection refused")

    monkeypatch.setattr(transport, "_send_sync", refuse)
    channel = EmailChannel(transport)

    result = await channel.send_password_reset("user@example.com", "peakuser", RESET_LINK)

    assert not result.success
    assert "SMTP delivery failed" in result.error


@pytest.mark.asyncio
async def test_smtp_transport_builds_message(monkeypatch):
    transport = SmtpEmailTransport(
        host="smtp.example.com",
        port=465,
        username="support@example.com",
        password="secret",
        from_email="",
    )
    sent = []
    monkeypatch.setattr(transport, "_send_sync", sent.append)
    content = EmailChannel(transport).render_password_reset("peakuser", RESET_LINK)

    reference = await transport.send("user@example.com", content)

    msg = sent[0]
    assert reference == msg["Message-ID"]
    assert msg["To"] == "user@example.com"
    assert msg["Subject"] == "Reset Your PEAKMODE Password"
    assert "support@example.com" in msg["From"]


# ============================================================================
# SMS
# ============================================================================


@pytest.mark.asyncio
async def test_mock_sms_transport_always_succeeds():
    transport = MockSmsTransport()
    channel = SmsChannel(transport)

    result = await channel.send_password_reset("+15551234567", "peakuser", RESET_LINK)

    assert result.success
    assert result.channel_used == DeliveryChannel.sms
    assert result.provider_reference.startswith("MOCK_SID_")


@pytest.mark.asyncio
async def test_sms_recipient_without_plus_is_normalized():
    """Transport only ever sees international format"""
    transport = MockSmsTransport()
    channel = SmsChannel(transport)

    await channel.send_password_reset("15551234567", "peakuser", RESET_LINK)

    assert transport.outbox[0].to == "+15551234567"


@pytest.mark.asyncio
async def test_sms_body_format():
    transport = MockSmsTransport()
    channel = SmsChannel(transport, product_name="PEAKMODE", token_ttl_minutes=10)

    await channel.send_password_reset("+15551234567", "peakuser", RESET_LINK)

    assert transport.outbox[0].body == (
        f"PEAKMODE: Hi peakuser, reset your password by visiting {RESET_LINK}. "
        "This link will expire in 10 minutes."
    )


@pytest.mark.asyncio
async def test_twilio_transport_posts_message():
    captured = []

    def handler(request: httpx.Request) -> httpx.Response:
        captured.append(request)
        return httpx.Response(201, json={"sid": "SM0123456789", "status": "queued"})

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        transport = TwilioSmsTransport("AC123", "auth-token", "+15550000000", client=client)
        result = await SmsChannel(transport).send_password_reset(
            "15551234567", "peakuser", RESET_LINK
        )

    assert result.success
    assert result.provider_reference == "SM0123456789"
    request = captured[0]
    assert request.method == "POST"
    assert str(request.url) == "https://api.twilio.com/2010-04-01/Accounts/AC123/Messages.json"
    assert request.headers["authorization"].startswith("Basic ")
    form = parse_qs(request.content.decode())
    assert form["To"] == ["+15551234567"]
    assert form["From"] == ["+15550000000"]
    assert RESET_LINK in form["Body"][0]


@pytest.mark.asyncio
async def test_twilio_rejection_becomes_failed_result():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(400, json={"code": 21211, "message": "Invalid 'To' Phone Number"})

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        transport = TwilioSmsTransport("AC123", "auth-token", "+15550000000", client=client)
        result = await SmsChannel(transport).send_password_reset(
            "+15551234567", "peakuser", RESET_LINK
        )

    assert not result.success
    assert "Invalid 'To' Phone Number" in result.error


@pytest.mark.asyncio
async def test_twilio_accepted_with_unreadable_body_is_still_delivered():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(201, text="OK")

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        transport = TwilioSmsTransport("AC123", "auth-token", "+15550000000", client=client)
        result = await SmsChannel(transport).send_password_reset(
            "+15551234567", "peakuser", RESET_LINK
        )

    assert result.success
    assert result.provider_reference == ""


@pytest.mark.asyncio
async def test_twilio_rejection_with_unreadable_body():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(503, text="<html>Service Unavailable</html>")

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        transport = TwilioSmsTransport("AC123", "auth-token", "+15550000000", client=client)
        result = await SmsChannel(transport).send_password_reset(
            "+15551234567", "peakuser", RESET_LINK
        )

    assert not result.success


@pytest.mark.asyncio
async def test_twilio_network_error_raises_delivery_error():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        transport = TwilioSmsTransport("AC123", "auth-token", "+15550000000", client=client)
        with pytest.raises(DeliveryError):
            await transport.send("+15551234567", "body")


def test_redact_reset_link():
    assert redact_reset_link(RESET_LINK) == (
        "https://app.peakmode.test/reset-password?token=[REDACTED]&user_id=42"
    )


# ============================================================================
# Dispatcher
# ============================================================================


def test_dispatcher_requires_base_url():
    with pytest.raises(ValueError):
        NotificationDispatcher({}, reset_link_base_url="")


def test_build_reset_link(dispatcher):
    user = make_user()

    link = dispatcher.build_reset_link(user, "tok_en-123")

    assert link.startswith("https://app.peakmode.test/reset-password?")
    assert extract_token(link) == "tok_en-123"
    assert extract_user_id(link) == user.id


@pytest.mark.asyncio
async def test_dispatch_email_uses_user_email(dispatcher, email_transport):
    user = make_user(email="user@example.com")

    result = await dispatcher.dispatch(DeliveryChannel.email, user, "tok")

    assert result.success
    assert email_transport.outbox[0].to == "user@example.com"
    assert extract_token(email_transport.outbox[0].content.text) == "tok"


@pytest.mark.asyncio
async def test_dispatch_sms_without_phone_fails(dispatcher, sms_transport):
    user = make_user(phone=None)

    result = await dispatcher.dispatch(DeliveryChannel.sms, user, "tok")

    assert not result.success
    assert result.error.startswith("NO_RECIPIENT")
    assert sms_transport.outbox == []


@pytest.mark.asyncio
async def test_dispatch_unconfigured_channel_fails(email_transport):
    dispatcher = NotificationDispatcher(
        {DeliveryChannel.email: EmailChannel(email_transport)},
        reset_link_base_url="https://app.peakmode.test",
    )

    result = await dispatcher.dispatch(DeliveryChannel.sms, make_user(), "tok")

    assert not result.success
    assert result.channel_used == DeliveryChannel.sms


# ============================================================================
# Transport selection
# ============================================================================


def test_missing_credentials_select_mock_transports():
    config = notification_config()

    assert isinstance(build_email_transport(config), MockEmailTransport)
    assert isinstance(build_sms_transport(config), MockSmsTransport)


def test_partial_credentials_select_mock_transports():
    config = notification_config(SMTP_HOST="smtp.example.com", TWILIO_ACCOUNT_SID="AC123")

    assert isinstance(build_email_transport(config), MockEmailTransport)
    assert isinstance(build_sms_transport(config), MockSmsTransport)


def test_full_credentials_select_real_transports():
    config = notification_config(
        SMTP_HOST="smtp.example.com",
        SMTP_USERNAME="support@example.com",
        SMTP_PASSWORD="secret",
        TWILIO_ACCOUNT_SID="AC123",
        TWILIO_AUTH_TOKEN="auth-token",
        TWILIO_FROM_NUMBER="+15550000000",
    )

    dispatcher = build_notification_dispatcher(config)

    assert dispatcher.transport_names() == {"email": "smtp", "sms": "twilio"}


def test_dispatcher_reports_mock_transports():
    dispatcher = build_notification_dispatcher(notification_config())

    assert dispatcher.transport_names() == {"email": "mock", "sms": "mock"}
