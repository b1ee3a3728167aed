import logging

from recovery_service.adapter.notifications.email_channel import (
    EmailChannel,
    EmailTransport,
    MockEmailTransport,
    SmtpEmailTransport,
)
from recovery_service.adapter.notifications.sms_channel import (
    MockSmsTransport,
    SmsChannel,
    SmsTransport,
    TwilioSmsTransport,
)
from recovery_service.app.services.notification import NotificationDispatcher
from recovery_service.domain.entities import DeliveryChannel

logger = logging.getLogger(__name__)


def build_email_transport(config) -> EmailTransport:
    if config.SMTP_HOST and config.SMTP_USERNAME and config.SMTP_PASSWORD:
        logger.info(f"Email transport: SMTP via {config.SMTP_HOST}:{config.SMTP_PORT}")
        return SmtpEmailTransport(
            host=config.SMTP_HOST,
            port=int(config.SMTP_PORT),
            username=config.SMTP_USERNAME,
            password=config.SMTP_PASSWORD,
            from_email=config.SMTP_FROM_EMAIL,
            sender_name=f"{config.PRODUCT_NAME} Support",
            use_ssl=bool(config.SMTP_USE_SSL),
            timeout=float(config.SMTP_TIMEOUT),
        )
    logger.warning("Email transport: SMTP credentials not configured, using mock transport")
    return MockEmailTransport()


def build_sms_transport(config) -> SmsTransport:
    if config.TWILIO_ACCOUNT_SID and config.TWILIO_AUTH_TOKEN and config.TWILIO_FROM_NUMBER:
        logger.info("SMS transport: Twilio")
        return TwilioSmsTransport(
            account_sid=config.TWILIO_ACCOUNT_SID,
            auth_token=config.TWILIO_AUTH_TOKEN,
            from_number=config.TWILIO_FROM_NUMBER,
            api_base_url=config.TWILIO_API_BASE_URL,
            timeout=float(config.SMS_TIMEOUT),
        )
    logger.warning("SMS transport: Twilio credentials not configured, using mock transport")
    return MockSmsTransport()


def build_notification_dispatcher(config) -> NotificationDispatcher:
    """Wire real transports where credentials exist, mock ones elsewhere"""
    ttl = int(config.RESET_TOKEN_TTL_MINUTES)
    channels = {
        DeliveryChannel.email: EmailChannel(
            build_email_transport(config), config.PRODUCT_NAME, ttl
        ),
        DeliveryChannel.sms: SmsChannel(build_sms_transport(config), config.PRODUCT_NAME, ttl),
    }
    return NotificationDispatcher(
        channels,
        reset_link_base_url=config.RESET_LINK_BASE_URL,
        reset_link_path=config.RESET_LINK_PATH,
    )
