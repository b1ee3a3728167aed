import os
import yaml

ROOT_PATH = os.path.dirname(__file__)
CONFIG_FILE_PATH = os.environ.get("RECOVERY_CONFIG_FILE", os.path.join(ROOT_PATH, "env.yaml"))

if os.path.exists(CONFIG_FILE_PATH):
    with open(CONFIG_FILE_PATH, "r") as r_file:
        data = yaml.safe_load(r_file) or dict()
else:
    data = dict()


def get(key, default=None):
    """Environment variable first, then env.yaml, then the default"""
    value = os.environ.get(key)
    if value is None:
        return data.get(key, default)
    if isinstance(default, bool):
        return value.strip().lower() in ("1", "true", "yes", "on")
    if isinstance(default, list):
        return [item.strip() for item in value.split(",") if item.strip()]
    return value


class ApplicationConfig:
    DB_URI = get("DB_URI", "sqlite+aiosqlite:///./peakmode.db")
    API_PORT = int(get("API_PORT", 8000))
    API_HOST = get("API_HOST", "0.0.0.0")
    CORS_ORIGINS = get("CORS_ORIGINS", [])
    CORS_ALLOW_CREDENTIALS = get("CORS_ALLOW_CREDENTIALS", True)
    LOG_LEVEL = get("LOG_LEVEL", "INFO")
    ADMIN_API_KEY = get("ADMIN_API_KEY", "")

    # Password recovery
    RESET_LINK_BASE_URL = get("RESET_LINK_BASE_URL", "")
    RESET_LINK_PATH = get("RESET_LINK_PATH", "/reset-password")
    RESET_TOKEN_TTL_MINUTES = int(get("RESET_TOKEN_TTL_MINUTES", 10))
    PRODUCT_NAME = get("PRODUCT_NAME", "PEAKMODE")
    SEED_FALLBACK_USER = get("SEED_FALLBACK_USER", True)

    # Email (SMTP); mock transport when unset
    SMTP_HOST = get("SMTP_HOST", "")
    SMTP_PORT = int(get("SMTP_PORT", 465))
    SMTP_USERNAME = get("SMTP_USERNAME", "")
    SMTP_PASSWORD = get("SMTP_PASSWORD", "")
    SMTP_FROM_EMAIL = get("SMTP_FROM_EMAIL", "")
    SMTP_USE_SSL = get("SMTP_USE_SSL", True)
    SMTP_TIMEOUT = float(get("SMTP_TIMEOUT", 20))

    # SMS (Twilio); mock transport when unset
    TWILIO_ACCOUNT_SID = get("TWILIO_ACCOUNT_SID", "")
    TWILIO_AUTH_TOKEN = get("TWILIO_AUTH_TOKEN", "")
    TWILIO_FROM_NUMBER = get("TWILIO_FROM_NUMBER", "")
    TWILIO_API_BASE_URL = get("TWILIO_API_BASE_URL", "https://api.twilio.com")
    SMS_TIMEOUT = float(get("SMS_TIMEOUT", 15))
