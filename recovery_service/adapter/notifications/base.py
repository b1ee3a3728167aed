import re
import secrets

_TOKEN_PARAM = re.compile(r"(token=)[^&\s]+")


def redact_reset_link(text: str) -> str:
    """Mask reset tokens before a message body reaches the logs"""
    return _TOKEN_PARAM.sub(r"\1[REDACTED]", text)


def mock_reference(prefix: str) -> str:
    return f"{prefix}{secrets.token_hex(6)}"
