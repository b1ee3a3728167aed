"""
Admin API Key Authentication

Validates admin API keys for maintenance endpoints.
"""

import hmac

from fastapi import Depends, Header, status
from recovery_service.libs.result import Error
from recovery_service.api.error import ClientError
from recovery_service.depends import get_app_config


async def verify_admin_api_key(
    x_admin_api_key: str = Header(None),
    config=Depends(get_app_config),
):
    """
    Verify admin API key from X-Admin-API-Key header.

    Service-to-service auth for scheduled maintenance jobs.

    Raises:
        ClientError: 401 if key is missing or invalid, or no key is configured

    Returns:
        True if valid
    """
    if not x_admin_api_key:
        raise ClientError(
            Error("UNAUTHORIZED", "Admin API key required"),
            status_code=status.HTTP_401_UNAUTHORIZED,
        )

    valid_admin_key = getattr(config, "ADMIN_API_KEY", "")

    if not valid_admin_key or not hmac.compare_digest(x_admin_api_key.encode(), valid_admin_key.encode()):
        raise ClientError(
            Error("INVALID_API_KEY", "Invalid admin API key"),
            status_code=status.HTTP_401_UNAUTHORIZED,
        )

    return True
