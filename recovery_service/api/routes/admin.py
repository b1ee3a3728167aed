"""
Admin API Routes - Maintenance Endpoints

Authentication is via Admin API Key.
"""

from fastapi import APIRouter, Depends, status

from recovery_service.adapter.services.bootstrap import RecoveryServices
from recovery_service.api.error import ServerError
from recovery_service.api.utils.admin_auth import verify_admin_api_key
from recovery_service.app.use_cases.admin import (
    PurgeExpiredResetTokensResponse,
    PurgeExpiredResetTokensUseCase,
)
from recovery_service.depends import get_recovery_services

router = APIRouter(prefix="/admin", tags=["Admin"])


@router.post(
    "/reset-tokens/purge-expired",
    status_code=status.HTTP_200_OK,
    response_model=PurgeExpiredResetTokensResponse,
    dependencies=[Depends(verify_admin_api_key)],
)
async def purge_expired_reset_tokens(
    services: RecoveryServices = Depends(get_recovery_services),
):
    """
    Purge Expired Reset Tokens

    Clears reset tokens whose 10-minute window has passed. Meant to be called
    by a scheduler.

    Requires: X-Admin-API-Key header

    Raises:
        - 401 Unauthorized: Missing or invalid admin API key
        - 503 Service Unavailable: STORE_UNAVAILABLE
    """
    use_case = PurgeExpiredResetTokensUseCase(services.token_service)
    result = await use_case.execute()

    if result.is_err():
        error = result.error
        if error.code == "STORE_UNAVAILABLE":
            raise ServerError(error, status_code=status.HTTP_503_SERVICE_UNAVAILABLE)
        raise ServerError(error)

    return result.value
