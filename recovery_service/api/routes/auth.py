from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, EmailStr, Field

from recovery_service.adapter.services.bootstrap import RecoveryServices
from recovery_service.api.error import ClientError, ServerError
from recovery_service.app.use_cases.auth import (
    RegisterUserCommand,
    RegisterUserResponse,
    RegisterUserUseCase,
    RequestPasswordResetUseCase,
    ConfirmPasswordResetUseCase,
    RequestPasswordResetResponse,
    ConfirmPasswordResetResponse,
)
from recovery_service.depends import get_recovery_services
from recovery_service.domain.entities import DeliveryChannel

router = APIRouter(prefix="/auth", tags=["Authentication"])

PHONE_PATTERN = r"^\+?[0-9 ()\-]{10,20}$"


class SignupRequest(BaseModel):
    """
    Signup HTTP request payload

    Validates incoming HTTP request before converting to RegisterUserCommand.
    """

    email: EmailStr = Field(..., description="User email address")
    password: str = Field(..., min_length=8, max_length=20, description="User password (8-20 chars)")
    username: Optional[str] = Field(
        None, min_length=3, max_length=64, pattern=r"^[a-zA-Z0-9_]*[a-zA-Z_][a-zA-Z0-9_]*$",
        description="Display name, also usable to request a reset",
    )
    phone: Optional[str] = Field(None, pattern=PHONE_PATTERN, description="Phone number for SMS")


@router.post(
    "/signup", status_code=status.HTTP_201_CREATED, response_model=RegisterUserResponse
)
async def signup(
    request: SignupRequest, services: RecoveryServices = Depends(get_recovery_services)
):
    """
    User Signup

    Creates a user record in whichever credential store was selected at startup.

    Raises:
        - 409 Conflict: Email, username or phone already registered
        - 400 Bad Request: Password does not meet complexity requirements
        - 422 Unprocessable Entity: Invalid input (handled by FastAPI)
        - 503 Service Unavailable: Credential store unreachable
    """
    command = RegisterUserCommand(
        email=request.email,
        password=request.password,
        username=request.username,
        phone=request.phone,
    )

    use_case = RegisterUserUseCase(services.store, services.password_hasher)
    result = await use_case.execute(command)

    if result.is_err():
        error = result.error
        if error.code in ("EMAIL_ALREADY_EXISTS", "USERNAME_ALREADY_EXISTS", "PHONE_ALREADY_EXISTS"):
            raise ClientError(error, status_code=status.HTTP_409_CONFLICT)
        elif error.code == "INVALID_PASSWORD":
            raise ClientError(error, status_code=status.HTTP_400_BAD_REQUEST)
        elif error.code == "STORE_UNAVAILABLE":
            raise ServerError(error, status_code=status.HTTP_503_SERVICE_UNAVAILABLE)
        raise ServerError(error)

    return result.value


class RequestPasswordResetRequest(BaseModel):
    """
    Request password reset HTTP request payload

    identifier is an email address, a phone number or a username.
    """

    identifier: str = Field(..., min_length=3, max_length=255, description="Email, phone number or username")
    channel: DeliveryChannel = Field(DeliveryChannel.email, description="email or sms")


@router.post(
    "/request-password-reset",
    status_code=status.HTTP_200_OK,
    response_model=RequestPasswordResetResponse,
)
async def request_password_reset(
    request: RequestPasswordResetRequest,
    services: RecoveryServices = Depends(get_recovery_services),
):
    """
    Request Password Reset

    Issues a 10-minute reset token and sends the reset link by email or SMS.

    Security:
        - No account enumeration (same response for known/unknown identifiers)
        - Token is cryptographically secure (32 bytes), stored as SHA-256
        - Rate limiting is not applied here

    Returns:
        - 200 OK: Generic acknowledgement
        - 503 Service Unavailable: DELIVERY_FAILED or STORE_UNAVAILABLE (retry)
    """
    use_case = RequestPasswordResetUseCase(
        services.store, services.token_service, services.dispatcher
    )
    result = await use_case.execute(request.identifier, request.channel)

    if result.is_err():
        error = result.error
        if error.code in ("DELIVERY_FAILED", "STORE_UNAVAILABLE"):
            raise ServerError(error, status_code=status.HTTP_503_SERVICE_UNAVAILABLE)
        raise ServerError(error)

    return result.value


class ConfirmPasswordResetRequest(BaseModel):
    """
    Confirm password reset HTTP request payload

    user_id and token both come from the reset link.
    """

    user_id: UUID = Field(..., description="User id from the reset link")
    token: str = Field(..., min_length=1, max_length=256, description="Password reset token")
    new_password: str = Field(..., min_length=8, max_length=20, description="New password (8-20 chars)")


@router.post(
    "/confirm-password-reset",
    status_code=status.HTTP_200_OK,
    response_model=ConfirmPasswordResetResponse,
)
async def confirm_password_reset(
    request: ConfirmPasswordResetRequest,
    services: RecoveryServices = Depends(get_recovery_services),
):
    """
    Confirm Password Reset

    Validates the reset token and updates the user's password.

    Security:
        - Token must match the newest pending token (constant-time compare)
        - Token must not be expired (10 minute window)
        - Token is single-use: cleared after a successful reset

    Raises:
        - 400 Bad Request: INVALID_TOKEN or INVALID_PASSWORD
        - 410 Gone: TOKEN_EXPIRED
        - 503 Service Unavailable: STORE_UNAVAILABLE
    """
    use_case = ConfirmPasswordResetUseCase(services.token_service, services.password_hasher)
    result = await use_case.execute(request.user_id, request.token, request.new_password)

    if result.is_err():
        error = result.error
        if error.code in ("INVALID_TOKEN", "INVALID_PASSWORD"):
            raise ClientError(error, status_code=status.HTTP_400_BAD_REQUEST)
        elif error.code == "TOKEN_EXPIRED":
            raise ClientError(error, status_code=status.HTTP_410_GONE)
        elif error.code == "STORE_UNAVAILABLE":
            raise ServerError(error, status_code=status.HTTP_503_SERVICE_UNAVAILABLE)
        raise ServerError(error)

    return result.value
