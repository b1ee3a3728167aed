"""
Authentication Use Cases

Registration and the password recovery flow.
"""

from .register_user_use_case import RegisterUserUseCase
from .request_password_reset_use_case import RequestPasswordResetUseCase
from .confirm_password_reset_use_case import ConfirmPasswordResetUseCase
from .dtos import (
    RegisterUserCommand,
    RegisterUserResponse,
    RequestPasswordResetResponse,
    ConfirmPasswordResetResponse,
)

__all__ = [
    # Use Cases
    "RegisterUserUseCase",
    "RequestPasswordResetUseCase",
    "ConfirmPasswordResetUseCase",
    # DTOs - Commands
    "RegisterUserCommand",
    # DTOs - Responses
    "RegisterUserResponse",
    "RequestPasswordResetResponse",
    "ConfirmPasswordResetResponse",
]
