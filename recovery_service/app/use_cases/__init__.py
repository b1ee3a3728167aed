"""
Use Cases

Organized into domain folders:
- auth/: Registration and password recovery
- admin/: Maintenance operations
"""

from .auth import (
    RegisterUserUseCase,
    RequestPasswordResetUseCase,
    ConfirmPasswordResetUseCase,
)
from .admin import PurgeExpiredResetTokensUseCase

__all__ = [
    # Auth
    "RegisterUserUseCase",
    "RequestPasswordResetUseCase",
    "ConfirmPasswordResetUseCase",
    # Admin
    "PurgeExpiredResetTokensUseCase",
]
