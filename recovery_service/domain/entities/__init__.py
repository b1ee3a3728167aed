"""
Recovery Service Domain Entities

Entities and value objects of the password recovery pipeline.
"""

from .enums import DeliveryChannel, RecoveryState, TokenValidation
from .user import User
from .reset_token import IssuedResetToken
from .delivery_result import DeliveryResult

__all__ = [
    # Enums
    "DeliveryChannel",
    "RecoveryState",
    "TokenValidation",
    # Entities
    "User",
    # Value objects
    "IssuedResetToken",
    "DeliveryResult",
]
