"""
Recovery Service Domain Enums

All enumeration types used across the password recovery pipeline.
"""

from enum import Enum


class DeliveryChannel(str, Enum):
    """Medium used to deliver a reset link"""

    email = "email"
    sms = "sms"


class TokenValidation(str, Enum):
    """Outcome of checking a supplied reset token"""

    ok = "ok"
    expired = "expired"
    mismatch = "mismatch"


class RecoveryState(str, Enum):
    """Lifecycle of a single recovery attempt"""

    requested = "requested"
    token_issued = "token_issued"
    delivered = "delivered"
    redeemed = "redeemed"
    expired = "expired"
    abandoned = "abandoned"
