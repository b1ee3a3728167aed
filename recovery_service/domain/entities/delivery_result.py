"""
DeliveryResult Value Object

Outcome of handing a reset link to a notification channel. Not persisted.
"""

from typing import Optional

from pydantic import BaseModel

from .enums import DeliveryChannel


class DeliveryResult(BaseModel):
    """Result of a single delivery attempt"""

    success: bool
    channel_used: DeliveryChannel
    provider_reference: str = ""
    error: Optional[str] = None
