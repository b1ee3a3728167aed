"""
Authentication Use Case DTOs (Data Transfer Objects)

All Command and Response classes for the recovery pipeline.
Provides type safety and clear contracts between layers.
"""

from typing import Optional
from pydantic import BaseModel


# ============================================================================
# Command DTOs
# ============================================================================


class RegisterUserCommand(BaseModel):
    """Register command - validated registration intent"""

    email: str
    password: str
    username: Optional[str] = None
    phone: Optional[str] = None


# ============================================================================
# Response DTOs
# ============================================================================


class RegisterUserResponse(BaseModel):
    """Response for register user use case"""

    id: str
    email: str
    username: Optional[str] = None
    phone: Optional[str] = None


class RequestPasswordResetResponse(BaseModel):
    """Response for request password reset use case"""

    status: str
    message: str


class ConfirmPasswordResetResponse(BaseModel):
    """Response for confirm password reset use case"""

    status: str
    message: str
