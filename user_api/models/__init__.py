"""
User Management API Models Package

Pydantic models for user resources and API messages.
"""

from .user import (
    User,
    UserPayload,
    LoginRequest,
    LoginResponse,
    UserActionResponse,
    ErrorResponse,
)

__all__ = [
    "User",
    "UserPayload",
    "LoginRequest",
    "LoginResponse",
    "UserActionResponse",
    "ErrorResponse",
]
