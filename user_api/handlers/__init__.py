"""
Authentication and request handlers for the User Management API.
"""

from .auth import TokenAuthenticator, get_authenticator
from .pipeline import (
    AuthCheck,
    ExceptionGuard,
    RequestLogging,
    RequestPipeline,
    build_interceptors,
)

__all__ = [
    "TokenAuthenticator",
    "get_authenticator",
    "AuthCheck",
    "ExceptionGuard",
    "RequestLogging",
    "RequestPipeline",
    "build_interceptors",
]
