"""
User Management API Services

Business logic services: the in-memory user store and the user validator.
"""

from .user_store import UserStore
from .validator import ValidationResult, validate_user

__all__ = ["UserStore", "ValidationResult", "validate_user"]
