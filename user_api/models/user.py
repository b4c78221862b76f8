"""
User Resource Models

Pydantic models for the user records served by the API and for the
request bodies accepted by the login and user endpoints.
"""

from typing import Optional
from pydantic import BaseModel, ConfigDict


class User(BaseModel):
    """
    A stored user record.

    The id is assigned by the store on creation and never changes afterwards.
    """
    id: int
    username: str
    email: str

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "id": 1,
                "username": "janeexample",
                "email": "jane.example@contoso.com"
            }
        }
    )


class UserPayload(BaseModel):
    """
    Request body for creating or replacing a user.

    Every field is optional here so that missing values reach the validator
    and come back with its human-readable reason. A client-supplied id is
    accepted for compatibility and ignored.
    """
    id: Optional[int] = None
    username: Optional[str] = None
    email: Optional[str] = None

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "username": "janeexample",
                "email": "jane.example@contoso.com"
            }
        }
    )


class LoginRequest(BaseModel):
    """Credentials posted to /login"""
    username: str
    password: str


class LoginResponse(BaseModel):
    """Successful login payload"""
    message: str = "Login successful"
    token: str


class UserActionResponse(BaseModel):
    """Confirmation returned by update and delete"""
    message: str
    id: int


class ErrorResponse(BaseModel):
    """
    Error body shared by every failing endpoint.

    Always a single ``error`` string; no stack traces or internal
    identifiers are ever included.
    """
    error: str

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "error": "Unauthorized: Missing or invalid token."
            }
        }
    )
