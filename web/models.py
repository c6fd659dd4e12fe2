"""API request/response models for the auth endpoints"""

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict

from stockroom.auth.models import PublicUser


class RegisterRequest(BaseModel):
    """Registration body. Fields are loosely typed so the handler can
    answer with structured error codes; bodies that are not JSON objects
    are answered by the validation handler in web.main."""
    model_config = ConfigDict(extra="ignore")

    email: Optional[Any] = None
    password: Optional[Any] = None
    name: Optional[Any] = None


class LoginRequest(BaseModel):
    """Login body"""
    model_config = ConfigDict(extra="ignore")

    email: Optional[Any] = None
    password: Optional[Any] = None


class UserResponse(BaseModel):
    """Envelope for register, login and session-check responses"""
    ok: bool
    user: Optional[PublicUser] = None


class ErrorResponse(BaseModel):
    ok: bool = False
    error: str
    message: Optional[str] = None
