"""
FastAPI routes for email/password authentication.

Prefix: /api/auth

Register and login validate input here, before the credential store is
touched. Failures come back as {"ok": false, "error": "<code>"}. The
session check never says why a session was rejected.
"""

from __future__ import annotations

from typing import Any, Optional

from fastapi import APIRouter, Depends, status
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse
from pydantic import EmailStr, TypeAdapter, ValidationError

from stockroom.auth.models import PublicUser
from stockroom.auth.passwords import MAX_PASSWORD_BYTES, password_too_long
from stockroom.auth.store import CredentialStore
from stockroom.auth.tokens import SessionTokens
from stockroom.core.config import AuthSettings
from stockroom.utils.exceptions import UserAlreadyExistsError

from .auth_deps import (
    SESSION_COOKIE_NAME,
    get_credential_store,
    get_optional_user,
    get_session_tokens,
    get_settings,
)
from .models import ErrorResponse, LoginRequest, RegisterRequest, UserResponse

router = APIRouter(prefix="/api/auth", tags=["auth"])

MIN_PASSWORD_LENGTH = 8

_email_adapter = TypeAdapter(EmailStr)


def _error(status_code: int, error: str, message: Optional[str] = None) -> JSONResponse:
    body = ErrorResponse(error=error, message=message)
    return JSONResponse(status_code=status_code, content=body.model_dump(exclude_none=True))


def _user_response(user: PublicUser, status_code: int = status.HTTP_200_OK) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=UserResponse(ok=True, user=user).model_dump(),
    )


def _is_valid_email(email: str) -> bool:
    try:
        _email_adapter.validate_python(email)
    except ValidationError:
        return False
    return True


def _set_session_cookie(response: JSONResponse, token: str, tokens: SessionTokens, secure: bool) -> None:
    """Attach the session token as an HTTP-only cookie."""
    response.set_cookie(
        key=SESSION_COOKIE_NAME,
        value=token,
        max_age=tokens.max_age_seconds,
        path="/",
        httponly=True,
        secure=secure,
        samesite="lax",
    )


@router.post("/register", status_code=status.HTTP_201_CREATED)
async def register(
    body: Optional[RegisterRequest] = None,
    store: CredentialStore = Depends(get_credential_store),
) -> Any:
    """
    Register a new user.

    Request (JSON):
        {"email": "...", "password": "...", "name": "..."}   name is optional

    Response:
        201 {"ok": true, "user": {"id": "...", "email": "...", "name": "..."}}
        400 missing_credentials | invalid_email | weak_password | password_too_long
        409 already_exists
    """
    email = body.email if body else None
    password = body.password if body else None
    if not email or not password:
        return _error(status.HTTP_400_BAD_REQUEST, "missing_credentials")

    if not isinstance(email, str) or not _is_valid_email(email.strip()):
        return _error(status.HTTP_400_BAD_REQUEST, "invalid_email")

    if not isinstance(password, str) or len(password) < MIN_PASSWORD_LENGTH:
        return _error(
            status.HTTP_400_BAD_REQUEST,
            "weak_password",
            f"Password must be at least {MIN_PASSWORD_LENGTH} characters",
        )
    if password_too_long(password):
        return _error(
            status.HTTP_400_BAD_REQUEST,
            "password_too_long",
            f"Password must be at most {MAX_PASSWORD_BYTES} bytes",
        )

    name = body.name.strip() if isinstance(body.name, str) and body.name.strip() else None

    try:
        user = await run_in_threadpool(store.register, email, password, name)
    except UserAlreadyExistsError:
        return _error(status.HTTP_409_CONFLICT, "already_exists", "Email is already registered")

    return _user_response(user, status_code=status.HTTP_201_CREATED)


@router.post("/login")
async def login(
    body: Optional[LoginRequest] = None,
    store: CredentialStore = Depends(get_credential_store),
    tokens: SessionTokens = Depends(get_session_tokens),
    settings: AuthSettings = Depends(get_settings),
) -> Any:
    """
    Log in with email and password.

    On success the signed session token is set as the `auth` cookie
    (HTTP-only, 7 days). Wrong password and unknown email both answer
    401 invalid_credentials.
    """
    email = body.email if body else None
    password = body.password if body else None
    if not email or not password:
        return _error(status.HTTP_400_BAD_REQUEST, "missing_credentials")
    if not isinstance(email, str) or not isinstance(password, str):
        return _error(status.HTTP_401_UNAUTHORIZED, "invalid_credentials")

    user = await run_in_threadpool(store.verify, email, password)
    if user is None:
        return _error(status.HTTP_401_UNAUTHORIZED, "invalid_credentials")

    token = tokens.sign({"id": user.id, "email": user.email})
    response = _user_response(user)
    _set_session_cookie(response, token, tokens, secure=settings.is_production)
    return response


@router.get("/me")
async def me(user: Optional[PublicUser] = Depends(get_optional_user)) -> Any:
    """
    Return the user behind the current session.

    Missing, expired, tampered or orphaned sessions all answer
    {"ok": false, "user": null}.
    """
    if user is None:
        return UserResponse(ok=False, user=None).model_dump()
    return UserResponse(ok=True, user=user).model_dump()


@router.post("/logout")
async def logout() -> Any:
    """Clear the session cookie. Tokens are stateless; this is client-side only."""
    response = JSONResponse({"ok": True})
    response.delete_cookie(SESSION_COOKIE_NAME, path="/")
    return response
