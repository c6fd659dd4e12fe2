"""
FastAPI dependencies for authentication.

The credential store, token service and settings are built once in
create_app() and live on app.state; handlers receive them through these
dependencies.
"""

from typing import Optional

from fastapi import Depends, HTTPException, Request, status
from fastapi.concurrency import run_in_threadpool

from stockroom.auth.models import PublicUser
from stockroom.auth.store import CredentialStore
from stockroom.auth.tokens import SessionTokens
from stockroom.core.config import AuthSettings

SESSION_COOKIE_NAME = "auth"


def get_settings(request: Request) -> AuthSettings:
    return request.app.state.settings


def get_credential_store(request: Request) -> CredentialStore:
    return request.app.state.credential_store


def get_session_tokens(request: Request) -> SessionTokens:
    return request.app.state.session_tokens


def get_session_token(request: Request) -> Optional[str]:
    """Extract session token from request (cookie or Authorization header)"""
    # Prefer cookie for browser flows
    token = request.cookies.get(SESSION_COOKIE_NAME)
    if token:
        return token

    auth_header = request.headers.get("Authorization")
    if auth_header and auth_header.lower().startswith("bearer "):
        return auth_header[7:].strip() or None
    return None


async def get_optional_user(
    request: Request,
    store: CredentialStore = Depends(get_credential_store),
    tokens: SessionTokens = Depends(get_session_tokens),
) -> Optional[PublicUser]:
    """Resolve the session to a user, or None for any failure."""
    claims = tokens.verify(get_session_token(request))
    if not claims:
        return None
    user_id = claims.get("id")
    if not isinstance(user_id, str):
        return None
    return await run_in_threadpool(store.get_by_id, user_id)


async def get_current_user(
    user: Optional[PublicUser] = Depends(get_optional_user),
) -> PublicUser:
    """Dependency for protected routes; raises 401 without a valid session."""
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user
