"""Credential store, password hashing and session tokens."""

from .models import PublicUser, UserRecord
from .store import CredentialStore
from .tokens import SESSION_MAX_AGE, SessionTokens

__all__ = ["CredentialStore", "PublicUser", "SESSION_MAX_AGE", "SessionTokens", "UserRecord"]
