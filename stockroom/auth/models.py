"""
Credential store models.

UserRecord mirrors one entry of users.json. PublicUser is the projection
returned to callers; it never carries the password hash.
"""

from __future__ import annotations

from typing import Optional
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field


def normalize_email(email: str) -> str:
    return email.strip().lower()


class PublicUser(BaseModel):
    """User fields safe to hand back to clients."""

    model_config = ConfigDict(frozen=True)

    id: str
    email: str
    name: Optional[str] = None


class UserRecord(BaseModel):
    """Persisted user record (email-keyed, bcrypt hash only)."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str = Field(default_factory=lambda: str(uuid4()))
    email: str
    password_hash: str = Field(alias="passwordHash")
    name: Optional[str] = None

    def to_public(self) -> PublicUser:
        return PublicUser(id=self.id, email=self.email, name=self.name)

    def to_storage(self) -> dict:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)
