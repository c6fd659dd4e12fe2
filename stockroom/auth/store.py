"""
Credential store with JSON-based persistence.

One file holds every user:

    {"users": [{"id": ..., "email": ..., "passwordHash": ..., "name": ...}]}

The file is reloaded in full on every call and rewritten in full (atomic
temp-file replace) on every mutation. Registration runs under an exclusive
lock file so concurrent registrations cannot lose each other's writes.
"""

from __future__ import annotations

import json
import shutil
import tempfile
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional
from uuid import uuid4

from pydantic import ValidationError

from stockroom.core.config import DEFAULT_BCRYPT_ROUNDS
from stockroom.core.locks import LOCK_TIMEOUT_SECONDS, file_lock
from stockroom.utils.exceptions import StorageError, UserAlreadyExistsError
from stockroom.utils.logger import get_logger

from .models import PublicUser, UserRecord, normalize_email
from .passwords import hash_password, verify_password

logger = get_logger(__name__)


class CredentialStore:
    """Registered users backed by a single JSON file.

    Build one per process and share it; it keeps no state between calls
    besides its configuration.
    """

    def __init__(
        self,
        users_file: Path,
        bcrypt_rounds: int = DEFAULT_BCRYPT_ROUNDS,
        lock_timeout_seconds: float = LOCK_TIMEOUT_SECONDS,
    ):
        self.users_file = Path(users_file)
        self.bcrypt_rounds = bcrypt_rounds
        self.lock_timeout_seconds = lock_timeout_seconds
        # Compared against when an email is unknown, at the same bcrypt cost
        self._dummy_hash = hash_password(uuid4().hex, rounds=bcrypt_rounds)

    def initialize(self) -> None:
        """Create the data directory and an empty user file if absent."""
        if self.users_file.exists():
            return
        with self._locked():
            self._create_if_missing()

    def load_users(self) -> List[UserRecord]:
        """Load all users from storage"""
        self.initialize()
        return self._read_users()

    def save_users(self, users: List[UserRecord]) -> None:
        """Atomically save users to JSON"""
        self._atomic_write({"users": [u.to_storage() for u in users]})

    @contextmanager
    def _locked(self) -> Iterator[None]:
        try:
            self.users_file.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StorageError(f"Failed to create data directory {self.users_file.parent}: {e}")
        try:
            with file_lock(self.users_file, timeout_seconds=self.lock_timeout_seconds):
                yield
        except TimeoutError as e:
            logger.error("User file lock timed out", path=str(self.users_file))
            raise StorageError(str(e))

    def _create_if_missing(self) -> None:
        if self.users_file.exists():
            return
        self._atomic_write({"users": []})
        logger.info("Created empty user file", path=str(self.users_file))

    def _read_users(self) -> List[UserRecord]:
        try:
            with open(self.users_file, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.error("Failed to read user file", path=str(self.users_file), error=str(e))
            raise StorageError(f"Failed to load users from {self.users_file}: {e}")

        if not isinstance(data, dict) or not isinstance(data.get("users", []), list):
            raise StorageError(f"Unexpected layout in {self.users_file}: expected {{'users': [...]}}")

        try:
            return [UserRecord(**item) for item in data.get("users", [])]
        except (ValidationError, TypeError) as e:
            logger.error("Invalid user record", path=str(self.users_file), error=str(e))
            raise StorageError(f"Invalid user record in {self.users_file}: {e}")

    def register(self, email: str, password: str, name: Optional[str] = None) -> PublicUser:
        """
        Create a new user.

        - Email is unique after normalization (case-insensitive).
        - Password is stored only as a bcrypt hash.

        Raises:
            UserAlreadyExistsError: the email is already registered
            StorageError: the user file could not be read, locked or written
            ValueError: the password is longer than bcrypt accepts
        """
        email = normalize_email(email)
        with self._locked():
            self._create_if_missing()
            users = self._read_users()
            if any(u.email == email for u in users):
                logger.info("Registration rejected: email already registered")
                raise UserAlreadyExistsError(email)

            existing_ids = {u.id for u in users}
            user_id = str(uuid4())
            while user_id in existing_ids:
                user_id = str(uuid4())

            user = UserRecord(
                id=user_id,
                email=email,
                password_hash=hash_password(password, rounds=self.bcrypt_rounds),
                name=name,
            )
            users.append(user)
            self.save_users(users)

        logger.info("User registered", user_id=user.id)
        return user.to_public()

    def verify(self, email: str, password: str) -> Optional[PublicUser]:
        """Return the user if credentials are valid, else None."""
        email = normalize_email(email)
        user = next((u for u in self.load_users() if u.email == email), None)
        if user is None:
            # Same bcrypt cost as a real check, so timing does not reveal
            # whether the email is registered.
            verify_password(password, self._dummy_hash)
            logger.info("Credential check failed")
            return None
        if not verify_password(password, user.password_hash):
            logger.info("Credential check failed")
            return None
        return user.to_public()

    def get_by_id(self, user_id: str) -> Optional[PublicUser]:
        """Find user by ID"""
        user = next((u for u in self.load_users() if u.id == user_id), None)
        return user.to_public() if user else None

    def _atomic_write(self, data: Dict[str, Any]) -> None:
        """Write JSON file atomically"""
        dir_path = self.users_file.parent
        try:
            with tempfile.NamedTemporaryFile(
                mode="w", dir=str(dir_path), delete=False, encoding="utf-8"
            ) as tf:
                json.dump(data, tf, indent=2, ensure_ascii=False)
                temp_path = Path(tf.name)
        except OSError as e:
            raise StorageError(f"Failed to save users to {self.users_file}: {e}")

        try:
            shutil.move(str(temp_path), str(self.users_file))
        except OSError as e:
            if temp_path.exists():
                temp_path.unlink()
            raise StorageError(f"Failed to save users to {self.users_file}: {e}")
