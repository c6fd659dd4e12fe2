"""
Credential service configuration.

All values come from environment variables (typically via .env, loaded by
web_server.py before the app is built):

- ENVIRONMENT          "production" enables fail-closed secret checks
- STOCKROOM_DATA_DIR   directory holding users.json (default: data)
- AUTH_TOKEN_SECRET    secret used to sign session tokens
- BCRYPT_ROUNDS        bcrypt work factor (default: 10)
- LOG_LEVEL / LOG_FORMAT
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from stockroom.utils.exceptions import ConfigError
from stockroom.utils.logger import get_logger

logger = get_logger(__name__)

# Only ever used outside production; load_auth_settings refuses it there.
DEV_TOKEN_SECRET = "dev-secret"

DEFAULT_BCRYPT_ROUNDS = 10
MIN_BCRYPT_ROUNDS = 4
MAX_BCRYPT_ROUNDS = 31

USERS_FILENAME = "users.json"


@dataclass(frozen=True)
class AuthSettings:
    environment: str
    data_dir: Path
    token_secret: str
    bcrypt_rounds: int = DEFAULT_BCRYPT_ROUNDS
    log_level: str = "INFO"
    log_format: str = "json"

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @property
    def users_file(self) -> Path:
        return self.data_dir / USERS_FILENAME


def _int_env(name: str, default: int) -> int:
    raw = (os.getenv(name) or "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        raise ConfigError(f"{name} must be an integer, got {raw!r}")


def load_auth_settings() -> AuthSettings:
    """
    Build AuthSettings from the environment.

    Raises:
        ConfigError: if a value is malformed, or if production is configured
            without a real AUTH_TOKEN_SECRET.
    """
    environment = (os.getenv("ENVIRONMENT") or "development").strip().lower()
    data_dir = Path(os.getenv("STOCKROOM_DATA_DIR") or "data")

    rounds = _int_env("BCRYPT_ROUNDS", DEFAULT_BCRYPT_ROUNDS)
    if not MIN_BCRYPT_ROUNDS <= rounds <= MAX_BCRYPT_ROUNDS:
        raise ConfigError(
            f"BCRYPT_ROUNDS must be between {MIN_BCRYPT_ROUNDS} and {MAX_BCRYPT_ROUNDS}"
        )

    secret = os.getenv("AUTH_TOKEN_SECRET") or ""
    if environment == "production":
        if not secret:
            raise ConfigError("AUTH_TOKEN_SECRET must be set when ENVIRONMENT=production.")
        if secret == DEV_TOKEN_SECRET:
            raise ConfigError("AUTH_TOKEN_SECRET must not be the development secret in production.")
    elif not secret:
        logger.warning(
            "AUTH_TOKEN_SECRET not set; using insecure development secret",
            environment=environment,
        )
        secret = DEV_TOKEN_SECRET

    return AuthSettings(
        environment=environment,
        data_dir=data_dir,
        token_secret=secret,
        bcrypt_rounds=rounds,
        log_level=(os.getenv("LOG_LEVEL") or "INFO").strip().upper(),
        log_format=(os.getenv("LOG_FORMAT") or "json").strip().lower(),
    )
