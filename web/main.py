"""FastAPI application for the Stockroom credential service"""

from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exception_handlers import request_validation_exception_handler
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from stockroom import __version__
from stockroom.auth.store import CredentialStore
from stockroom.auth.tokens import SessionTokens
from stockroom.core.config import AuthSettings, load_auth_settings
from stockroom.utils.exceptions import StorageError
from stockroom.utils.logger import configure_logging, get_logger

from .auth_routes import router as auth_router

AUTH_PREFIX = auth_router.prefix

logger = get_logger(__name__)


async def _storage_error_handler(request: Request, exc: StorageError) -> JSONResponse:
    # Detail stays in the log; clients only learn that the server failed.
    logger.error("Storage failure", path=request.url.path, error=str(exc))
    return JSONResponse(status_code=500, content={"ok": False, "error": "server_error"})


async def _validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    # Auth bodies that are not JSON objects never reach the handlers; answer in
    # the same envelope and never echo the body, which may hold a password.
    if request.url.path.startswith(AUTH_PREFIX):
        logger.info("Malformed auth request body", path=request.url.path)
        return JSONResponse(
            status_code=400,
            content={"ok": False, "error": "missing_credentials"},
        )
    return await request_validation_exception_handler(request, exc)


def create_app(settings: Optional[AuthSettings] = None) -> FastAPI:
    """
    Build the application and its single credential store.

    Raises:
        ConfigError: if settings come from the environment and are unsafe
            (e.g. production without AUTH_TOKEN_SECRET)
        StorageError: if the user file cannot be created or read
    """
    if settings is None:
        settings = load_auth_settings()
    configure_logging(settings.log_level, settings.log_format)

    store = CredentialStore(settings.users_file, bcrypt_rounds=settings.bcrypt_rounds)
    store.initialize()

    app = FastAPI(
        title="Stockroom Auth",
        description="Credential store and session tokens for the stockroom app",
        version=__version__,
    )
    app.state.settings = settings
    app.state.credential_store = store
    app.state.session_tokens = SessionTokens(settings.token_secret)

    app.add_exception_handler(StorageError, _storage_error_handler)
    app.add_exception_handler(RequestValidationError, _validation_error_handler)
    app.include_router(auth_router)

    @app.get("/api/health")
    async def health():
        return {"status": "ok"}

    logger.info(
        "Application configured",
        environment=settings.environment,
        users_file=str(settings.users_file),
    )
    return app
