"""FastAPI application factory for the garage-auth API."""
from __future__ import annotations

from contextlib import asynccontextmanager
import logging
from typing import Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from garage_auth.core.config import Settings, get_settings
from garage_auth.core.errors import AuthError, ErrorKind
from garage_auth.core.log_config import configure_logging
from garage_auth.core.mailer import NotificationGateway, SmtpNotificationGateway
from garage_auth.core.rate_limiter import RateLimiter
from garage_auth.core.security import PasswordHasher
from garage_auth.db.session import init_schema
from garage_auth.repositories.sql_repository import CredentialRepository
from garage_auth.routers import auth as auth_router
from garage_auth.services.auth_service import AuthService
from garage_auth.services.verification_codes import VerificationCodeRegistry

logger = logging.getLogger(__name__)

STATUS_BY_KIND = {
    ErrorKind.CONFLICT: status.HTTP_409_CONFLICT,
    ErrorKind.INVALID_CODE: status.HTTP_400_BAD_REQUEST,
    ErrorKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorKind.UNAUTHORIZED: status.HTTP_401_UNAUTHORIZED,
    ErrorKind.DELIVERY_FAILURE: status.HTTP_502_BAD_GATEWAY,
    ErrorKind.INVALID_REQUEST: status.HTTP_400_BAD_REQUEST,
    ErrorKind.STORE_UNAVAILABLE: status.HTTP_503_SERVICE_UNAVAILABLE,
}


def _register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(AuthError)
    async def auth_error_handler(request: Request, exc: AuthError):
        code = STATUS_BY_KIND.get(exc.kind, status.HTTP_400_BAD_REQUEST)
        if code >= 500:
            logger.error("%s on %s: %s", exc.kind.value, request.url.path, exc.reason)
        return JSONResponse(status_code=code, content={"detail": exc.reason, "kind": exc.kind.value})

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        logger.warning("Validation error on %s: %s", request.url.path, exc.errors())
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"detail": "Invalid request body", "kind": ErrorKind.INVALID_REQUEST.value},
        )


def create_app(
    settings: Optional[Settings] = None,
    *,
    notifier: Optional[NotificationGateway] = None,
    hasher: Optional[PasswordHasher] = None,
    codes: Optional[VerificationCodeRegistry] = None,
) -> FastAPI:
    """Wire settings, adapters and the auth service into a FastAPI app."""
    settings = settings or get_settings()
    configure_logging(settings.log_level)
    codes = codes or VerificationCodeRegistry(settings.verification_code_ttl_seconds)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        init_schema()
        logger.info("garage-auth API started (env=%s)", settings.app_env)
        yield
        # Codes never outlive the app instance.
        codes.clear()
        logger.info("garage-auth API shutting down")

    app = FastAPI(title="garage-auth API", lifespan=lifespan)
    app.state.settings = settings
    app.state.rate_limiter = RateLimiter()
    app.state.auth_service = AuthService(
        store=CredentialRepository(),
        codes=codes,
        hasher=hasher or PasswordHasher(),
        notifier=notifier or SmtpNotificationGateway(settings),
        admin_email=settings.admin_email,
    )
    _register_error_handlers(app)
    app.include_router(auth_router.router)
    return app
