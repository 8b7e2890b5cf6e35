"""Login sessions: opaque bearer tokens persisted with an expiry."""
from __future__ import annotations

import logging
import secrets
from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import Request, Response
from sqlalchemy.exc import SQLAlchemyError

from garage_auth.core.config import Settings
from garage_auth.core.errors import StoreUnavailableError
from garage_auth.db.models import UserSession
from garage_auth.db.session import get_session

logger = logging.getLogger(__name__)

SESSION_COOKIE_NAME = "session"
MIN_SESSION_TTL_SECONDS = 60
SESSION_STORE_UNAVAILABLE = "Session store is unavailable"


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes even for timezone-aware columns.
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


def issue_session(email: str, settings: Settings) -> str:
    """Persist a fresh token for an authenticated e-mail and return it."""
    ttl = max(MIN_SESSION_TTL_SECONDS, settings.session_ttl_seconds)
    token = secrets.token_urlsafe(32)
    entity = UserSession(
        token=token,
        user_email=email,
        expires_at=datetime.now(timezone.utc) + timedelta(seconds=ttl),
    )
    try:
        with get_session() as session:
            session.add(entity)
            session.commit()
    except SQLAlchemyError as exc:
        logger.error("Could not persist session for %s: %s", email, exc)
        raise StoreUnavailableError(SESSION_STORE_UNAVAILABLE) from exc
    return token


def session_token(request: Request) -> Optional[str]:
    """Token from ``Authorization: Bearer`` if present, else from the cookie."""
    scheme, _, value = (request.headers.get("authorization") or "").partition(" ")
    if scheme.lower() == "bearer" and value.strip():
        return value.strip()
    return request.cookies.get(SESSION_COOKIE_NAME)


def resolve_session(token: str) -> Optional[str]:
    """E-mail owning ``token``; expired sessions are deleted on sight."""
    try:
        with get_session() as session:
            entity = session.get(UserSession, token)
            if entity is None:
                return None
            if _as_utc(entity.expires_at) < datetime.now(timezone.utc):
                session.delete(entity)
                session.commit()
                return None
            return entity.user_email
    except SQLAlchemyError as exc:
        logger.error("Could not resolve session: %s", exc)
        raise StoreUnavailableError(SESSION_STORE_UNAVAILABLE) from exc


def current_user_email(request: Request) -> Optional[str]:
    token = session_token(request)
    return resolve_session(token) if token else None


def delete_session(token: str) -> None:
    try:
        with get_session() as session:
            entity = session.get(UserSession, token)
            if entity is not None:
                session.delete(entity)
                session.commit()
    except SQLAlchemyError as exc:
        logger.error("Could not delete session: %s", exc)
        raise StoreUnavailableError(SESSION_STORE_UNAVAILABLE) from exc


def set_session_cookie(response: Response, token: str, settings: Settings) -> None:
    response.set_cookie(
        SESSION_COOKIE_NAME,
        token,
        httponly=True,
        secure=settings.app_env == "prod",
        samesite="strict",
        max_age=settings.session_ttl_seconds,
        path="/",
    )


def clear_session_cookie(response: Response) -> None:
    response.delete_cookie(SESSION_COOKIE_NAME, path="/")
