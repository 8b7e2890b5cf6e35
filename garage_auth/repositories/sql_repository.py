"""High-level data access helpers backed by SQLAlchemy."""
from __future__ import annotations

from datetime import datetime, timezone
import logging
from typing import Callable, ContextManager, Optional

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from garage_auth.core.errors import ConflictError, NotFoundError, StoreUnavailableError
from garage_auth.db.models import User
from garage_auth.db.session import get_session
from garage_auth.domain.credentials import Credential, normalize_email

logger = logging.getLogger(__name__)

SessionFactory = Callable[[], ContextManager[Session]]


def _to_credential(user: User) -> Credential:
    return Credential(
        email=user.email,
        password_hash=user.password_hash,
        name=user.name or "",
        last_name=user.last_name or "",
        phone=user.phone or "",
        address=user.address or "",
        registered_at=user.registered_at,
    )


class CredentialRepository:
    """Keyed-by-email store of persisted identities."""

    def __init__(self, session_factory: SessionFactory = get_session) -> None:
        self._session_factory = session_factory

    def exists(self, email: str) -> bool:
        key = normalize_email(email)
        if not key:
            return False
        try:
            with self._session_factory() as session:
                stmt = select(User.email).where(User.email == key).limit(1)
                return session.execute(stmt).first() is not None
        except SQLAlchemyError as exc:
            raise StoreUnavailableError("Credential store is unavailable") from exc

    def find(self, email: str) -> Optional[Credential]:
        key = normalize_email(email)
        if not key:
            return None
        try:
            with self._session_factory() as session:
                user = session.get(User, key)
                return _to_credential(user) if user else None
        except SQLAlchemyError as exc:
            raise StoreUnavailableError("Credential store is unavailable") from exc

    def create(self, credential: Credential) -> Credential:
        """Persist a new identity; raises ConflictError when the e-mail is taken."""
        now = datetime.now(timezone.utc)
        key = normalize_email(credential.email)
        try:
            with self._session_factory() as session:
                if session.get(User, key) is not None:
                    raise ConflictError("Email already registered")
                user = User(
                    email=key,
                    password_hash=credential.password_hash,
                    name=credential.name,
                    last_name=credential.last_name,
                    phone=credential.phone,
                    address=credential.address,
                    registered_at=credential.registered_at or now,
                    updated_at=now,
                )
                session.add(user)
                try:
                    session.commit()
                except IntegrityError as exc:
                    # Lost the race against a concurrent insert of the same key.
                    session.rollback()
                    raise ConflictError("Email already registered") from exc
                session.refresh(user)
                return _to_credential(user)
        except SQLAlchemyError as exc:
            logger.error("Failed to create credential for %s: %s", key, exc)
            raise StoreUnavailableError("Credential store is unavailable") from exc

    def update_password_hash(self, email: str, password_hash: str) -> None:
        key = normalize_email(email)
        try:
            with self._session_factory() as session:
                stmt = (
                    update(User)
                    .where(User.email == key)
                    .values(password_hash=password_hash, updated_at=datetime.now(timezone.utc))
                )
                result = session.execute(stmt)
                if not result.rowcount:
                    session.rollback()
                    raise NotFoundError("User not found")
                session.commit()
        except SQLAlchemyError as exc:
            raise StoreUnavailableError("Credential store is unavailable") from exc
