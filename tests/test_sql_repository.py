"""
Smoke tests for the CredentialRepository against a temporary SQLite database.
"""
from __future__ import annotations

from contextlib import contextmanager
from datetime import datetime, timezone

import pytest
from sqlalchemy.exc import OperationalError

from garage_auth.core.errors import ConflictError, NotFoundError, StoreUnavailableError
from garage_auth.domain.credentials import Credential
from garage_auth.repositories.sql_repository import CredentialRepository


def _credential(email: str = "alice@example.com", password_hash: str = "argon2$hash") -> Credential:
    return Credential(
        email=email,
        password_hash=password_hash,
        name="Alice",
        last_name="Doe",
        phone="555-0100",
        address="1 Main St",
        registered_at=datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc),
    )


def test_create_find_and_exists(store):
    assert store.exists("alice@example.com") is False
    assert store.find("alice@example.com") is None

    created = store.create(_credential())

    assert created.email == "alice@example.com"
    assert store.exists("alice@example.com") is True
    assert store.exists("  ALICE@example.com ") is True
    found = store.find("alice@example.com")
    assert found is not None
    assert found.name == "Alice"
    assert found.last_name == "Doe"
    assert found.password_hash == "argon2$hash"
    assert found.registered_at is not None


def test_create_normalizes_email(store):
    store.create(_credential(email=" Bob@Example.COM "))
    assert store.find("bob@example.com") is not None


def test_create_duplicate_email_conflicts(store):
    store.create(_credential())
    with pytest.raises(ConflictError):
        store.create(_credential(password_hash="argon2$other"))
    assert store.find("alice@example.com").password_hash == "argon2$hash"


def test_update_password_hash(store):
    store.create(_credential())
    store.update_password_hash("alice@example.com", "argon2$new")
    assert store.find("alice@example.com").password_hash == "argon2$new"


def test_update_password_hash_for_missing_user(store):
    with pytest.raises(NotFoundError):
        store.update_password_hash("ghost@example.com", "argon2$new")


def test_blank_email_is_never_found(store):
    assert store.exists("") is False
    assert store.find("   ") is None


def test_database_errors_surface_as_store_unavailable():
    @contextmanager
    def broken_session():
        raise OperationalError("SELECT 1", {}, Exception("database is locked"))
        yield  # pragma: no cover

    repo = CredentialRepository(session_factory=broken_session)
    with pytest.raises(StoreUnavailableError):
        repo.exists("alice@example.com")
    with pytest.raises(StoreUnavailableError):
        repo.create(_credential())
