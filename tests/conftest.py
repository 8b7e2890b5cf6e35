from __future__ import annotations

import sys
from pathlib import Path

import pytest

# Make the package importable when running the suite from a checkout
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from garage_auth.core import config as core_config  # noqa: E402
from garage_auth.core.errors import DeliveryError  # noqa: E402
from garage_auth.core.security import PasswordHasher  # noqa: E402
from garage_auth.db import models  # noqa: E402
from garage_auth.db import session as db_session  # noqa: E402
from garage_auth.repositories.sql_repository import CredentialRepository  # noqa: E402
from garage_auth.services.auth_service import AuthService  # noqa: E402
from garage_auth.services.verification_codes import VerificationCodeRegistry  # noqa: E402

ADMIN = "admin@garage.test"


class FakeClock:
    def __init__(self, start: float = 1_700_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class Outbox:
    """Collect notifications instead of sending them over SMTP."""

    def __init__(self) -> None:
        self.messages: list[tuple[str, str, str]] = []
        self.fail = False

    def send(self, to_address: str, subject: str, body: str) -> None:
        if self.fail:
            raise DeliveryError("Could not deliver the notification email")
        self.messages.append((to_address, subject, body))

    def last_to(self, address: str) -> tuple[str, str, str]:
        return [m for m in self.messages if m[0] == address][-1]


@pytest.fixture()
def temp_db(tmp_path, monkeypatch):
    """Point the app at a throwaway SQLite file and reset cached settings/engine around the test."""
    db_file = tmp_path / "test.db"
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{db_file}")
    monkeypatch.setenv("ADMIN_EMAIL", ADMIN)
    core_config.get_settings.cache_clear()
    db_session.reset_engine()

    engine = db_session.get_engine()
    models.Base.metadata.drop_all(bind=engine)
    models.Base.metadata.create_all(bind=engine)

    yield db_file

    models.Base.metadata.drop_all(bind=engine)
    db_session.reset_engine()
    core_config.get_settings.cache_clear()


@pytest.fixture()
def hasher() -> PasswordHasher:
    # Cheap parameters keep the suite fast; production uses argon2 defaults.
    return PasswordHasher(time_cost=1, memory_cost=1024, parallelism=1)


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def outbox() -> Outbox:
    return Outbox()


@pytest.fixture()
def codes(clock) -> VerificationCodeRegistry:
    return VerificationCodeRegistry(300, clock=clock)


@pytest.fixture()
def store(temp_db) -> CredentialRepository:
    return CredentialRepository()


@pytest.fixture()
def service(store, codes, hasher, outbox, clock) -> AuthService:
    return AuthService(store=store, codes=codes, hasher=hasher, notifier=outbox, admin_email=ADMIN, clock=clock)
