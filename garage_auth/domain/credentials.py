"""Domain records for identities and staged signups."""
from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime


def normalize_email(value: str | None) -> str:
    """Return the canonical key form of an e-mail address."""
    return (value or "").strip().lower()


@dataclass(frozen=True)
class SignupRequest:
    """Profile submitted by an applicant, held in memory until an admin approves it."""

    email: str
    password: str = field(repr=False)
    name: str = ""
    last_name: str = ""
    phone: str = ""
    address: str = ""

    def normalized(self) -> "SignupRequest":
        return replace(self, email=normalize_email(self.email))


@dataclass(frozen=True)
class Credential:
    email: str
    password_hash: str = field(repr=False)
    name: str = ""
    last_name: str = ""
    phone: str = ""
    address: str = ""
    registered_at: datetime | None = None

    @classmethod
    def from_signup(cls, request: SignupRequest, password_hash: str, registered_at: datetime) -> "Credential":
        return cls(
            email=normalize_email(request.email),
            password_hash=password_hash,
            name=request.name,
            last_name=request.last_name,
            phone=request.phone,
            address=request.address,
            registered_at=registered_at,
        )
