"""
In-memory registry of short-lived verification codes.

Two independent keyed maps are kept, one per purpose, so a registration
code can never be replayed as a password reset code (and vice versa).
Entries are immutable and replaced whole; writers for the same e-mail
serialise on one of a fixed set of striped locks.
"""
from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
import secrets
import threading
import time
from typing import Callable, Dict, Optional
import zlib

from garage_auth.domain.credentials import SignupRequest

DEFAULT_TTL_SECONDS = 300
CODE_DIGITS = 6


class Purpose(str, Enum):
    REGISTRATION = "registration"
    PASSWORD_RESET = "password_reset"


@dataclass(frozen=True)
class CodeEntry:
    code: str
    issued_at: float
    pending: Optional[SignupRequest] = None


def random_code() -> str:
    """Uniformly random, zero-padded 6-digit code."""
    return f"{secrets.randbelow(10 ** CODE_DIGITS):0{CODE_DIGITS}d}"


class VerificationCodeRegistry:
    """Issues and validates codes for signup approval and password resets."""

    def __init__(
        self,
        ttl_seconds: int = DEFAULT_TTL_SECONDS,
        *,
        clock: Callable[[], float] = time.time,
        code_factory: Callable[[], str] = random_code,
        stripes: int = 16,
    ) -> None:
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be positive")
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._code_factory = code_factory
        self._entries: Dict[Purpose, Dict[str, CodeEntry]] = {purpose: {} for purpose in Purpose}
        self._locks = [threading.Lock() for _ in range(max(1, stripes))]

    # -------------------------------------- helpers --------------------------------------
    def _lock_for(self, email: str) -> threading.Lock:
        return self._locks[zlib.crc32(email.encode("utf-8")) % len(self._locks)]

    def _expired(self, entry: CodeEntry, now: float) -> bool:
        return (now - entry.issued_at) >= self.ttl_seconds

    def _issue(self, purpose: Purpose, email: str, pending: Optional[SignupRequest]) -> str:
        code = self._code_factory()
        with self._lock_for(email):
            self._entries[purpose][email] = CodeEntry(code=code, issued_at=self._clock(), pending=pending)
        return code

    def _matches(self, entry: Optional[CodeEntry], code: str, now: float) -> bool:
        if entry is None or not code:
            return False
        if not secrets.compare_digest(entry.code.encode("utf-8"), str(code).encode("utf-8")):
            return False
        return not self._expired(entry, now)

    def _remove(self, purpose: Purpose, email: str, code: Optional[str] = None) -> bool:
        entries = self._entries[purpose]
        with self._lock_for(email):
            entry = entries.get(email)
            if entry is None:
                return False
            # A newer code may have replaced the one the caller acted on.
            if code is not None and not secrets.compare_digest(
                entry.code.encode("utf-8"), str(code).encode("utf-8")
            ):
                return False
            del entries[email]
        return True

    # -------------------------------------- issuance --------------------------------------
    def issue_registration_code(self, email: str, pending: SignupRequest) -> str:
        """Stage ``pending`` under ``email`` with a fresh code, replacing any earlier request."""
        return self._issue(Purpose.REGISTRATION, email, pending)

    def issue_password_reset_code(self, email: str) -> str:
        return self._issue(Purpose.PASSWORD_RESET, email, None)

    # -------------------------------------- reads --------------------------------------
    def validate(self, purpose: Purpose, email: str, code: str) -> bool:
        """Return True when ``code`` is the live code for ``email``.

        Never mutates the registry, so callers may check again before
        acting on the entry.
        """
        return self._matches(self._entries[purpose].get(email), code, self._clock())

    def get_pending_registration(self, email: str) -> Optional[SignupRequest]:
        entry = self._entries[Purpose.REGISTRATION].get(email)
        return entry.pending if entry else None

    def pending_if_valid(self, email: str, code: str) -> Optional[SignupRequest]:
        """Staged profile for ``email`` when ``code`` is its live code, else None.

        Code and profile come from the same entry, so a request that
        restages the address in between cannot swap the profile.
        """
        entry = self._entries[Purpose.REGISTRATION].get(email)
        if not self._matches(entry, code, self._clock()):
            return None
        return entry.pending

    # -------------------------------------- mutation --------------------------------------
    def update_pending_profile(
        self,
        email: str,
        pending: SignupRequest,
        *,
        code: Optional[str] = None,
        restart_clock: bool = False,
    ) -> bool:
        """Swap the staged profile of a pending registration.

        The code is always kept. Issuance time is kept too unless
        ``restart_clock`` is set. When ``code`` is given it must be the
        live code of the entry. Returns False when nothing was swapped.
        """
        registrations = self._entries[Purpose.REGISTRATION]
        with self._lock_for(email):
            entry = registrations.get(email)
            if entry is None:
                return False
            if code is not None and not self._matches(entry, code, self._clock()):
                return False
            issued_at = self._clock() if restart_clock else entry.issued_at
            registrations[email] = replace(entry, pending=pending, issued_at=issued_at)
        return True

    def remove_registration(self, email: str, code: Optional[str] = None) -> bool:
        """Drop the pending registration; with ``code``, only if it is still the current one."""
        return self._remove(Purpose.REGISTRATION, email, code)

    def remove_password_reset(self, email: str, code: Optional[str] = None) -> bool:
        return self._remove(Purpose.PASSWORD_RESET, email, code)

    def purge_expired(self) -> int:
        """Drop lapsed entries of both purposes; returns how many were removed."""
        now = self._clock()
        removed = 0
        for entries in self._entries.values():
            for email, entry in list(entries.items()):
                if not self._expired(entry, now):
                    continue
                with self._lock_for(email):
                    # Re-read under the lock: a newer code may have replaced it.
                    current = entries.get(email)
                    if current is not None and self._expired(current, now):
                        del entries[email]
                        removed += 1
        return removed

    def clear(self) -> None:
        for entries in self._entries.values():
            entries.clear()

    def __len__(self) -> int:
        return sum(len(entries) for entries in self._entries.values())
