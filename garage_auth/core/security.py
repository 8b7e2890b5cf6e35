"""Security helpers (hashing and verification)."""

from __future__ import annotations

from argon2 import PasswordHasher as _Argon2, exceptions as argon_exc

_PREFIX = "argon2$"


class PasswordHasher:
    """Salted one-way hashing backed by Argon2id.

    Digests are stored with an ``argon2$`` prefix so the scheme can be
    detected without parsing the encoded parameters.
    """

    def __init__(self, *, time_cost: int | None = None, memory_cost: int | None = None, parallelism: int | None = None):
        params = {}
        if time_cost is not None:
            params["time_cost"] = time_cost
        if memory_cost is not None:
            params["memory_cost"] = memory_cost
        if parallelism is not None:
            params["parallelism"] = parallelism
        self._ph = _Argon2(**params)

    def hash(self, password: str) -> str:
        """Create a modern Argon2 hash with a prefix for detection."""
        hashed = self._ph.hash(password)
        return f"{_PREFIX}{hashed}"

    def verify(self, password: str, stored_hash: str | None) -> bool:
        stored = stored_hash or ""
        if not stored.startswith(_PREFIX):
            return False
        hashed = stored[len(_PREFIX) :]
        try:
            return self._ph.verify(hashed, password)
        except (argon_exc.VerifyMismatchError, argon_exc.VerificationError, argon_exc.InvalidHashError):
            return False
