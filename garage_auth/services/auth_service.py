"""
Authentication and identity related use cases.

Signup is gated by an administrator: the applicant's profile is staged in
memory and the verification code is mailed to the admin address, never to
the applicant. Password resets send their code to the account's own
address.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
import logging
import math
import time
from typing import Callable, Optional, Protocol

from garage_auth.core.errors import (
    ConflictError,
    InvalidCodeError,
    InvalidRequestError,
    NotFoundError,
    UnauthorizedError,
)
from garage_auth.core.mailer import NotificationGateway
from garage_auth.core.security import PasswordHasher
from garage_auth.domain.credentials import Credential, SignupRequest, normalize_email
from garage_auth.services.verification_codes import Purpose, VerificationCodeRegistry

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "Invalid credentials"
INVALID_CODE = "Invalid or expired code"


class CredentialStore(Protocol):
    def exists(self, email: str) -> bool: ...

    def find(self, email: str) -> Optional[Credential]: ...

    def create(self, credential: Credential) -> Credential: ...

    def update_password_hash(self, email: str, password_hash: str) -> None: ...


@dataclass
class SignupRequested:
    email: str
    notified: str


@dataclass
class ResetRequested:
    email: str


class AuthService:
    """Handles signup approval, login and password reset flows."""

    def __init__(
        self,
        *,
        store: CredentialStore,
        codes: VerificationCodeRegistry,
        hasher: PasswordHasher,
        notifier: NotificationGateway,
        admin_email: str,
        clock: Callable[[], float] = time.time,
    ) -> None:
        admin = normalize_email(admin_email)
        if not admin:
            raise ValueError("admin_email is required to approve signups")
        self.store = store
        self.codes = codes
        self.hasher = hasher
        self.notifier = notifier
        self.admin_email = admin
        self._clock = clock

    # -------------------------------------- helpers --------------------------------------
    def _now(self) -> datetime:
        return datetime.fromtimestamp(self._clock(), tz=timezone.utc)

    def _ttl_text(self) -> str:
        seconds = self.codes.ttl_seconds
        if seconds < 60:
            return f"{seconds} second{'s' if seconds != 1 else ''}"
        minutes = math.ceil(seconds / 60)
        return f"{minutes} minute{'s' if minutes != 1 else ''}"

    def _signup_email_body(self, request: SignupRequest, code: str) -> str:
        full_name = " ".join(part for part in (request.name, request.last_name) if part) or "(no name given)"
        return (
            "A new user asked for an account.\n\n"
            f"Email: {request.email}\n"
            f"Name: {full_name}\n"
            f"Phone: {request.phone or '-'}\n\n"
            f"Verification code: {code}\n"
            f"The code expires in {self._ttl_text()}."
        )

    # -------------------------------------- signup --------------------------------------
    def request_signup(self, profile: SignupRequest) -> SignupRequested:
        request = profile.normalized()
        if not request.email:
            raise InvalidRequestError("Email is required")
        if not request.password:
            raise InvalidRequestError("Password is required")
        if self.store.exists(request.email):
            raise ConflictError("Email already registered")
        code = self.codes.issue_registration_code(request.email, request)
        self.notifier.send(
            self.admin_email,
            "New user verification",
            self._signup_email_body(request, code),
        )
        logger.info("Signup requested for %s; approval code sent to administrator", request.email)
        return SignupRequested(email=request.email, notified=self.admin_email)

    def amend_signup(self, profile: SignupRequest, code: str) -> None:
        """Replace the staged profile of a pending signup, keeping its code and expiry.

        Requires the live code. The administrator is mailed the new profile.
        """
        request = profile.normalized()
        if not request.password:
            raise InvalidRequestError("Password is required")
        if not self.codes.update_pending_profile(request.email, request, code=code):
            if self.codes.get_pending_registration(request.email) is None:
                raise NotFoundError("No pending registration for this email")
            logger.info("Restage rejected for %s: invalid code", request.email)
            raise InvalidCodeError(INVALID_CODE)
        self.notifier.send(
            self.admin_email,
            "Updated user verification",
            self._signup_email_body(request, code),
        )
        logger.info("Pending signup for %s restaged", request.email)

    def verify_signup(self, email: str, code: str) -> Credential:
        key = normalize_email(email)
        pending = self.codes.pending_if_valid(key, code)
        if pending is None:
            raise InvalidCodeError(INVALID_CODE)
        credential = Credential.from_signup(pending, self.hasher.hash(pending.password), self._now())
        try:
            created = self.store.create(credential)
        except ConflictError:
            # Someone already promoted this signup; the staged copy is stale.
            self.codes.remove_registration(key, code)
            logger.info("Duplicate verification for %s rejected", key)
            raise
        self.codes.remove_registration(key, code)
        logger.info("Account created for %s", key)
        return created

    # -------------------------------------- login --------------------------------------
    def login(self, email: str, password: str) -> Credential:
        key = normalize_email(email)
        credential = self.store.find(key) if key else None
        if credential is None:
            logger.info("Login rejected for %s: user not found", key)
            raise UnauthorizedError(INVALID_CREDENTIALS, cause="user_not_found")
        if not self.hasher.verify(password or "", credential.password_hash):
            logger.info("Login rejected for %s: bad password", key)
            raise UnauthorizedError(INVALID_CREDENTIALS, cause="bad_password")
        return credential

    # -------------------------------------- password reset --------------------------------------
    def request_password_reset(self, email: str) -> ResetRequested:
        key = normalize_email(email)
        if not key or not self.store.exists(key):
            raise NotFoundError("Email not found")
        code = self.codes.issue_password_reset_code(key)
        self.notifier.send(
            key,
            "Password recovery",
            f"Your recovery code is: {code}\nThe code expires in {self._ttl_text()}.",
        )
        logger.info("Password reset code sent to %s", key)
        return ResetRequested(email=key)

    def reset_password(self, email: str, code: str, new_password: str) -> None:
        key = normalize_email(email)
        if not self.codes.validate(Purpose.PASSWORD_RESET, key, code):
            raise InvalidCodeError(INVALID_CODE)
        if not new_password:
            raise InvalidRequestError("New password is required")
        self.store.update_password_hash(key, self.hasher.hash(new_password))
        self.codes.remove_password_reset(key, code)
        logger.info("Password updated for %s", key)
