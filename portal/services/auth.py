"""Sign-in and registration. Failures come back as AuthResult objects."""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
import logging
from typing import Any, Callable, Optional

from pydantic import BaseModel, Field

from portal.errors import ValidationError
from portal.models.base import utcnow
from portal.models.user import User, UserCreate, UserOut, UserRole
from portal.rbac import permissions_for, redirect_path
from portal.services import validation
from portal.stores.users import UsersStore

logger = logging.getLogger(__name__)

# Free-text fields that are HTML-escaped before storage.
SANITIZED_FIELDS = ("name", "school_name", "phone")


def sanitize_profile(record: dict[str, Any]) -> dict[str, Any]:
    return {k: validation.sanitize_input(v) if k in SANITIZED_FIELDS else v for k, v in record.items()}


class AuthResult(BaseModel):
    success: bool
    message: str
    error: Optional[str] = None
    errors: list[str] = Field(default_factory=list)
    user: Optional[UserOut] = None
    redirect_to: Optional[str] = None
    permissions: list[str] = Field(default_factory=list)
    locked: bool = False

    @classmethod
    def failure(cls, message: str, error: str, errors: list[str] | None = None, **extra) -> "AuthResult":
        return cls(success=False, message=message, error=error, errors=errors or [message], **extra)

    @classmethod
    def signed_in(cls, user: User, message: str) -> "AuthResult":
        return cls(
            success=True,
            message=message,
            user=UserOut.from_user(user),
            redirect_to=redirect_path(user.role),
            permissions=permissions_for(user.role),
        )


@dataclass
class _Attempts:
    count: int = 0
    last_attempt: Optional[datetime] = None


class AuthenticationService:
    def __init__(
        self,
        users: UsersStore,
        max_attempts: int = 5,
        lockout_minutes: int = 15,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.users = users
        self.max_attempts = max_attempts
        self.lockout = timedelta(minutes=lockout_minutes)
        self._clock = clock
        self._attempts: dict[str, _Attempts] = {}

    def _lockout_remaining(self, email: str) -> Optional[timedelta]:
        attempts = self._attempts.get(email)
        if not attempts or attempts.count < self.max_attempts:
            return None
        elapsed = self._clock() - attempts.last_attempt
        if elapsed >= self.lockout:
            self._attempts.pop(email, None)
            return None
        return self.lockout - elapsed

    def _record_failure(self, email: str) -> None:
        attempts = self._attempts.setdefault(email, _Attempts())
        attempts.count += 1
        attempts.last_attempt = self._clock()

    def remaining_attempts(self, email: str) -> int:
        attempts = self._attempts.get(email)
        return self.max_attempts - (attempts.count if attempts else 0)

    def authenticate(self, email: str, password: str, role: UserRole | str) -> AuthResult:
        report = validation.validate_login_credentials(email, password, role)
        if not report.is_valid:
            return AuthResult.failure("Invalid credentials format", "INVALID_FORMAT", report.errors)

        remaining = self._lockout_remaining(email)
        if remaining is not None:
            minutes = -(-int(remaining.total_seconds()) // 60)
            return AuthResult.failure(
                f"Too many failed attempts. Try again in {minutes} minutes.", "LOCKED", locked=True
            )

        user = self.users.find_by_email(email)
        if user is None:
            self._record_failure(email)
            return AuthResult.failure("User not found with this email", "USER_NOT_FOUND")

        role = UserRole(role)
        if user.role != role:
            self._record_failure(email)
            return AuthResult.failure(f"Account is not registered as {role.value}", "ROLE_MISMATCH")

        if user.password != password:
            self._record_failure(email)
            logger.info(f"Failed sign-in for {email}")
            return AuthResult.failure("Incorrect password", "INVALID_PASSWORD")

        self._attempts.pop(email, None)
        logger.info(f"{user.role.value} {email} signed in")
        return AuthResult.signed_in(user, f"{user.role.value.title()} {user.name} logged in successfully")

    def change_password(self, user_id: str, old_password: str, new_password: str) -> AuthResult:
        user = self.users.find_by_id(user_id)
        if user is None:
            return AuthResult.failure("User not found", "USER_NOT_FOUND")
        if user.password != old_password:
            return AuthResult.failure("Current password is incorrect", "INVALID_PASSWORD")
        return self._set_password(user, new_password)

    def reset_password(self, email: str, new_password: str) -> AuthResult:
        user = self.users.find_by_email(email)
        if user is None:
            return AuthResult.failure("User not found", "USER_NOT_FOUND")
        return self._set_password(user, new_password)

    def _set_password(self, user: User, new_password: str) -> AuthResult:
        check = validation.validate_password(new_password)
        if not check.is_valid:
            return AuthResult.failure("Password does not meet requirements", "INVALID_PASSWORD", check.errors)
        updated = self.users.update(user.email, {"password": new_password})
        return AuthResult(success=True, message="Password updated successfully", user=UserOut.from_user(updated))


class RegistrationService:
    def __init__(self, users: UsersStore):
        self.users = users

    def check_email_availability(self, email: str) -> dict[str, Any]:
        check = validation.validate_email(email)
        if not check.is_valid:
            return {"available": False, "message": check.message, "reason": "INVALID_FORMAT"}
        taken = self.users.find_by_email(email) is not None
        return {
            "available": not taken,
            "message": "Email is already registered" if taken else "Email is available",
            "reason": "DUPLICATE" if taken else None,
        }

    def register(self, data: UserCreate | dict[str, Any]) -> AuthResult:
        if isinstance(data, UserCreate):
            data = data.model_dump()
        report = validation.validate_registration_data(data)
        if not report.is_valid:
            return AuthResult.failure("Validation failed", "VALIDATION_FAILED", report.errors)

        if self.users.find_by_email(data["email"]):
            return AuthResult.failure("An account with this email already exists", "DUPLICATE_EMAIL")

        record = sanitize_profile({k: v for k, v in data.items() if k != "confirm_password" and v is not None})
        try:
            user = self.users.create(record)
        except ValidationError as e:
            return AuthResult.failure(e.message, "VALIDATION_FAILED", e.errors)

        logger.info(f"Registered {user.role.value} {user.email}")
        return AuthResult.signed_in(user, f"{user.role.value} account created successfully")

