"""Field-level checks for registration and sign-in. Results, not exceptions."""
from __future__ import annotations

from datetime import date, datetime
import html
import re
from typing import Any, Optional

from pydantic import BaseModel, Field

from portal.models.user import EMAIL_RE, UserRole

PHONE_RE = re.compile(r"^[\d\s\-+()]+$")
LETTER_RE = re.compile(r"[A-Za-z]")
MIN_PASSWORD_LENGTH = 6


class FieldCheck(BaseModel):
    field: str
    is_valid: bool
    errors: list[str] = Field(default_factory=list)
    message: str = ""


class ValidationReport(BaseModel):
    is_valid: bool
    errors: list[str] = Field(default_factory=list)
    checks: list[FieldCheck] = Field(default_factory=list)
    message: str = ""


def _check(field: str, errors: list[str], ok_message: str) -> FieldCheck:
    return FieldCheck(
        field=field,
        is_valid=not errors,
        errors=errors,
        message=ok_message if not errors else ", ".join(errors),
    )


def validate_email(email: Optional[str]) -> FieldCheck:
    errors = [] if EMAIL_RE.match(email or "") else ["Invalid email format"]
    return _check("email", errors, "Valid email")


def validate_password(password: Optional[str]) -> FieldCheck:
    errors = []
    if not password or len(password) < MIN_PASSWORD_LENGTH:
        errors.append(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")
    if password and not LETTER_RE.search(password):
        errors.append("Password must contain at least one letter")
    return _check("password", errors, "Valid password")


def validate_password_match(password: Optional[str], confirm_password: Optional[str]) -> FieldCheck:
    errors = [] if password == confirm_password else ["Passwords do not match"]
    return _check("confirm_password", errors, "Passwords match")


def validate_name(name: Optional[str]) -> FieldCheck:
    errors = [] if (name or "").strip() else ["Name is required"]
    return _check("name", errors, "Valid name")


def validate_phone(phone: Optional[str]) -> FieldCheck:
    # Optional field
    ok = not (phone or "").strip() or bool(PHONE_RE.match(phone))
    return _check("phone", [] if ok else ["Invalid phone number format"], "Valid phone number")


def validate_dob(dob: Optional[str], today: Optional[date] = None) -> FieldCheck:
    if not dob:
        return _check("dob", [], "Date of birth is optional")
    try:
        born = datetime.fromisoformat(dob).date()
    except ValueError:
        return _check("dob", ["Invalid date of birth"], "")
    age = (today or date.today()).year - born.year
    errors = [] if 0 <= age <= 150 else ["Invalid date of birth"]
    return _check("dob", errors, "Valid date of birth")


def validate_role(role: Any) -> FieldCheck:
    valid = [r.value for r in UserRole]
    value = role.value if isinstance(role, UserRole) else role
    errors = [] if value in valid else [f"Role must be one of: {', '.join(valid)}"]
    return _check("role", errors, "Valid role")


def _report(checks: list[FieldCheck], ok_message: str, failed_message: str) -> ValidationReport:
    errors = [e for c in checks if not c.is_valid for e in c.errors]
    return ValidationReport(
        is_valid=not errors,
        errors=errors,
        checks=checks,
        message=ok_message if not errors else failed_message.format(errors="; ".join(errors)),
    )


def validate_registration_data(data: dict[str, Any]) -> ValidationReport:
    checks = [
        validate_name(data.get("name")),
        validate_email(data.get("email")),
        validate_password(data.get("password")),
        validate_role(data.get("role")),
        validate_phone(data.get("phone")),
        validate_dob(data.get("dob")),
    ]
    if data.get("confirm_password"):
        checks.append(validate_password_match(data.get("password"), data.get("confirm_password")))
    return _report(checks, "All validations passed", "Validation failed: {errors}")


def validate_login_credentials(email: str, password: str, role: Any) -> ValidationReport:
    checks = [validate_email(email), validate_password(password), validate_role(role)]
    return _report(checks, "Credentials are valid", "Invalid credentials format")


def sanitize_input(value: Any) -> Any:
    if not isinstance(value, str):
        return value
    return html.escape(value, quote=True).replace("/", "&#x2F;")
