"""Users: Admins, Teachers, Students."""
from datetime import datetime
from enum import Enum
from typing import Optional
import re

from pydantic import BaseModel, Field, field_validator

from portal.models.base import Document, new_id, utcnow

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


class UserRole(str, Enum):
    ADMIN = "admin"
    TEACHER = "teacher"
    STUDENT = "student"


class User(Document):
    """Identity record. `email` is the unique, case-sensitive key."""

    collection = "all_users"
    key_field = "email"

    id: str = Field(default_factory=lambda: new_id("user_"))
    email: str
    name: str
    role: UserRole
    # Opaque string, compared by equality only.
    password: str = ""
    school_name: str = ""
    phone: str = ""
    dob: Optional[str] = None
    profile_image: Optional[str] = None
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    @field_validator("email")
    @classmethod
    def _email_format(cls, value: str) -> str:
        if not EMAIL_RE.match(value or ""):
            raise ValueError("Invalid email format")
        return value

    @field_validator("name")
    @classmethod
    def _name_required(cls, value: str) -> str:
        if not (value or "").strip():
            raise ValueError("Name is required")
        return value

    @property
    def identifiers(self) -> set[str]:
        """Both reference forms that occur in stored data (email and generated id)."""
        return {self.email, self.id}


class UserCreate(BaseModel):
    email: str
    name: str
    role: UserRole
    password: str
    confirm_password: Optional[str] = None
    school_name: str = ""
    phone: str = ""
    dob: Optional[str] = None
    profile_image: Optional[str] = None


class UserUpdate(BaseModel):
    """All fields optional for PATCH; role is fixed at creation."""
    email: Optional[str] = None
    name: Optional[str] = None
    school_name: Optional[str] = None
    phone: Optional[str] = None
    dob: Optional[str] = None
    profile_image: Optional[str] = None


class UserOut(BaseModel):
    id: str
    email: str
    name: str
    role: UserRole
    school_name: str = ""
    phone: str = ""
    dob: Optional[str] = None
    profile_image: Optional[str] = None

    @classmethod
    def from_user(cls, user: User) -> "UserOut":
        return cls.model_validate(user.model_dump(exclude={"password"}))
