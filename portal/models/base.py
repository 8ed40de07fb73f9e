"""Shared helpers for entity documents."""
from datetime import datetime, timezone
from typing import ClassVar
import uuid

from pydantic import BaseModel, ConfigDict


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_id(prefix: str) -> str:
    return f"{prefix}{uuid.uuid4().hex[:12]}"


class Document(BaseModel):
    """Stored entity. `collection` names the persistence key, `key_field` the primary key."""

    model_config = ConfigDict(extra="ignore")

    collection: ClassVar[str] = ""
    key_field: ClassVar[str] = "id"

    @property
    def key(self) -> str:
        return getattr(self, self.key_field)
