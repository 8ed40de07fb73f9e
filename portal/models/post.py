"""Social posts with audience tags, reactions and comments."""
from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, computed_field, field_validator, model_validator

from portal.models.base import Document, new_id, utcnow


class Visibility(str, Enum):
    PUBLIC = "public"
    STUDENTS = "students"
    CLASS = "class"
    PRIVATE = "private"


class Poster(BaseModel):
    """Identity snapshot captured at creation time, not a live reference."""
    id: str
    email: Optional[str] = None
    name: str = "Anonymous"
    avatar: Optional[str] = None
    role: Optional[str] = None

    @property
    def identifiers(self) -> set[str]:
        return {i for i in (self.id, self.email) if i}


class Comment(BaseModel):
    text: str
    author: str
    timestamp: datetime = Field(default_factory=utcnow)

    @field_validator("text")
    @classmethod
    def _text_required(cls, value: str) -> str:
        if not (value or "").strip():
            raise ValueError("Comment text is required")
        return value


def _unique(values: list[str]) -> list[str]:
    seen: set[str] = set()
    result: list[str] = []
    for value in values:
        if value not in seen:
            seen.add(value)
            result.append(value)
    return result


class Post(Document):
    collection = "posts"

    id: str = Field(default_factory=lambda: new_id("p"))
    title: str = ""
    description: str = ""
    timestamp: datetime = Field(default_factory=utcnow)
    updated_at: Optional[datetime] = None
    poster: Poster = Field(default_factory=lambda: Poster(id="anon"))
    image: Optional[str] = None
    video: Optional[str] = None
    visibility: Visibility = Visibility.PUBLIC
    target_class: Optional[str] = None
    is_pinned: bool = False
    liked_by: list[str] = Field(default_factory=list)
    favorited_by: list[str] = Field(default_factory=list)
    comments: list[Comment] = Field(default_factory=list)

    @field_validator("liked_by", "favorited_by")
    @classmethod
    def _dedupe_actors(cls, value: list[str]) -> list[str]:
        return _unique(value)

    @model_validator(mode="after")
    def _validate_content(self):
        if not self.title.strip() and not self.description.strip():
            raise ValueError("Either title or description is required")
        if self.visibility == Visibility.CLASS:
            if not (self.target_class or "").strip():
                raise ValueError("target_class is required when visibility is 'class'")
        elif self.target_class is not None:
            self.target_class = None
        return self

    # Counts are derived from the actor sets so they can never drift.
    @computed_field
    @property
    def likes(self) -> int:
        return len(self.liked_by)

    @computed_field
    @property
    def favorites(self) -> int:
        return len(self.favorited_by)


class PostCreate(BaseModel):
    title: str = ""
    description: str = ""
    image: Optional[str] = None
    video: Optional[str] = None
    visibility: Visibility = Visibility.PUBLIC
    target_class: Optional[str] = None
    is_pinned: bool = False


class PostUpdate(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    image: Optional[str] = None
    video: Optional[str] = None
    visibility: Optional[Visibility] = None
    target_class: Optional[str] = None
    is_pinned: Optional[bool] = None


class CommentCreate(BaseModel):
    text: str
