from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from portal.models.base import Document, new_id, utcnow


class Submission(BaseModel):
    student_id: str
    content: str = ""
    attachment: Optional[str] = None
    submitted_at: datetime = Field(default_factory=utcnow)
    score: Optional[float] = None
    feedback: Optional[str] = None
    graded_at: Optional[datetime] = None


class Assignment(Document):
    """Assignment for one class; at most one submission per student."""

    collection = "assignments"

    id: str = Field(default_factory=lambda: new_id("a"))
    class_id: str
    title: str
    description: str = ""
    due_date: date
    points: int = 100
    created_by: Optional[str] = None
    # Keyed by student id: a later submission replaces the earlier one.
    submissions: dict[str, Submission] = Field(default_factory=dict)
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    @field_validator("title")
    @classmethod
    def _title_required(cls, value: str) -> str:
        if not (value or "").strip():
            raise ValueError("Title is required")
        return value

    @field_validator("points")
    @classmethod
    def _points_positive(cls, value: int) -> int:
        if value <= 0:
            raise ValueError("Points must be positive")
        return value

    def is_overdue(self, today: date | None = None) -> bool:
        return self.due_date < (today or date.today())


class AssignmentCreate(BaseModel):
    class_id: str = ""
    title: str = ""
    description: str = ""
    due_date: Optional[str] = None
    points: int = 100


class AssignmentUpdate(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    due_date: Optional[date] = None
    points: Optional[int] = None


class SubmissionCreate(BaseModel):
    content: str = ""
    attachment: Optional[str] = None


class GradeRequest(BaseModel):
    score: float
    feedback: Optional[str] = None
