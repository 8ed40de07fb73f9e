from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, PositiveInt, computed_field, field_validator, model_validator

from portal.models.base import Document, new_id, utcnow

DEFAULT_CAPACITY = 30


class SchoolClass(Document):
    """Course section with a capacity-bounded student roster."""

    collection = "classes"

    id: str = Field(default_factory=lambda: new_id("c"))
    class_name: str
    subject: str = ""
    section: str = ""
    schedule: str = ""
    description: str = ""
    # None = unassigned
    teacher_id: Optional[str] = None
    student_list: list[str] = Field(default_factory=list)
    capacity: PositiveInt = DEFAULT_CAPACITY
    created_by: Optional[str] = None
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    @field_validator("class_name")
    @classmethod
    def _name_required(cls, value: str) -> str:
        if not (value or "").strip():
            raise ValueError("Class name is required")
        return value

    @field_validator("teacher_id")
    @classmethod
    def _blank_teacher_is_unassigned(cls, value: Optional[str]) -> Optional[str]:
        return (value or "").strip() or None

    @field_validator("student_list")
    @classmethod
    def _no_duplicates(cls, value: list[str]) -> list[str]:
        if len(set(value)) != len(value):
            raise ValueError("Duplicate student in class roster")
        return value

    @model_validator(mode="after")
    def _within_capacity(self):
        if len(self.student_list) > self.capacity:
            raise ValueError(f"Class capacity is {self.capacity} students")
        return self

    @computed_field
    @property
    def total_students(self) -> int:
        return len(self.student_list)

    @property
    def is_published(self) -> bool:
        return self.teacher_id is not None

    @property
    def seats_left(self) -> int:
        return self.capacity - len(self.student_list)


class ClassCreate(BaseModel):
    class_name: str = ""
    subject: str = ""
    section: str = ""
    schedule: str = ""
    description: str = ""
    teacher_id: Optional[str] = None
    student_list: list[str] = Field(default_factory=list)
    capacity: int = DEFAULT_CAPACITY


class ClassUpdate(BaseModel):
    class_name: Optional[str] = None
    subject: Optional[str] = None
    section: Optional[str] = None
    schedule: Optional[str] = None
    description: Optional[str] = None
    teacher_id: Optional[str] = None
    student_list: Optional[list[str]] = None
    capacity: Optional[int] = None
