"""Entity documents and request schemas."""
from portal.models.user import User, UserRole, UserCreate, UserUpdate, UserOut
from portal.models.school_class import SchoolClass, ClassCreate, ClassUpdate, DEFAULT_CAPACITY
from portal.models.post import Post, Poster, Comment, Visibility, PostCreate, PostUpdate, CommentCreate
from portal.models.assignment import (
    Assignment,
    Submission,
    AssignmentCreate,
    AssignmentUpdate,
    SubmissionCreate,
    GradeRequest,
)
from portal.models.session import Session

__all__ = [
    "User",
    "UserRole",
    "UserCreate",
    "UserUpdate",
    "UserOut",
    "SchoolClass",
    "ClassCreate",
    "ClassUpdate",
    "DEFAULT_CAPACITY",
    "Post",
    "Poster",
    "Comment",
    "Visibility",
    "PostCreate",
    "PostUpdate",
    "CommentCreate",
    "Assignment",
    "Submission",
    "AssignmentCreate",
    "AssignmentUpdate",
    "SubmissionCreate",
    "GradeRequest",
    "Session",
]
