"""Concrete multi-step flows built on the workflow engine."""
from __future__ import annotations

from datetime import date
from typing import Any, Optional

from portal.models.assignment import Assignment
from portal.models.base import new_id
from portal.models.post import Post, Poster, Visibility
from portal.models.school_class import DEFAULT_CAPACITY, SchoolClass
from portal.models.user import User
from portal.services import validation
from portal.services.auth import AuthResult, RegistrationService
from portal.services.enrollment import EnrollmentService
from portal.services.workflow import WorkflowEngine, WorkflowStep, always
from portal.stores.assignments import AssignmentsStore
from portal.stores.classes import ClassesStore
from portal.stores.posts import PostsStore
from portal.stores.users import UsersStore

CLASS_FIELDS = ("class_name", "subject", "section", "schedule", "description", "teacher_id", "capacity")


def _filled(data: dict[str, Any], *keys: str) -> bool:
    return all(str(data.get(key) or "").strip() for key in keys)


# -- class creation / edit ------------------------------------------------

def _class_basic_info(data: dict[str, Any]) -> bool:
    return _filled(data, "class_name", "subject", "section", "schedule")


def _class_teacher(data: dict[str, Any]) -> bool:
    return _filled(data, "teacher_id")


def _class_students(data: dict[str, Any]) -> bool:
    roster = list(data.get("student_list") or [])
    capacity = int(data.get("capacity") or DEFAULT_CAPACITY)
    return capacity > 0 and len(set(roster)) == len(roster) and len(roster) <= capacity


CLASS_CREATION_STEPS = (
    WorkflowStep("Basic Info", _class_basic_info),
    WorkflowStep("Teacher", _class_teacher),
    WorkflowStep("Students", _class_students),
    WorkflowStep("Review", always),
)


def class_creation_flow(
    classes: ClassesStore,
    enrollment: EnrollmentService,
    created_by: Optional[str] = None,
    editing: Optional[SchoolClass] = None,
    default_capacity: int = DEFAULT_CAPACITY,
) -> WorkflowEngine:
    """Create a class, or edit `editing` when given. The roster goes through enrollment rules."""

    def commit(data: dict[str, Any]) -> SchoolClass:
        # Roster rules are checked before the single write.
        fields = {key: data[key] for key in CLASS_FIELDS if key in data}
        class_id = editing.id if editing is not None else new_id("c")
        fields["capacity"] = int(fields.get("capacity") or (editing.capacity if editing else default_capacity))
        fields["student_list"] = enrollment.check_roster(class_id, data.get("student_list") or [], fields["capacity"])
        if editing is not None:
            return classes.update(editing.id, fields)
        return classes.create({**fields, "id": class_id, "created_by": created_by})

    initial: dict[str, Any] = {"capacity": default_capacity, "student_list": []}
    if editing is not None:
        initial = {**editing.model_dump(include=set(CLASS_FIELDS)), "student_list": list(editing.student_list)}
    return WorkflowEngine(CLASS_CREATION_STEPS, commit, initial=initial, name="class-creation")


# -- registration ---------------------------------------------------------

def registration_flow(registration: RegistrationService) -> WorkflowEngine:
    def email_available(data: dict[str, Any]) -> bool:
        return registration.check_email_availability(data.get("email") or "")["available"]

    def password_ok(data: dict[str, Any]) -> bool:
        if not validation.validate_password(data.get("password")).is_valid:
            return False
        confirm = data.get("confirm_password")
        return not confirm or confirm == data.get("password")

    steps = (
        WorkflowStep("Account Type", lambda d: validation.validate_role(d.get("role")).is_valid),
        WorkflowStep("Basic Info", lambda d: _filled(d, "name")),
        WorkflowStep("School", lambda d: _filled(d, "school_name")),
        WorkflowStep("Email", email_available),
        WorkflowStep("Password", password_ok),
    )

    def commit(data: dict[str, Any]) -> AuthResult:
        return registration.register(data)

    return WorkflowEngine(steps, commit, name="registration")


# -- post creation --------------------------------------------------------

def _post_settings(data: dict[str, Any]) -> bool:
    visibility = Visibility(data.get("visibility") or Visibility.PUBLIC)
    return visibility != Visibility.CLASS or _filled(data, "target_class")


POST_CREATION_STEPS = (
    WorkflowStep("Content", lambda d: _filled(d, "title") or _filled(d, "description")),
    WorkflowStep("Media", always),
    WorkflowStep("Settings", _post_settings),
    WorkflowStep("Preview", always),
)

POST_FIELDS = ("title", "description", "image", "video", "visibility", "target_class", "is_pinned")


def poster_snapshot(user: User) -> Poster:
    return Poster(id=user.email, email=user.email, name=user.name, avatar=user.profile_image, role=user.role.value)


def post_creation_flow(posts: PostsStore, author: User) -> WorkflowEngine:
    def commit(data: dict[str, Any]) -> Post:
        fields = {key: data[key] for key in POST_FIELDS if key in data}
        return posts.create({**fields, "poster": poster_snapshot(author).model_dump()})

    return WorkflowEngine(POST_CREATION_STEPS, commit, initial={"visibility": Visibility.PUBLIC.value}, name="post-creation")


# -- assignments ----------------------------------------------------------

def _due_date_ok(data: dict[str, Any]) -> bool:
    due = data.get("due_date")
    if not isinstance(due, date):
        try:
            date.fromisoformat(str(due or ""))
        except ValueError:
            return False
    try:
        return int(data.get("points") or 0) > 0
    except (TypeError, ValueError):
        return False


def assignment_flow(assignments: AssignmentsStore, classes: ClassesStore, created_by: Optional[str] = None) -> WorkflowEngine:
    steps = (
        WorkflowStep("Create", lambda d: _filled(d, "title")),
        WorkflowStep("Assign Class", lambda d: _filled(d, "class_id") and classes.exists(d["class_id"])),
        WorkflowStep("Set Deadline", _due_date_ok),
        WorkflowStep("Publish", always),
    )

    def commit(data: dict[str, Any]) -> Assignment:
        fields = {key: data[key] for key in ("class_id", "title", "description", "due_date", "points") if key in data}
        return assignments.create({**fields, "created_by": created_by})

    return WorkflowEngine(steps, commit, initial={"points": 100}, name="assignment")
