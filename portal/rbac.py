"""Viewer identities, per-role permissions and ownership checks."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Union

from portal.models.assignment import Assignment
from portal.models.post import Post
from portal.models.school_class import SchoolClass
from portal.models.user import User, UserRole

ROLE_PERMISSIONS: dict[str, list[str]] = {
    "admin": [
        "manage_users",
        "create_user",
        "update_user",
        "delete_user",
        "manage_data",
        "view_all_data",
        "configure_system",
        "view_reports",
        "manage_schools",
        "manage_classes",
        "manage_assignments",
        "full_access",
    ],
    "teacher": [
        "view_assigned_classes",
        "manage_classes",
        "manage_assignments",
        "create_assignment",
        "update_assignment",
        "delete_assignment",
        "view_students",
        "submit_grades",
        "update_records",
        "view_reports",
        "manage_class_content",
    ],
    "student": [
        "view_profile",
        "view_enrolled_classes",
        "submit_assignments",
        "view_grades",
        "view_status",
        "view_announcements",
        "update_profile",
        "view_schedule",
    ],
}

REDIRECT_BY_ROLE: dict[str, str] = {
    "admin": "/admin",
    "teacher": "/teacher",
    "student": "/student",
}


@dataclass(frozen=True)
class AdminViewer:
    id: str
    aliases: frozenset[str] = field(default_factory=frozenset)
    role = UserRole.ADMIN

    @property
    def identifiers(self) -> frozenset[str]:
        return self.aliases | {self.id}


@dataclass(frozen=True)
class TeacherViewer:
    id: str
    aliases: frozenset[str] = field(default_factory=frozenset)
    role = UserRole.TEACHER

    @property
    def identifiers(self) -> frozenset[str]:
        return self.aliases | {self.id}


@dataclass(frozen=True)
class StudentViewer:
    id: str
    aliases: frozenset[str] = field(default_factory=frozenset)
    role = UserRole.STUDENT

    @property
    def identifiers(self) -> frozenset[str]:
        return self.aliases | {self.id}


Viewer = Union[AdminViewer, TeacherViewer, StudentViewer]

_VIEWER_BY_ROLE = {
    UserRole.ADMIN: AdminViewer,
    UserRole.TEACHER: TeacherViewer,
    UserRole.STUDENT: StudentViewer,
}


def viewer_for(user: User) -> Viewer:
    """Viewer keyed by email; the generated user id is kept as an alias."""
    return _VIEWER_BY_ROLE[user.role](id=user.email, aliases=frozenset({user.id}))


def permissions_for(role: UserRole | str) -> list[str]:
    return list(ROLE_PERMISSIONS.get(UserRole(role).value, []))


def has_permission(role: UserRole | str, permission: str) -> bool:
    return permission in permissions_for(role)


def redirect_path(role: UserRole | str) -> str:
    return REDIRECT_BY_ROLE.get(UserRole(role).value, "/")


def can_modify_post(viewer: Viewer, post: Post) -> bool:
    if isinstance(viewer, AdminViewer):
        return True
    return bool(viewer.identifiers & post.poster.identifiers)


def can_manage_class(viewer: Viewer, school_class: SchoolClass) -> bool:
    if isinstance(viewer, AdminViewer):
        return True
    if isinstance(viewer, TeacherViewer):
        return school_class.teacher_id in viewer.identifiers
    return False


def can_manage_assignment(viewer: Viewer, school_class: SchoolClass | None, assignment: Assignment | None = None) -> bool:
    """Admins always; teachers only for classes they own."""
    if isinstance(viewer, AdminViewer):
        return True
    if not isinstance(viewer, TeacherViewer) or school_class is None:
        return False
    if assignment is not None and assignment.class_id != school_class.id:
        return False
    return school_class.teacher_id in viewer.identifiers
