"""Enrollment rules layered over the Classes and Users stores.

Holds no state of its own: every query reads the stores again.
"""
from __future__ import annotations

import logging
from typing import Iterable

from portal.errors import AlreadyEnrolled, CapacityExceeded, ValidationError
from portal.models.school_class import SchoolClass
from portal.models.user import UserRole
from portal.rbac import AdminViewer, StudentViewer, TeacherViewer, Viewer
from portal.stores.classes import ClassesStore
from portal.stores.users import UsersStore

logger = logging.getLogger(__name__)

UNASSIGNED = "Unassigned"


class EnrollmentService:
    def __init__(self, classes: ClassesStore, users: UsersStore):
        self.classes = classes
        self.users = users

    def enroll(self, class_id: str, student_id: str) -> SchoolClass:
        school_class = self.classes.get(class_id)
        if student_id in school_class.student_list:
            raise AlreadyEnrolled(class_id, student_id)
        if len(school_class.student_list) >= school_class.capacity:
            raise CapacityExceeded(class_id, school_class.capacity)
        updated = self.classes.update(class_id, {"student_list": [*school_class.student_list, student_id]})
        logger.info(f"Enrolled {student_id} in {class_id} ({updated.total_students}/{updated.capacity})")
        return updated

    def unenroll(self, class_id: str, student_id: str) -> SchoolClass:
        school_class = self.classes.get(class_id)
        if student_id not in school_class.student_list:
            return school_class
        remaining = [s for s in school_class.student_list if s != student_id]
        logger.info(f"Removed {student_id} from {class_id}")
        return self.classes.update(class_id, {"student_list": remaining})

    @staticmethod
    def check_roster(class_id: str, students: Iterable[str], capacity: int) -> list[str]:
        """Raise AlreadyEnrolled or CapacityExceeded for a roster that breaks the rules."""
        roster = list(students)
        seen: set[str] = set()
        for student_id in roster:
            if student_id in seen:
                raise AlreadyEnrolled(class_id, student_id)
            seen.add(student_id)
        if len(roster) > capacity:
            raise CapacityExceeded(class_id, capacity)
        return roster

    def set_roster(self, class_id: str, students: Iterable[str], capacity: int | None = None) -> SchoolClass:
        """Replace the roster (and optionally the capacity) in one write; all or nothing."""
        school_class = self.classes.get(class_id)
        capacity = int(capacity) if capacity is not None else school_class.capacity
        roster = self.check_roster(class_id, students, capacity)
        return self.classes.update(class_id, {"student_list": roster, "capacity": capacity})

    def reassign_teacher(self, class_id: str, teacher_id: str | None) -> SchoolClass:
        if teacher_id:
            teacher = self.users.find_by_id(teacher_id)
            if teacher is None or teacher.role != UserRole.TEACHER:
                # Soft rule: recorded, not rejected.
                logger.warning(f"Class {class_id} assigned to {teacher_id}, which is not a known teacher")
        return self.classes.update(class_id, {"teacher_id": teacher_id})

    def visible_classes_for(self, viewer: Viewer) -> list[SchoolClass]:
        if isinstance(viewer, AdminViewer):
            return list(self.classes.list())
        if isinstance(viewer, TeacherViewer):
            return self.classes.taught_by(set(viewer.identifiers))
        if isinstance(viewer, StudentViewer):
            # Enrolled, or published (any teacher assigned).
            ids = viewer.identifiers
            return list(self.classes.list(lambda c: bool(ids & set(c.student_list)) or c.is_published))
        raise ValidationError(f"Unknown viewer: {viewer!r}")

    def enrolled_classes_for(self, student_id: str) -> list[SchoolClass]:
        return list(self.classes.list(lambda c: student_id in c.student_list))

    def teacher_name(self, school_class: SchoolClass) -> str:
        if not school_class.teacher_id:
            return UNASSIGNED
        teacher = self.users.find_by_id(school_class.teacher_id)
        if teacher is None or teacher.role != UserRole.TEACHER:
            return UNASSIGNED
        return teacher.name
