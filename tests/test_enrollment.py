import logging
import random

import pytest

from portal.errors import AlreadyEnrolled, CapacityExceeded, NotFound
from portal.models.user import UserRole
from portal.rbac import AdminViewer, StudentViewer, TeacherViewer


def test_capacity_scenario(portal, make_class):
    school_class = make_class(capacity=2)
    portal.enrollment.enroll(school_class.id, "a@x.com")
    portal.enrollment.enroll(school_class.id, "b@x.com")
    with pytest.raises(CapacityExceeded):
        portal.enrollment.enroll(school_class.id, "c@x.com")
    stored = portal.classes.get(school_class.id)
    assert stored.student_list == ["a@x.com", "b@x.com"]
    assert stored.total_students == 2


def test_capacity_holds_for_any_sequence(portal, make_class):
    school_class = make_class(capacity=3)
    rng = random.Random(1234)
    students = [f"s{i}@x.com" for i in range(6)]
    for _ in range(200):
        student = rng.choice(students)
        before = portal.classes.get(school_class.id).student_list
        if rng.random() < 0.6:
            try:
                portal.enrollment.enroll(school_class.id, student)
            except (CapacityExceeded, AlreadyEnrolled):
                assert portal.classes.get(school_class.id).student_list == before
        else:
            portal.enrollment.unenroll(school_class.id, student)
        current = portal.classes.get(school_class.id)
        assert len(current.student_list) <= 3
        assert len(set(current.student_list)) == len(current.student_list)
        assert current.total_students == len(current.student_list)


def test_already_enrolled(portal, make_class):
    school_class = make_class()
    portal.enrollment.enroll(school_class.id, "a@x.com")
    with pytest.raises(AlreadyEnrolled):
        portal.enrollment.enroll(school_class.id, "a@x.com")
    assert portal.classes.get(school_class.id).student_list == ["a@x.com"]


def test_unenroll_is_idempotent(portal, make_class):
    school_class = make_class(student_list=["a@x.com", "b@x.com"])
    once = portal.enrollment.unenroll(school_class.id, "a@x.com")
    twice = portal.enrollment.unenroll(school_class.id, "a@x.com")
    assert once.student_list == twice.student_list == ["b@x.com"]


def test_unenroll_absent_student_is_not_an_error(portal, make_class):
    school_class = make_class()
    assert portal.enrollment.unenroll(school_class.id, "ghost@x.com").student_list == []


def test_enroll_unknown_class(portal):
    with pytest.raises(NotFound):
        portal.enrollment.enroll("nope", "a@x.com")


def test_set_roster(portal, make_class):
    school_class = make_class(capacity=2)
    assert portal.enrollment.set_roster(school_class.id, ["a@x.com", "b@x.com"]).total_students == 2
    with pytest.raises(CapacityExceeded):
        portal.enrollment.set_roster(school_class.id, ["a@x.com", "b@x.com", "c@x.com"])
    with pytest.raises(AlreadyEnrolled):
        portal.enrollment.set_roster(school_class.id, ["a@x.com", "a@x.com"])
    updated = portal.enrollment.set_roster(school_class.id, ["a@x.com", "b@x.com", "c@x.com"], capacity=3)
    assert updated.capacity == 3


def test_reassign_teacher(portal, make_user, make_class):
    make_user("t@x.com", role=UserRole.TEACHER, name="Tina")
    school_class = make_class()
    updated = portal.enrollment.reassign_teacher(school_class.id, "t@x.com")
    assert updated.teacher_id == "t@x.com"
    assert portal.enrollment.teacher_name(updated) == "Tina"


def test_reassign_to_non_teacher_is_logged_not_rejected(portal, make_user, make_class, caplog):
    make_user("s@x.com")
    school_class = make_class()
    with caplog.at_level(logging.WARNING):
        updated = portal.enrollment.reassign_teacher(school_class.id, "s@x.com")
    assert updated.teacher_id == "s@x.com"
    assert "not a known teacher" in caplog.text
    assert portal.enrollment.teacher_name(updated) == "Unassigned"


def test_unassign_teacher(portal, make_class):
    school_class = make_class(teacher_id="t@x.com")
    updated = portal.enrollment.reassign_teacher(school_class.id, None)
    assert updated.teacher_id is None
    assert portal.enrollment.teacher_name(updated) == "Unassigned"


def test_visible_classes_by_role(portal, make_class):
    enrolled = make_class("Enrolled", student_list=["s@x.com"])
    published = make_class("Published", teacher_id="t@x.com")
    other = make_class("Other Teacher", teacher_id="u@x.com")
    hidden = make_class("Unassigned")

    student = {c.id for c in portal.enrollment.visible_classes_for(StudentViewer("s@x.com"))}
    teacher = {c.id for c in portal.enrollment.visible_classes_for(TeacherViewer("t@x.com"))}
    admin = {c.id for c in portal.enrollment.visible_classes_for(AdminViewer("admin@x.com"))}

    assert student == {enrolled.id, published.id, other.id}
    assert teacher == {published.id}
    assert admin == {enrolled.id, published.id, other.id, hidden.id}


def test_published_classes_are_visible_to_students_not_enrolled(portal, make_class):
    # Any class with a teacher is discoverable by every student.
    school_class = make_class(teacher_id="t@x.com", student_list=["a@x.com"])
    visible = portal.enrollment.visible_classes_for(StudentViewer("stranger@x.com"))
    assert [c.id for c in visible] == [school_class.id]
    assert portal.enrollment.enrolled_classes_for("stranger@x.com") == []


def test_teacher_matched_by_generated_id(portal, make_user, make_class):
    teacher = make_user("t@x.com", role=UserRole.TEACHER)
    school_class = make_class(teacher_id=teacher.id)
    viewer = TeacherViewer("t@x.com", aliases=frozenset({teacher.id}))
    assert [c.id for c in portal.enrollment.visible_classes_for(viewer)] == [school_class.id]


def test_find_class_by_id_or_name(portal, make_class):
    school_class = make_class("Geometry")
    assert portal.classes.find_by_ref(school_class.id).id == school_class.id
    assert portal.classes.find_by_ref("Geometry").id == school_class.id
    assert portal.classes.find_by_ref("Calculus") is None
