from datetime import date

import pytest

from portal.errors import AlreadyEnrolled, CapacityExceeded, ValidationError
from portal.models.user import UserRole
from portal.services.flows import (
    assignment_flow,
    class_creation_flow,
    post_creation_flow,
    registration_flow,
)
from portal.services.workflow import WorkflowEngine, WorkflowStep, always, run_flow


def _engine(committed=None):
    steps = [
        WorkflowStep("one", lambda d: bool(d.get("name"))),
        WorkflowStep("two", always),
        WorkflowStep("three", lambda d: d["age"] > 0),
        WorkflowStep("four", always),
    ]
    sink = committed if committed is not None else []
    return WorkflowEngine(steps, lambda data: sink.append(data) or len(sink), initial={"kind": "x"})


def test_advance_blocked_until_valid():
    engine = _engine()
    assert engine.advance() is False
    assert engine.current_step == 0
    engine.update({"name": "Ada"})
    assert engine.advance() is True
    assert engine.current_step == 1


def test_update_is_shallow_merge():
    engine = _engine()
    engine.update({"name": "Ada", "nested": {"a": 1}})
    engine.update({"nested": {"b": 2}})
    assert engine.data == {"kind": "x", "name": "Ada", "nested": {"b": 2}}


def test_validator_errors_block_advance():
    engine = _engine()
    engine.update({"name": "Ada"})
    engine.advance()
    engine.advance()
    assert engine.current_step == 2
    # missing "age" raises KeyError inside the validator
    assert engine.can_proceed() is False
    assert engine.advance() is False
    engine.update({"age": "old"})
    assert engine.advance() is False
    engine.update({"age": 3})
    assert engine.advance() is True


def test_retreat_floors_at_zero():
    engine = _engine()
    assert engine.retreat() is False
    engine.update({"name": "Ada"})
    engine.advance()
    assert engine.retreat() is True
    assert engine.current_step == 0
    assert engine.is_first_step()


def test_advance_on_last_step_is_noop():
    engine = _engine()
    engine.update({"name": "Ada", "age": 1})
    while engine.advance():
        pass
    assert engine.is_last_step()
    assert engine.current_step == 3
    assert engine.advance() is False
    assert engine.current_step == 3


def test_progress():
    engine = _engine()
    assert engine.total_steps == 4
    assert engine.progress == 0.25
    engine.update({"name": "Ada"})
    engine.advance()
    assert engine.progress == 0.5


def test_commit_hands_off_copy_and_resets():
    committed = []
    engine = _engine(committed)
    engine.update({"name": "Ada", "age": 2})
    engine.advance()
    assert engine.commit() == 1
    assert committed == [{"kind": "x", "name": "Ada", "age": 2}]
    assert engine.current_step == 0
    assert engine.data == {"kind": "x"}


def test_commit_resets_even_when_handler_fails():
    def boom(_data):
        raise ValidationError("nope")

    engine = WorkflowEngine([WorkflowStep("only")], boom)
    engine.update({"a": 1})
    with pytest.raises(ValidationError):
        engine.commit()
    assert engine.data == {}


def test_empty_workflow_rejected():
    with pytest.raises(ValueError):
        WorkflowEngine([], lambda d: d)


def test_run_flow_names_incomplete_step():
    engine = _engine()
    with pytest.raises(ValidationError) as exc:
        run_flow(engine, {"name": "Ada"})
    assert exc.value.field == "three"
    assert engine.current_step == 0


def test_run_flow_validates_last_step():
    engine = WorkflowEngine([WorkflowStep("only", lambda d: d.get("ok") is True)], lambda d: "done")
    with pytest.raises(ValidationError):
        run_flow(engine, {})
    assert run_flow(engine, {"ok": True}) == "done"


def test_class_creation_flow(portal, make_user):
    make_user("t@x.com", role=UserRole.TEACHER)
    flow = class_creation_flow(portal.classes, portal.enrollment, created_by="admin@x.com", default_capacity=2)
    assert flow.data["capacity"] == 2
    flow.update({"class_name": "Biology", "subject": "Science", "section": "B"})
    assert flow.advance() is False
    flow.update({"schedule": "Mon 9:00"})
    assert flow.advance() is True
    flow.update({"teacher_id": "t@x.com"})
    assert flow.advance() is True
    flow.update({"student_list": ["a@x.com", "b@x.com", "c@x.com"]})
    assert flow.advance() is False
    flow.update({"student_list": ["a@x.com", "b@x.com"]})
    assert flow.advance() is True
    created = flow.commit()
    assert created.class_name == "Biology"
    assert created.student_list == ["a@x.com", "b@x.com"]
    assert created.created_by == "admin@x.com"
    assert portal.classes.get(created.id).teacher_id == "t@x.com"


def test_class_edit_flow_can_shrink_capacity(portal, make_class):
    school_class = make_class(schedule="Mon", teacher_id="t@x.com", student_list=["a@x.com", "b@x.com", "c@x.com"], capacity=5)
    flow = class_creation_flow(portal.classes, portal.enrollment, editing=school_class)
    assert flow.data["student_list"] == ["a@x.com", "b@x.com", "c@x.com"]
    updated = run_flow(flow, {"student_list": ["a@x.com"], "capacity": 1, "description": "Edited"})
    assert updated.capacity == 1
    assert updated.student_list == ["a@x.com"]
    assert updated.description == "Edited"


def test_class_flow_commit_still_bound_by_enrollment(portal, make_class):
    school_class = make_class(schedule="Mon", teacher_id="t@x.com", capacity=1)
    flow = class_creation_flow(portal.classes, portal.enrollment, editing=school_class)
    flow.update({"class_name": "Renamed", "student_list": ["a@x.com", "b@x.com"]})
    with pytest.raises(CapacityExceeded):
        flow.commit()
    stored = portal.classes.get(school_class.id)
    assert stored.student_list == []
    assert stored.class_name == "Algebra"
    assert flow.data["student_list"] == []


def test_failed_class_creation_leaves_no_class(portal):
    flow = class_creation_flow(portal.classes, portal.enrollment, default_capacity=1)
    flow.update({"class_name": "Art", "student_list": ["a@x.com", "b@x.com"]})
    with pytest.raises(CapacityExceeded):
        flow.commit()
    flow.update({"class_name": "Art", "student_list": ["a@x.com", "a@x.com"]})
    with pytest.raises(AlreadyEnrolled):
        flow.commit()
    assert len(portal.classes) == 0


def test_deadline_step_rejects_bad_values(portal, make_class):
    school_class = make_class()
    flow = assignment_flow(portal.assignments, portal.classes)
    flow.update({"title": "HW", "class_id": school_class.id})
    flow.advance()
    flow.advance()
    assert flow.step.name == "Set Deadline"
    flow.update({"due_date": "not a date"})
    assert flow.can_proceed() is False
    flow.update({"due_date": "2026-02-01", "points": "many"})
    assert flow.can_proceed() is False
    flow.update({"points": 5})
    assert flow.can_proceed() is True


def test_registration_flow(portal):
    flow = registration_flow(portal.registration)
    result = run_flow(
        flow,
        {
            "role": "student",
            "name": "New Kid",
            "school_name": "Test School",
            "email": "new@x.com",
            "password": "abc123",
            "confirm_password": "abc123",
        },
    )
    assert result.success
    assert portal.users.find_by_email("new@x.com").name == "New Kid"


def test_registration_flow_stops_on_taken_email(portal, make_user):
    make_user("taken@x.com")
    flow = registration_flow(portal.registration)
    flow.update({"role": "teacher", "name": "T", "school_name": "S", "email": "taken@x.com"})
    for _ in range(3):
        assert flow.advance() is True
    assert flow.step.name == "Email"
    assert flow.advance() is False


def test_registration_flow_password_mismatch(portal):
    with pytest.raises(ValidationError) as exc:
        run_flow(
            registration_flow(portal.registration),
            {
                "role": "student",
                "name": "N",
                "school_name": "S",
                "email": "n@x.com",
                "password": "abc123",
                "confirm_password": "abc124",
            },
        )
    assert exc.value.field == "Password"
    assert portal.users.find_by_email("n@x.com") is None


def test_post_creation_flow(portal, make_user):
    author = make_user("t@x.com", role=UserRole.TEACHER, name="Tina")
    flow = post_creation_flow(portal.posts, author)
    with pytest.raises(ValidationError) as exc:
        run_flow(flow, {"title": "Lab", "visibility": "class"})
    assert exc.value.field == "Settings"
    post = run_flow(flow, {"title": "Lab", "visibility": "class", "target_class": "c1", "is_pinned": True})
    assert post.poster.id == "t@x.com"
    assert post.poster.name == "Tina"
    assert post.poster.role == "teacher"
    assert post.is_pinned


def test_post_creation_flow_needs_content(portal, make_user):
    flow = post_creation_flow(portal.posts, make_user("s@x.com"))
    assert flow.advance() is False
    flow.update({"description": "Just text"})
    assert flow.advance() is True


def test_assignment_flow(portal, make_class):
    school_class = make_class()
    flow = assignment_flow(portal.assignments, portal.classes, created_by="t@x.com")
    with pytest.raises(ValidationError) as exc:
        run_flow(flow, {"title": "HW1", "class_id": "missing", "due_date": "2026-02-01"})
    assert exc.value.field == "Assign Class"
    with pytest.raises(ValidationError) as exc:
        run_flow(flow, {"title": "HW1", "class_id": school_class.id, "due_date": "next week"})
    assert exc.value.field == "Set Deadline"
    created = run_flow(flow, {"title": "HW1", "class_id": school_class.id, "due_date": "2026-02-01", "points": 20})
    assert created.due_date == date(2026, 2, 1)
    assert created.points == 20
    assert created.created_by == "t@x.com"
