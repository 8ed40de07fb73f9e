"""Assignments: owning-teacher management, student submissions and grading."""
from fastapi import APIRouter

from portal.api.deps import CurrentViewer, PortalDep, StudentOnly, TeacherOrAdmin
from portal.errors import PermissionDenied
from portal.models.assignment import (
    Assignment,
    AssignmentCreate,
    AssignmentUpdate,
    GradeRequest,
    SubmissionCreate,
)
from portal.rbac import StudentViewer, can_manage_assignment, viewer_for
from portal.services.flows import assignment_flow
from portal.services.visibility import visible_assignments_for
from portal.services.workflow import run_flow

router = APIRouter()


def serialize_assignment(assignment: Assignment, viewer) -> dict:
    data = assignment.model_dump(mode="json")
    if isinstance(viewer, StudentViewer):
        # Students only see their own submission.
        own = {k: v for k, v in data["submissions"].items() if k in viewer.identifiers}
        data["submissions"] = own
    data["is_overdue"] = assignment.is_overdue()
    return data


def _managed_assignment(portal, user, assignment_id: str) -> Assignment:
    assignment = portal.assignments.get(assignment_id)
    school_class = portal.classes.find(lambda c: c.id == assignment.class_id)
    if not can_manage_assignment(viewer_for(user), school_class, assignment):
        raise PermissionDenied("Only the class teacher can manage this assignment")
    return assignment


@router.get("/")
async def list_assignments(viewer: CurrentViewer, portal: PortalDep):
    return [
        serialize_assignment(a, viewer)
        for a in visible_assignments_for(viewer, portal.assignments, portal.enrollment)
    ]


@router.post("/", status_code=201)
async def create_assignment(data: AssignmentCreate, user: TeacherOrAdmin, portal: PortalDep):
    school_class = portal.classes.find(lambda c: c.id == data.class_id)
    if school_class is not None and not can_manage_assignment(viewer_for(user), school_class):
        raise PermissionDenied("Only the class teacher can add assignments")
    flow = assignment_flow(portal.assignments, portal.classes, created_by=user.email)
    created = run_flow(flow, data.model_dump(exclude_unset=True))
    return serialize_assignment(created, viewer_for(user))


@router.patch("/{assignment_id}")
async def update_assignment(assignment_id: str, data: AssignmentUpdate, user: TeacherOrAdmin, portal: PortalDep):
    _managed_assignment(portal, user, assignment_id)
    updated = portal.assignments.update(assignment_id, data.model_dump(exclude_unset=True))
    return serialize_assignment(updated, viewer_for(user))


@router.delete("/{assignment_id}", status_code=204)
async def delete_assignment(assignment_id: str, user: TeacherOrAdmin, portal: PortalDep):
    _managed_assignment(portal, user, assignment_id)
    portal.assignments.remove(assignment_id)
    return None


@router.post("/{assignment_id}/submissions")
async def submit_assignment(assignment_id: str, data: SubmissionCreate, user: StudentOnly, portal: PortalDep):
    viewer = viewer_for(user)
    visible = {a.id for a in visible_assignments_for(viewer, portal.assignments, portal.enrollment)}
    if assignment_id not in visible:
        raise PermissionDenied("Not authorized for this assignment")
    updated = portal.assignments.submit(assignment_id, user.email, data.content, data.attachment)
    return serialize_assignment(updated, viewer)


@router.put("/{assignment_id}/submissions/{student_id}/grade")
async def grade_submission(assignment_id: str, student_id: str, data: GradeRequest, user: TeacherOrAdmin, portal: PortalDep):
    _managed_assignment(portal, user, assignment_id)
    updated = portal.assignments.grade(assignment_id, student_id, data.score, data.feedback)
    return serialize_assignment(updated, viewer_for(user))
