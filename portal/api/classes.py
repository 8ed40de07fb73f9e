"""Classes: visible lists, multi-step create/edit, enrollment and teacher assignment."""
from fastapi import APIRouter
from pydantic import BaseModel

from portal.api.deps import AdminOnly, CurrentViewer, PortalDep, TeacherOrAdmin
from portal.errors import PermissionDenied
from portal.models.school_class import ClassCreate, ClassUpdate, SchoolClass
from portal.rbac import can_manage_class, viewer_for
from portal.services.flows import class_creation_flow
from portal.services.workflow import run_flow

router = APIRouter()


class EnrollRequest(BaseModel):
    student_id: str


class TeacherRequest(BaseModel):
    teacher_id: str | None = None


def serialize_class(portal, school_class: SchoolClass) -> dict:
    data = school_class.model_dump(mode="json")
    data["teacher_name"] = portal.enrollment.teacher_name(school_class)
    data["seats_left"] = school_class.seats_left
    return data


def _managed_class(portal, viewer, class_id: str) -> SchoolClass:
    school_class = portal.classes.get(class_id)
    if not can_manage_class(viewer, school_class):
        raise PermissionDenied("Not authorized for this class")
    return school_class


@router.get("/")
async def list_classes(viewer: CurrentViewer, portal: PortalDep):
    return [serialize_class(portal, c) for c in portal.enrollment.visible_classes_for(viewer)]


@router.get("/{class_id}")
async def get_class(class_id: str, viewer: CurrentViewer, portal: PortalDep):
    visible = {c.id for c in portal.enrollment.visible_classes_for(viewer)}
    if class_id not in visible:
        raise PermissionDenied("Not authorized for this class")
    return serialize_class(portal, portal.classes.get(class_id))


@router.post("/", status_code=201)
async def create_class(data: ClassCreate, user: TeacherOrAdmin, portal: PortalDep):
    flow = class_creation_flow(
        portal.classes,
        portal.enrollment,
        created_by=user.email,
        default_capacity=portal.settings.default_class_capacity,
    )
    created = run_flow(flow, data.model_dump())
    return serialize_class(portal, created)


@router.patch("/{class_id}")
async def update_class(class_id: str, data: ClassUpdate, user: TeacherOrAdmin, portal: PortalDep):
    school_class = _managed_class(portal, viewer_for(user), class_id)
    flow = class_creation_flow(portal.classes, portal.enrollment, editing=school_class)
    updated = run_flow(flow, {**flow.data, **data.model_dump(exclude_unset=True)})
    return serialize_class(portal, updated)


@router.delete("/{class_id}", status_code=204)
async def delete_class(class_id: str, admin: AdminOnly, portal: PortalDep):
    # Assignments pointing at this class are left in place.
    portal.classes.remove(class_id)
    return None


@router.post("/{class_id}/students")
async def enroll_student(class_id: str, data: EnrollRequest, user: TeacherOrAdmin, portal: PortalDep):
    _managed_class(portal, viewer_for(user), class_id)
    return serialize_class(portal, portal.enrollment.enroll(class_id, data.student_id))


@router.delete("/{class_id}/students/{student_id}")
async def unenroll_student(class_id: str, student_id: str, user: TeacherOrAdmin, portal: PortalDep):
    _managed_class(portal, viewer_for(user), class_id)
    return serialize_class(portal, portal.enrollment.unenroll(class_id, student_id))


@router.put("/{class_id}/teacher")
async def reassign_teacher(class_id: str, data: TeacherRequest, admin: AdminOnly, portal: PortalDep):
    return serialize_class(portal, portal.enrollment.reassign_teacher(class_id, data.teacher_id))
