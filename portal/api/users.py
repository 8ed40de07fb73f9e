"""User management (admin)."""
from fastapi import APIRouter, HTTPException
from pydantic import BaseModel

from portal.api.deps import AdminOnly, PortalDep
from portal.models.user import UserCreate, UserOut, UserRole, UserUpdate
from portal.services.auth import sanitize_profile

router = APIRouter()


class PasswordReset(BaseModel):
    password: str


@router.get("/")
async def list_users(admin: AdminOnly, portal: PortalDep, role: UserRole | None = None):
    users = portal.users.by_role(role) if role else portal.users.list()
    return [UserOut.from_user(u).model_dump(mode="json") for u in users]


@router.get("/stats")
async def user_stats(admin: AdminOnly, portal: PortalDep):
    return portal.users.stats()


@router.post("/", status_code=201)
async def create_user(data: UserCreate, admin: AdminOnly, portal: PortalDep):
    result = portal.registration.register(data)
    if not result.success:
        raise HTTPException(status_code=400, detail={"message": result.message, "errors": result.errors})
    return result.user.model_dump(mode="json")


@router.patch("/{user_id}", response_model=UserOut)
async def update_user(user_id: str, data: UserUpdate, admin: AdminOnly, portal: PortalDep):
    return UserOut.from_user(portal.users.update(user_id, sanitize_profile(data.model_dump(exclude_unset=True))))


@router.post("/{user_id}/set-password")
async def set_user_password(user_id: str, data: PasswordReset, admin: AdminOnly, portal: PortalDep):
    user = portal.users.get(user_id)
    result = portal.auth.reset_password(user.email, data.password)
    if not result.success:
        raise HTTPException(status_code=400, detail={"message": result.message, "errors": result.errors})
    return {"id": user.id}


@router.delete("/{user_id}", status_code=204)
async def delete_user(user_id: str, admin: AdminOnly, portal: PortalDep):
    portal.users.remove(user_id)
    return None
