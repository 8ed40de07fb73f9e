"""Sign in, registration, sign out and profile."""
from fastapi import APIRouter, HTTPException
from pydantic import BaseModel

from portal.api.deps import CurrentUser, PortalDep
from portal.models.user import UserCreate, UserOut, UserRole, UserUpdate
from portal.services.auth import sanitize_profile
from portal.services.flows import registration_flow
from portal.services.workflow import run_flow

router = APIRouter()


class LoginRequest(BaseModel):
    email: str
    password: str
    role: UserRole


class ChangePasswordRequest(BaseModel):
    old_password: str
    new_password: str


def _session_response(portal, result) -> dict:
    user = portal.users.get(result.user.email)
    session = portal.sessions.create_session(user)
    return {
        "access_token": session.session_id,
        "token_type": "bearer",
        "expires_at": session.expires_at.isoformat(),
        "user": result.user.model_dump(mode="json"),
        "redirect_to": result.redirect_to,
        "permissions": result.permissions,
        "message": result.message,
    }


@router.post("/login")
async def login(data: LoginRequest, portal: PortalDep):
    result = portal.auth.authenticate(data.email, data.password, data.role)
    if not result.success:
        status_code = 429 if result.locked else 401
        raise HTTPException(status_code=status_code, detail={"message": result.message, "error": result.error})
    return _session_response(portal, result)


@router.post("/register", status_code=201)
async def register(data: UserCreate, portal: PortalDep):
    availability = portal.registration.check_email_availability(data.email)
    if availability["reason"] == "DUPLICATE":
        raise HTTPException(
            status_code=400,
            detail={
                "message": "An account with this email already exists",
                "error": "DUPLICATE_EMAIL",
                "errors": [availability["message"]],
            },
        )
    result = run_flow(registration_flow(portal.registration), data.model_dump(mode="json"))
    if not result.success:
        raise HTTPException(
            status_code=400,
            detail={"message": result.message, "error": result.error, "errors": result.errors},
        )
    return _session_response(portal, result)


@router.get("/email-availability")
async def email_availability(email: str, portal: PortalDep):
    return portal.registration.check_email_availability(email)


@router.post("/logout")
async def logout(user: CurrentUser, portal: PortalDep):
    portal.sessions.destroy_session()
    return {"success": True, "message": f"{user.role.value} logged out successfully"}


@router.get("/me", response_model=UserOut)
async def me(user: CurrentUser):
    return UserOut.from_user(user)


@router.patch("/me", response_model=UserOut)
async def update_me(data: UserUpdate, user: CurrentUser, portal: PortalDep):
    portal.sessions.update_session(sanitize_profile(data.model_dump(exclude_unset=True)))
    return UserOut.from_user(portal.users.get(user.id))


@router.get("/session")
async def session_status(user: CurrentUser, portal: PortalDep):
    return portal.sessions.time_until_expiry()


@router.post("/change-password")
async def change_password(data: ChangePasswordRequest, user: CurrentUser, portal: PortalDep):
    result = portal.auth.change_password(user.id, data.old_password, data.new_password)
    if not result.success:
        raise HTTPException(status_code=400, detail={"message": result.message, "errors": result.errors})
    return {"success": True, "message": result.message}
