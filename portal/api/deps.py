"""Shared dependencies: session auth, viewer resolution and role checks."""
from typing import Annotated, Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from portal.db import Portal, get_portal
from portal.models.user import User, UserRole
from portal.rbac import Viewer, viewer_for

security = HTTPBearer(auto_error=False)

PortalDep = Annotated[Portal, Depends(get_portal)]


async def get_current_user(
    portal: PortalDep,
    credentials: Annotated[Optional[HTTPAuthorizationCredentials], Depends(security)],
) -> User:
    if not credentials:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    session = portal.sessions.current_session()
    if session is None or session.session_id != credentials.credentials:
        raise HTTPException(status_code=401, detail="Invalid or expired session")
    user = portal.users.find_by_id(session.user_id)
    if user is None:
        portal.sessions.destroy_session()
        raise HTTPException(status_code=401, detail="Session user not found")
    portal.sessions.update_activity()
    return user


async def get_viewer(user: Annotated[User, Depends(get_current_user)]) -> Viewer:
    return viewer_for(user)


def require_roles(*allowed: UserRole):
    allowed_values = [role.value for role in allowed]

    async def checker(user: Annotated[User, Depends(get_current_user)]) -> User:
        if user.role.value not in allowed_values:
            raise HTTPException(status_code=403, detail="Insufficient permissions")
        return user

    return checker


# Type aliases for route injection
CurrentUser = Annotated[User, Depends(get_current_user)]
CurrentViewer = Annotated[Viewer, Depends(get_viewer)]
AdminOnly = Annotated[User, Depends(require_roles(UserRole.ADMIN))]
TeacherOrAdmin = Annotated[User, Depends(require_roles(UserRole.ADMIN, UserRole.TEACHER))]
StudentOnly = Annotated[User, Depends(require_roles(UserRole.STUDENT))]
