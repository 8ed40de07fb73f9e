from datetime import datetime
from typing import Optional

from pydantic import BaseModel

from portal.models.user import UserRole


class Session(BaseModel):
    """The single active sign-in, persisted under the current-user key."""
    session_id: str
    user_id: str
    email: str
    role: UserRole
    name: str
    school_name: str = ""
    profile_image: Optional[str] = None
    created_at: datetime
    last_activity: datetime
    expires_at: datetime
