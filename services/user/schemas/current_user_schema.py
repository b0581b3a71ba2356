"""
인증된 사용자 Pydantic 스키마
"""
from pydantic import BaseModel
from typing import Optional

from services.user.models.profile_model import ADMIN_ROLE

class CurrentUser(BaseModel):
    user_id: str
    email: Optional[str] = None
    role: Optional[str] = None

    @property
    def is_admin(self) -> bool:
        return self.role == ADMIN_ROLE
