"""Domain Entities - Auth"""
from pydantic import BaseModel
from typing import Optional

from domain.enums import UserRole


class User(BaseModel):
    """Caller identity as handed over by the identity collaborator"""
    user_id: str
    role: UserRole = UserRole.USER
    email: Optional[str] = None

    class Config:
        from_attributes = True
        frozen = True

    def has_role(self, *roles: UserRole) -> bool:
        return self.role in roles

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN
