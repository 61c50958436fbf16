"""Domain Entities - Auth"""
from pydantic import BaseModel
from typing import Optional

from domain.enums import PRIVILEGED_ROLES, StaffRole
from domain.errors import UnauthorizedError


class User(BaseModel):
    """Staff account"""
    user_id: int
    username: str
    email: Optional[str] = None
    full_name: Optional[str] = None
    role: StaffRole = StaffRole.FRONT_DESK
    disabled: bool = False

    class Config:
        from_attributes = True


class UserInDB(User):
    """User with hashed password for DB storage"""
    hashed_password: str


class RequestContext(BaseModel):
    """Acting principal for one operation"""
    user_id: Optional[int] = None
    username: str
    display_name: Optional[str] = None
    role: StaffRole

    class Config:
        frozen = True

    @classmethod
    def system(cls) -> "RequestContext":
        """Context for unattended jobs such as seeding"""
        return cls(username="System", role=StaffRole.ADMIN)

    @classmethod
    def for_user(cls, user: User) -> "RequestContext":
        return cls(
            user_id=user.user_id,
            username=user.username,
            display_name=user.full_name,
            role=user.role
        )

    @property
    def actor(self) -> str:
        """Name written into created_by fields"""
        return self.display_name or self.username

    @property
    def is_privileged(self) -> bool:
        return self.role in PRIVILEGED_ROLES

    def require_role(self, *roles: StaffRole) -> None:
        if self.role not in roles:
            raise UnauthorizedError(
                f"Role {self.role.value} is not allowed to perform this operation",
                details={"required_roles": [r.value for r in roles]}
            )

    def require_privileged(self) -> None:
        self.require_role(*PRIVILEGED_ROLES)
