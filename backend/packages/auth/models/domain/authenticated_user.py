from pydantic import BaseModel

from packages.billing.models.domain.enums import UserRole


class AuthenticatedUser(BaseModel):
    """User context passed through authentication dependencies"""

    user_id: int
    role: UserRole

    class Config:
        from_attributes = True

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN
