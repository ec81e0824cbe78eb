"""Identity of the caller, as resolved from the identity provider's token."""

from uuid import UUID
from pydantic import BaseModel

from app.models.profile import UserRole


class ActingUser(BaseModel):
    """The already-authenticated user performing an operation."""
    user_id: UUID
    role: UserRole
    email: str

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

    @property
    def is_contractor(self) -> bool:
        return self.role == UserRole.CONTRACTOR
