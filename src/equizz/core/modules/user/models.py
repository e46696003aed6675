from datetime import datetime
from enum import StrEnum
from uuid import UUID

from pydantic import Field

from equizz.core.db import ApiModel, MongoModel
from equizz.utils import now


class UserRole(StrEnum):
    STUDENT = "STUDENT"
    ADMIN = "ADMIN"


class User(MongoModel):
    """User domain model with credentials.

    Indexed on email - unique, matricule - unique when set.
    """

    email: str
    matricule: str | None = None  # Student registration number
    password_hash: str  # bcrypt hash
    first_name: str
    last_name: str
    role: UserRole = UserRole.STUDENT
    class_id: UUID | None = None  # Current class (students only)
    created_at: datetime = Field(default_factory=now)
    updated_at: datetime = Field(default_factory=now)

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN


class UserView(ApiModel):
    """User account information (API representation)."""

    id: UUID = Field(..., description="User ID")
    email: str = Field(..., description="Email address")
    matricule: str | None = Field(None, description="Student registration number")
    first_name: str = Field(..., description="First name")
    last_name: str = Field(..., description="Last name")
    role: UserRole = Field(..., description="User role")
    class_id: UUID | None = Field(None, description="Current class")

    @classmethod
    def from_domain(cls, user: User) -> "UserView":
        """Create view model from domain model."""
        return cls(
            id=user.id,
            email=user.email,
            matricule=user.matricule,
            first_name=user.first_name,
            last_name=user.last_name,
            role=user.role,
            class_id=user.class_id,
        )
