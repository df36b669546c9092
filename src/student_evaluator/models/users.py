"""User, cohort and role data models."""

from enum import Enum
from typing import Optional
from uuid import uuid4

from pydantic import BaseModel, Field


def new_id() -> str:
    """Generate a new document id."""
    return uuid4().hex


class Role(str, Enum):
    """Roles recognised by the scoring model."""

    STUDENT = "student"
    INSTRUCTOR = "instructor"

    @classmethod
    def parse(cls, value: Optional[str]) -> Optional["Role"]:
        """Return the matching role, or None for an unrecognised value."""
        try:
            return cls(value)
        except ValueError:
            return None


class Cohort(BaseModel):
    """A group of students taking courses together."""

    id: str = Field(default_factory=new_id, description="Cohort ID")
    name: str = Field(..., description="Cohort name")


class User(BaseModel):
    """A student or instructor account."""

    id: str = Field(default_factory=new_id, description="User ID")
    username: str = Field(..., description="Unique login name")
    role: str = Field(..., description="Role string, normally 'student' or 'instructor'")
    first_name: str = Field(default="", description="First name")
    last_name: str = Field(default="", description="Last name")
    cohort_id: Optional[str] = Field(default=None, description="Cohort the user belongs to")
    courses: list[str] = Field(default_factory=list, description="IDs of enrolled courses")
    password_hash: Optional[str] = Field(default=None, description="PBKDF2 password hash")

    @property
    def display_name(self) -> str:
        """Full name, falling back to the username."""
        name = f"{self.first_name} {self.last_name}".strip()
        return name or self.username

    def ref(self) -> "UserRef":
        """Reference to this user carrying its current role."""
        return UserRef(id=self.id, role=self.role)


class UserRef(BaseModel):
    """A populated reference to a user."""

    model_config = {"frozen": True}

    id: str = Field(..., description="Referenced user ID")
    role: str = Field(..., description="Role of the referenced user")
