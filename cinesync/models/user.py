# cinesync/models/user.py
from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import Field

from cinesync.models.base import CamelModel, utcnow


class Role(str, Enum):
    USER = "user"
    ADMIN = "admin"


class User(CamelModel):
    id: str
    email: str
    name: str
    password_hash: str = Field(exclude=True, repr=False)
    role: Role = Role.USER
    is_active: bool = True
    created_at: datetime = Field(default_factory=utcnow)

    def public(self) -> "PublicUser":
        return PublicUser(id=self.id, email=self.email, name=self.name)


class PublicUser(CamelModel):
    """Projection shown to other users (invite search, notifications)."""

    id: str
    name: str
    email: str


class SessionUser(CamelModel):
    """Identity attached to an authenticated request."""

    id: str
    email: str
    name: str
    role: Role = Role.USER

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN


class RegisterRequest(CamelModel):
    email: Optional[str] = None
    password: Optional[str] = None
    name: Optional[str] = None


class LoginRequest(CamelModel):
    email: str
    password: str


class RoleUpdateRequest(CamelModel):
    role: Role
