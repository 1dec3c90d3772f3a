"""
Authentication and identity schemas.

The Identity object is resolved once per request and passed explicitly to
every service that needs to know who is acting.
"""

from pydantic import BaseModel
from typing import Optional
from detailing_backend.app.models.enums import UserRole


class SessionUser(BaseModel):
    """Authenticated account as carried by the session token."""
    id: str
    email: Optional[str] = None


class UserProfile(BaseModel):
    """Profile row with the platform-level role."""
    id: str
    full_name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    role: Optional[UserRole] = None
    avatar_url: Optional[str] = None
    onboarding_completed: bool = False

    class Config:
        from_attributes = True


class Identity(BaseModel):
    """Explicit authenticated-identity context for one request."""
    profile_id: str
    email: Optional[str] = None
    role: Optional[UserRole] = None
    full_name: Optional[str] = None

    class Config:
        frozen = True

    @classmethod
    def from_profile(cls, profile: UserProfile) -> "Identity":
        return cls(
            profile_id=profile.id,
            email=profile.email,
            role=profile.role,
            full_name=profile.full_name,
        )

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN
