"""
Security guards for role-based access control.

The require_* checks are plain functions over a profile so they can be
used outside request handling; the require_api_* dependencies wrap them
for endpoints.
"""

from typing import Iterable, Optional
from fastapi import Depends
from detailing_backend.app.models.enums import UserRole
from detailing_backend.app.core.dependencies import get_current_profile
from detailing_backend.app.core.exceptions import AuthenticationError, InsufficientPermissionsError
from detailing_backend.app.schemas.auth import Identity, UserProfile

DETAILER_ROLES = (UserRole.DETAILER, UserRole.ADMIN)


def require_user(profile: Optional[UserProfile]) -> UserProfile:
    """Any signed-in profile. Raises AuthenticationError (401) otherwise."""
    if profile is None:
        raise AuthenticationError()
    return profile


def require_detailer(profile: Optional[UserProfile]) -> UserProfile:
    """
    Detailer or admin.

    Raises:
        AuthenticationError: 401 without a profile
        InsufficientPermissionsError: 403 for any other role
    """
    profile = require_user(profile)
    if profile.role not in DETAILER_ROLES:
        raise InsufficientPermissionsError("Detailer access required")
    return profile


def require_admin(profile: Optional[UserProfile]) -> UserProfile:
    profile = require_user(profile)
    if profile.role != UserRole.ADMIN:
        raise InsufficientPermissionsError("Admin access required")
    return profile


def ensure_role(profile: UserProfile, allowed_roles: Iterable[UserRole]) -> UserProfile:
    if profile.role not in tuple(allowed_roles):
        raise InsufficientPermissionsError("Insufficient permissions")
    return profile


async def require_api_user(profile: Optional[UserProfile] = Depends(get_current_profile)) -> UserProfile:
    return require_user(profile)


async def require_api_detailer(profile: Optional[UserProfile] = Depends(get_current_profile)) -> UserProfile:
    """
    Dependency for detailer endpoints.

    Usage:
        @router.get("/detailer/permissions")
        async def permissions(profile: UserProfile = Depends(require_api_detailer)):
            ...
    """
    return require_detailer(profile)


async def require_api_admin(profile: Optional[UserProfile] = Depends(get_current_profile)) -> UserProfile:
    return require_admin(profile)


async def get_detailer_identity(profile: UserProfile = Depends(require_api_detailer)) -> Identity:
    """Acting identity for detailer endpoints; domain services take it explicitly."""
    return Identity.from_profile(profile)
