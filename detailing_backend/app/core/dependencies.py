"""
Authentication dependencies for FastAPI.

This module resolves the session user and profile of a request. The
guards build the explicit Identity that handlers pass to the domain
services.
"""

import logging
from typing import Optional
from fastapi import Depends, Request
from pydantic import ValidationError
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy import select
from detailing_backend.app.core.config import settings
from detailing_backend.app.core.jwt import decode_access_token
from detailing_backend.app.db.session import get_db
from detailing_backend.app.models.profile import Profile
from detailing_backend.app.schemas.auth import SessionUser, UserProfile

logger = logging.getLogger(__name__)

# HTTP Bearer security scheme (the session cookie is accepted as well)
security = HTTPBearer(auto_error=False)


def extract_access_token(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = None,
) -> Optional[str]:
    """Bearer token if present, otherwise the session cookie."""
    if credentials and credentials.credentials:
        return credentials.credentials
    header = request.headers.get("Authorization", "")
    if header.lower().startswith("bearer "):
        return header[7:].strip() or None
    return request.cookies.get(settings.session_cookie_name)


def session_user_from_token(token: Optional[str]) -> Optional[SessionUser]:
    """
    Verify an access token and return the account it carries.

    Returns None for a missing, expired or tampered token.
    """
    if not token:
        return None
    payload = decode_access_token(token)
    if payload is None:
        return None
    user_id = payload.get("sub")
    if not user_id:
        return None
    return SessionUser(id=user_id, email=payload.get("email"))


async def load_profile(db: AsyncSession, user_id: str) -> Optional[UserProfile]:
    """Profile row for an account, or None when missing or unreadable."""
    try:
        result = await db.execute(select(Profile).where(Profile.id == user_id))
        profile = result.scalar_one_or_none()
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error("Profile query error for user %s: %s", user_id, e)
        return None

    if profile is None:
        logger.warning("No profile found for user %s", user_id)
        return None
    try:
        return UserProfile.model_validate(profile)
    except ValidationError as e:
        logger.error("Unreadable profile for user %s: %s", user_id, e)
        return None


async def get_session_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> Optional[SessionUser]:
    return session_user_from_token(extract_access_token(request, credentials))


async def get_current_profile(
    session_user: Optional[SessionUser] = Depends(get_session_user),
    db: AsyncSession = Depends(get_db),
) -> Optional[UserProfile]:
    """
    FastAPI dependency for the signed-in profile.

    Returns None when there is no valid session or no readable profile;
    the guards turn that into 401.
    """
    if session_user is None:
        return None
    return await load_profile(db, session_user.id)

