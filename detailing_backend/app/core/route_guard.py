"""
Route guard middleware.

Runs on every request before routing and applies coarse, prefix-based
access control to the page routes:

    /detailer/pending   signed-in detailer or admin
    /detailer...        admin, or an onboarded detailer with an active record
    /admin...           admin
    /auth/login         signed-in users are sent to their dashboard

Unauthorized roles are sent to the login page, same as anonymous users.
API routes (/api/...) are never redirected; their dependencies answer with
401/403 instead.

The decision itself is the pure function evaluate_route(); the middleware
only gathers its inputs through a ProfileLookup.
"""

import logging
from typing import Mapping, Optional

from pydantic import BaseModel
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, RedirectResponse, Response

from detailing_backend.app.core.config import settings
from detailing_backend.app.core.dependencies import extract_access_token, session_user_from_token
from detailing_backend.app.core.exceptions import ConfigurationError
from detailing_backend.app.db import session as session_module
from detailing_backend.app.models.detailer import Detailer
from detailing_backend.app.models.enums import UserRole
from detailing_backend.app.models.profile import Profile
from detailing_backend.app.schemas.auth import SessionUser

logger = logging.getLogger(__name__)

LOGIN_PATH = "/auth/login"
ONBOARD_PATH = "/onboard"
PENDING_PATH = "/detailer/pending"
DETAILER_PREFIX = "/detailer"
ADMIN_PREFIX = "/admin"
ADMIN_HOME = "/admin/dashboard"
DETAILER_HOME = "/detailer/dashboard"


class GuardProfile(BaseModel):
    """Role and onboarding flag of the signed-in profile."""
    role: Optional[UserRole] = None
    onboarding_completed: bool = False


class GuardContext(BaseModel):
    """
    Everything the guard knows about the caller.

    profile is None when the profile could not be read (missing row or
    query error); detailer_active is None when there is no readable
    detailer record.
    """
    session_user: Optional[SessionUser] = None
    profile: Optional[GuardProfile] = None
    detailer_active: Optional[bool] = None

    @property
    def authenticated(self) -> bool:
        return self.session_user is not None

    @property
    def has_detailer_record(self) -> bool:
        return self.detailer_active is not None


class RouteDecision(BaseModel):
    redirect_to: Optional[str] = None

    class Config:
        frozen = True

    @property
    def allowed(self) -> bool:
        return self.redirect_to is None


ALLOW = RouteDecision()


def _redirect(path: str) -> RouteDecision:
    return RouteDecision(redirect_to=path)


def _under(path: str, prefix: str) -> bool:
    return path == prefix or path.startswith(prefix + "/")


def is_guarded_path(path: str) -> bool:
    return _under(path, DETAILER_PREFIX) or _under(path, ADMIN_PREFIX) or path.startswith(LOGIN_PATH)


def evaluate_route(path: str, query: Mapping[str, str], ctx: GuardContext) -> RouteDecision:
    """Decide whether a page request passes or where it is redirected."""
    if path == PENDING_PATH:
        if ctx.profile is None or ctx.profile.role not in (UserRole.DETAILER, UserRole.ADMIN):
            return _redirect(LOGIN_PATH)
        return ALLOW

    if _under(path, DETAILER_PREFIX):
        if ctx.profile is None or ctx.profile.role not in (UserRole.DETAILER, UserRole.ADMIN):
            return _redirect(LOGIN_PATH)
        if ctx.profile.role == UserRole.ADMIN:
            return ALLOW
        if not ctx.profile.onboarding_completed:
            return _redirect(ONBOARD_PATH)
        if not ctx.detailer_active:
            return _redirect(PENDING_PATH)
        return ALLOW

    if _under(path, ADMIN_PREFIX):
        if ctx.profile is None or ctx.profile.role != UserRole.ADMIN:
            return _redirect(LOGIN_PATH)
        return ALLOW

    if path.startswith(LOGIN_PATH) and ctx.authenticated:
        if query.get("switch") == "true":
            return ALLOW
        if ctx.profile is None:
            # Profile unreadable: stay on the login page unless a detailer record exists
            return _redirect(PENDING_PATH) if ctx.has_detailer_record else ALLOW

        role = ctx.profile.role
        if role is None and ctx.has_detailer_record:
            role = UserRole.DETAILER
        if role == UserRole.ADMIN:
            return _redirect(ADMIN_HOME)
        if role == UserRole.DETAILER:
            return _redirect(DETAILER_HOME if ctx.detailer_active else PENDING_PATH)

    return ALLOW


class ProfileLookup:
    """Reads the guard inputs for a signed-in account."""

    async def get_profile(self, user_id: str) -> Optional[GuardProfile]:
        try:
            async with session_module.AsyncSessionLocal() as db:
                result = await db.execute(
                    select(Profile.role, Profile.onboarding_completed).where(Profile.id == user_id)
                )
                row = result.first()
        except SQLAlchemyError as e:
            logger.warning("Route guard profile lookup failed", extra={"user_id": user_id, "error": str(e)})
            return None

        if row is None:
            logger.warning("Route guard found no profile", extra={"user_id": user_id})
            return None
        try:
            role = UserRole(row.role) if row.role else None
        except ValueError:
            role = None
        return GuardProfile(role=role, onboarding_completed=bool(row.onboarding_completed))

    async def get_detailer_active(self, user_id: str) -> Optional[bool]:
        try:
            async with session_module.AsyncSessionLocal() as db:
                result = await db.execute(select(Detailer.is_active).where(Detailer.profile_id == user_id))
                row = result.first()
        except SQLAlchemyError as e:
            logger.warning("Route guard detailer lookup failed", extra={"user_id": user_id, "error": str(e)})
            return None
        if row is None:
            return None
        return bool(row.is_active)

    async def build_context(self, session_user: Optional[SessionUser]) -> GuardContext:
        if session_user is None:
            return GuardContext()
        return GuardContext(
            session_user=session_user,
            profile=await self.get_profile(session_user.id),
            detailer_active=await self.get_detailer_active(session_user.id),
        )


class RouteGuardMiddleware(BaseHTTPMiddleware):
    def __init__(self, app, lookup: Optional[ProfileLookup] = None):
        super().__init__(app)
        self.lookup = lookup or ProfileLookup()

    async def dispatch(self, request: Request, call_next) -> Response:
        path = request.url.path
        if not is_guarded_path(path):
            return await call_next(request)

        if not settings.jwt_secret:
            logger.error("Missing session verification secret, check the environment")
            error = ConfigurationError("JWT secret")
            return JSONResponse(status_code=error.status_code, content={"error": error.message})

        if path.startswith(LOGIN_PATH) and request.query_params.get("switch") == "true":
            return await call_next(request)

        session_user = session_user_from_token(extract_access_token(request))
        ctx = await self.lookup.build_context(session_user)
        decision = evaluate_route(path, request.query_params, ctx)
        if decision.allowed:
            return await call_next(request)

        logger.info(
            "Route guard redirect",
            extra={"path": path, "redirect_to": decision.redirect_to, "authenticated": ctx.authenticated},
        )
        return RedirectResponse(url=decision.redirect_to, status_code=307)
