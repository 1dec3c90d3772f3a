"""
Detailer Mode Resolver.

Determines whether a detailer works solo or inside an organization, and
resolves the organization and the member's role when applicable.

Lookup failures follow an explicit FailurePolicy:
    FAIL_OPEN   - treat the failure as "no data" (solo / None) and log it
    FAIL_CLOSED - propagate the upstream error
"""

import enum
import logging
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from detailing_backend.app.core.exceptions import AuthenticationError, ContractViolationError, UpstreamServiceError
from detailing_backend.app.db import rpc
from detailing_backend.app.domain.access.permissions import normalize_role
from detailing_backend.app.models.enums import DetailerMode, OrganizationRole
from detailing_backend.app.schemas.auth import Identity
from detailing_backend.app.schemas.organization import DetailerRecord, OrganizationSummary

logger = logging.getLogger(__name__)


class FailurePolicy(str, enum.Enum):
    FAIL_OPEN = "fail_open"
    FAIL_CLOSED = "fail_closed"


def _target_profile_id(identity: Optional[Identity], profile_id: Optional[str]) -> str:
    if profile_id:
        return profile_id
    if identity is None:
        raise AuthenticationError("Not authenticated")
    return identity.profile_id


class ModeResolver:
    """
    Resolves detailer mode, organization and role for an explicit identity.

    Usage:
        resolver = ModeResolver()
        mode = await resolver.resolve_mode(db, identity)
        if mode == DetailerMode.ORGANIZATION:
            org = await resolver.resolve_organization(db, identity)
            role = await resolver.resolve_role(db, org.id, identity)
    """

    def __init__(self, policy: FailurePolicy = FailurePolicy.FAIL_OPEN):
        self.policy = policy

    def _handle_failure(self, what: str, profile_id: str, exc: UpstreamServiceError):
        if self.policy == FailurePolicy.FAIL_CLOSED:
            raise exc
        logger.warning(
            "Lookup failed, treating as no data",
            extra={"lookup": what, "profile_id": profile_id, "error": exc.details.get("error", exc.message)},
        )

    async def get_detailer_record(
        self,
        db: AsyncSession,
        identity: Optional[Identity] = None,
        profile_id: Optional[str] = None,
    ) -> Optional[DetailerRecord]:
        """Fetch the detailer record of a profile, or None when it has none."""
        target = _target_profile_id(identity, profile_id)
        try:
            rows = await rpc.call_rpc(db, "get_detailer_by_profile", {"p_profile_id": target})
        except UpstreamServiceError as e:
            self._handle_failure("get_detailer_by_profile", target, e)
            return None

        record = rpc.unwrap_record(rows)
        if record is None:
            return None
        return rpc.parse_result("get_detailer_by_profile", DetailerRecord, record)

    async def resolve_mode(
        self,
        db: AsyncSession,
        identity: Optional[Identity] = None,
        profile_id: Optional[str] = None,
    ) -> DetailerMode:
        """
        Solo when there is no detailer record or it has no organization;
        organization otherwise. A missing record is not an error.
        """
        detailer = await self.get_detailer_record(db, identity, profile_id)
        if detailer is None:
            return DetailerMode.SOLO
        if detailer.organization_id:
            return DetailerMode.ORGANIZATION
        return DetailerMode.SOLO

    async def resolve_organization(
        self,
        db: AsyncSession,
        identity: Optional[Identity] = None,
        profile_id: Optional[str] = None,
    ) -> Optional[OrganizationSummary]:
        target = _target_profile_id(identity, profile_id)
        try:
            rows = await rpc.call_rpc(db, "get_user_organization", {"p_profile_id": target})
        except UpstreamServiceError as e:
            self._handle_failure("get_user_organization", target, e)
            return None

        if not rows:
            return None
        return rpc.parse_result("get_user_organization", OrganizationSummary, rows[0])

    async def resolve_role(
        self,
        db: AsyncSession,
        organization_id: str,
        identity: Optional[Identity] = None,
        profile_id: Optional[str] = None,
    ) -> Optional[OrganizationRole]:
        """Role of the profile inside the organization, None if not a member."""
        target = _target_profile_id(identity, profile_id)
        try:
            value = await rpc.call_rpc_scalar(
                db,
                "get_user_role_in_organization",
                {"p_profile_id": target, "p_organization_id": organization_id},
            )
        except UpstreamServiceError as e:
            self._handle_failure("get_user_role_in_organization", target, e)
            return None

        if value is None:
            return None
        role = normalize_role(value)
        if role is None:
            raise ContractViolationError("get_user_role_in_organization", f"unknown role {value!r}")
        return role


mode_resolver = ModeResolver()
