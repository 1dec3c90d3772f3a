"""
Organization Member Service (Domain Logic).

Membership management for the acting detailer's own organization. The
organization and the caller's role come from the mode resolver; every
action is checked against the permission evaluator before the platform
procedure (or the membership row update) is invoked.
"""

import logging
from typing import List, Tuple

from sqlalchemy import update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from detailing_backend.app.core.exceptions import (
    InsufficientPermissionsError,
    RequestValidationFailed,
    ResourceNotFoundError,
    UpstreamServiceError,
)
from detailing_backend.app.db import rpc
from detailing_backend.app.domain.access.mode import mode_resolver
from detailing_backend.app.domain.access.permissions import (
    can_change_member_roles,
    can_manage_members,
    can_remove_members,
)
from detailing_backend.app.models.enums import OrganizationRole
from detailing_backend.app.models.organization import OrganizationMember
from detailing_backend.app.schemas.auth import Identity
from detailing_backend.app.schemas.organization import OrganizationMemberResponse, OrganizationSummary

logger = logging.getLogger(__name__)


async def _organization_and_role(
    db: AsyncSession, identity: Identity
) -> Tuple[OrganizationSummary, OrganizationRole]:
    organization = await mode_resolver.resolve_organization(db, identity)
    if organization is None:
        raise ResourceNotFoundError("Organization")
    role = await mode_resolver.resolve_role(db, organization.id, identity)
    if role is None:
        raise ResourceNotFoundError("Organization", organization.id)
    return organization, role


class MemberService:

    @staticmethod
    async def list_members(db: AsyncSession, identity: Identity) -> List[OrganizationMemberResponse]:
        organization, _ = await _organization_and_role(db, identity)
        rows = await rpc.call_rpc(db, "get_organization_members", {"p_organization_id": organization.id})
        return rpc.parse_results("get_organization_members", OrganizationMemberResponse, rows)

    @staticmethod
    async def invite_member(
        db: AsyncSession,
        identity: Identity,
        email: str,
        role: OrganizationRole,
    ) -> dict:
        """
        Invite someone by email. Only owners may invite other owners.

        Returns the procedure's invitation payload (may be empty).
        """
        organization, caller_role = await _organization_and_role(db, identity)
        if not can_manage_members(caller_role):
            raise InsufficientPermissionsError("You do not have permission to invite members")
        if role == OrganizationRole.OWNER and caller_role != OrganizationRole.OWNER:
            raise InsufficientPermissionsError("Only owners can invite other owners")

        try:
            rows = await rpc.call_rpc(
                db,
                "invite_member",
                {"p_organization_id": organization.id, "p_email": email, "p_role": role.value},
                commit=True,
            )
        except UpstreamServiceError as e:
            raise UpstreamServiceError("Failed to invite member", details=e.details)

        logger.info(
            "Member invited",
            extra={"organization_id": organization.id, "invited_by": identity.profile_id, "role": role.value},
        )
        return rpc.unwrap_record(rows) or {}

    @staticmethod
    async def update_member_role(
        db: AsyncSession,
        identity: Identity,
        profile_id: str,
        new_role: OrganizationRole,
    ) -> None:
        organization, caller_role = await _organization_and_role(db, identity)
        if not can_change_member_roles(caller_role):
            raise InsufficientPermissionsError("You do not have permission to change member roles")

        try:
            await rpc.call_rpc(
                db,
                "update_member_role",
                {"p_organization_id": organization.id, "p_profile_id": profile_id, "p_new_role": new_role.value},
                commit=True,
            )
        except UpstreamServiceError as e:
            raise UpstreamServiceError("Failed to update member role", details=e.details)

    @staticmethod
    async def set_member_active(
        db: AsyncSession,
        identity: Identity,
        profile_id: str,
        is_active: bool,
    ) -> None:
        """Suspend (is_active=False) or reactivate a member."""
        verb = "activate" if is_active else "suspend"
        organization, caller_role = await _organization_and_role(db, identity)
        if not can_remove_members(caller_role):
            raise InsufficientPermissionsError(f"You do not have permission to {verb} members")
        if not is_active and profile_id == identity.profile_id:
            raise RequestValidationFailed("You cannot suspend yourself")

        try:
            result = await db.execute(
                update(OrganizationMember)
                .where(
                    OrganizationMember.organization_id == organization.id,
                    OrganizationMember.profile_id == profile_id,
                )
                .values(is_active=is_active)
            )
            await db.commit()
        except SQLAlchemyError as e:
            await db.rollback()
            raise UpstreamServiceError(f"Failed to {verb} member", details={"error": str(e)})

        if result.rowcount == 0:
            raise ResourceNotFoundError("Member", profile_id)

    @staticmethod
    async def remove_member(db: AsyncSession, identity: Identity, profile_id: str) -> None:
        organization, caller_role = await _organization_and_role(db, identity)
        if not can_remove_members(caller_role):
            raise InsufficientPermissionsError("You do not have permission to remove members")
        if profile_id == identity.profile_id:
            raise RequestValidationFailed("You cannot remove yourself")

        try:
            await rpc.call_rpc(
                db,
                "remove_member",
                {"p_organization_id": organization.id, "p_profile_id": profile_id},
                commit=True,
            )
        except UpstreamServiceError as e:
            raise UpstreamServiceError("Failed to remove member", details=e.details)

        logger.info(
            "Member removed",
            extra={"organization_id": organization.id, "removed_by": identity.profile_id, "profile_id": profile_id},
        )
