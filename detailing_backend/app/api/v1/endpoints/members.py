"""
Organization Member API Endpoints.

Membership management inside the caller's own organization. Capability
checks happen in MemberService.
"""

from fastapi import APIRouter, Depends, Path
from sqlalchemy.ext.asyncio import AsyncSession

from detailing_backend.app.core.guards import get_detailer_identity
from detailing_backend.app.db.session import get_db
from detailing_backend.app.domain.organizations.member_service import MemberService
from detailing_backend.app.schemas.auth import Identity
from detailing_backend.app.schemas.organization import (
    InviteMemberRequest,
    MemberActionResponse,
    OrganizationMemberListResponse,
    UpdateMemberRoleRequest,
)

router = APIRouter(prefix="/detailer/members", tags=["Organization Members"])


@router.get("", response_model=OrganizationMemberListResponse)
async def list_members(
    identity: Identity = Depends(get_detailer_identity),
    db: AsyncSession = Depends(get_db)
):
    members = await MemberService.list_members(db, identity)
    return OrganizationMemberListResponse(data=members)


@router.post("/invite", response_model=MemberActionResponse)
async def invite_member(
    body: InviteMemberRequest,
    identity: Identity = Depends(get_detailer_identity),
    db: AsyncSession = Depends(get_db)
):
    """Invite by email. Only owners may invite owners."""
    await MemberService.invite_member(db, identity, body.email, body.role)
    return MemberActionResponse(message="Invitation sent")


@router.patch("/{profile_id}/role", response_model=MemberActionResponse)
async def update_member_role(
    body: UpdateMemberRoleRequest,
    profile_id: str = Path(..., description="Member profile ID"),
    identity: Identity = Depends(get_detailer_identity),
    db: AsyncSession = Depends(get_db)
):
    await MemberService.update_member_role(db, identity, profile_id, body.role)
    return MemberActionResponse(message="Member role updated")


@router.post("/{profile_id}/suspend", response_model=MemberActionResponse)
async def suspend_member(
    profile_id: str = Path(..., description="Member profile ID"),
    identity: Identity = Depends(get_detailer_identity),
    db: AsyncSession = Depends(get_db)
):
    await MemberService.set_member_active(db, identity, profile_id, is_active=False)
    return MemberActionResponse(message="Member suspended")


@router.post("/{profile_id}/activate", response_model=MemberActionResponse)
async def activate_member(
    profile_id: str = Path(..., description="Member profile ID"),
    identity: Identity = Depends(get_detailer_identity),
    db: AsyncSession = Depends(get_db)
):
    await MemberService.set_member_active(db, identity, profile_id, is_active=True)
    return MemberActionResponse(message="Member activated")


@router.delete("/{profile_id}", response_model=MemberActionResponse)
async def remove_member(
    profile_id: str = Path(..., description="Member profile ID"),
    identity: Identity = Depends(get_detailer_identity),
    db: AsyncSession = Depends(get_db)
):
    await MemberService.remove_member(db, identity, profile_id)
    return MemberActionResponse(message="Member removed")
