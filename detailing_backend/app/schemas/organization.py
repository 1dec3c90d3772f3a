"""
Organization, membership and detailer-record schemas.

These also serve as the validated result types of the membership
procedures (get_user_organization, get_organization_members, ...).
"""

from pydantic import BaseModel, Field
from datetime import datetime
from typing import List, Optional
from detailing_backend.app.models.enums import DetailerMode, OrganizationRole, PricingModel


class DetailerRecord(BaseModel):
    """Result of get_detailer_by_profile."""
    id: str
    profile_id: str
    organization_id: Optional[str] = None
    pricing_model: Optional[PricingModel] = None
    is_active: bool = False
    full_name: Optional[str] = None

    class Config:
        from_attributes = True
        extra = "ignore"


class OrganizationSummary(BaseModel):
    """Result row of get_user_organization."""
    id: str
    name: str
    role: Optional[OrganizationRole] = None
    is_active: Optional[bool] = None

    class Config:
        from_attributes = True
        extra = "ignore"


class OrganizationMemberResponse(BaseModel):
    """Result row of get_organization_members."""
    profile_id: str
    role: OrganizationRole
    is_active: bool = True
    full_name: Optional[str] = None
    email: Optional[str] = None
    joined_at: Optional[datetime] = None

    class Config:
        from_attributes = True
        extra = "ignore"


class OrganizationMemberListResponse(BaseModel):
    data: List[OrganizationMemberResponse]


class InviteMemberRequest(BaseModel):
    email: str = Field(..., min_length=3, max_length=255)
    role: OrganizationRole = OrganizationRole.DETAILER


class UpdateMemberRoleRequest(BaseModel):
    role: OrganizationRole


class MemberActionResponse(BaseModel):
    success: bool = True
    message: Optional[str] = None


class RolePermissions(BaseModel):
    """Capability set for one organization role."""
    can_assign_jobs: bool = False
    can_manage_teams: bool = False
    can_manage_members: bool = False
    can_view_org_earnings: bool = False
    can_manage_org_settings: bool = False
    can_change_member_roles: bool = False
    can_remove_members: bool = False
    can_view_all_org_bookings: bool = False
    can_update_booking_status: bool = False
    can_create_payout_batches: bool = False

    class Config:
        frozen = True


class DetailerContextResponse(BaseModel):
    """Mode, organization, role and capability set of the acting detailer."""
    mode: DetailerMode
    organization: Optional[OrganizationSummary] = None
    role: Optional[OrganizationRole] = None
    permissions: RolePermissions
