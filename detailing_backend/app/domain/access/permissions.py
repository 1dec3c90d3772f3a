"""
Organization role permissions.

Pure mapping from an organization role to the capabilities that role holds.
Owner holds everything, manager everything except settings and role
changes, dispatcher only the dispatch capabilities, detailer none.
"""

from typing import Dict, FrozenSet, Optional, Union
from detailing_backend.app.models.enums import OrganizationRole
from detailing_backend.app.schemas.organization import RolePermissions

RoleInput = Union[OrganizationRole, str, None]

_OWNER = OrganizationRole.OWNER
_MANAGER = OrganizationRole.MANAGER
_DISPATCHER = OrganizationRole.DISPATCHER

# capability -> roles granted
CAPABILITY_GRANTS: Dict[str, FrozenSet[OrganizationRole]] = {
    "can_assign_jobs": frozenset({_OWNER, _MANAGER, _DISPATCHER}),
    "can_manage_teams": frozenset({_OWNER, _MANAGER}),
    "can_manage_members": frozenset({_OWNER, _MANAGER}),
    "can_view_org_earnings": frozenset({_OWNER, _MANAGER}),
    "can_manage_org_settings": frozenset({_OWNER}),
    "can_change_member_roles": frozenset({_OWNER}),
    "can_remove_members": frozenset({_OWNER, _MANAGER}),
    "can_view_all_org_bookings": frozenset({_OWNER, _MANAGER, _DISPATCHER}),
    "can_update_booking_status": frozenset({_OWNER, _MANAGER, _DISPATCHER}),
    "can_create_payout_batches": frozenset({_OWNER, _MANAGER}),
}


def normalize_role(role: RoleInput) -> Optional[OrganizationRole]:
    """Coerce a role value to OrganizationRole; unknown values become None."""
    if role is None or isinstance(role, OrganizationRole):
        return role
    try:
        return OrganizationRole(str(role).strip().lower())
    except ValueError:
        return None


def _granted(capability: str, role: RoleInput) -> bool:
    resolved = normalize_role(role)
    if resolved is None:
        return False
    return resolved in CAPABILITY_GRANTS[capability]


def can_assign_jobs(role: RoleInput) -> bool:
    return _granted("can_assign_jobs", role)


def can_manage_teams(role: RoleInput) -> bool:
    return _granted("can_manage_teams", role)


def can_manage_members(role: RoleInput) -> bool:
    return _granted("can_manage_members", role)


def can_view_org_earnings(role: RoleInput) -> bool:
    return _granted("can_view_org_earnings", role)


def can_manage_org_settings(role: RoleInput) -> bool:
    return _granted("can_manage_org_settings", role)


def can_change_member_roles(role: RoleInput) -> bool:
    return _granted("can_change_member_roles", role)


def can_remove_members(role: RoleInput) -> bool:
    return _granted("can_remove_members", role)


def can_view_all_org_bookings(role: RoleInput) -> bool:
    return _granted("can_view_all_org_bookings", role)


def can_update_booking_status(role: RoleInput) -> bool:
    return _granted("can_update_booking_status", role)


def can_create_payout_batches(role: RoleInput) -> bool:
    return _granted("can_create_payout_batches", role)


def get_role_permissions(role: RoleInput) -> RolePermissions:
    """
    Get all permissions for a role.

    Total over every input: None and unknown roles yield all-False.
    """
    return RolePermissions(**{capability: _granted(capability, role) for capability in CAPABILITY_GRANTS})
