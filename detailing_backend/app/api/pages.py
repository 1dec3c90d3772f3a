"""
Page routes.

Server-rendered pages of the web app, returning their page data as JSON.
Access to these paths is enforced first by the route guard middleware
(redirects); the dependencies here make the acting profile explicit.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Form, Path, Query, status
from fastapi.responses import RedirectResponse
from sqlalchemy.ext.asyncio import AsyncSession

from detailing_backend.app.core.dependencies import get_current_profile
from detailing_backend.app.core.guards import get_detailer_identity, require_api_admin, require_api_user
from detailing_backend.app.db.session import get_db
from detailing_backend.app.domain.access.mode import mode_resolver
from detailing_backend.app.domain.admin.admin_service import AdminService
from detailing_backend.app.domain.billing.platform_fees import summarize_booking_fees
from detailing_backend.app.domain.bookings.booking_service import BookingService
from detailing_backend.app.domain.bookings.booking_utils import (
    DateRange,
    SortKey,
    calculate_earnings,
    filter_bookings_by_date_range,
    sort_bookings,
)
from detailing_backend.app.models.enums import UserRole
from detailing_backend.app.schemas.admin import UserListItem, UserListResponse
from detailing_backend.app.schemas.auth import Identity, UserProfile
from detailing_backend.app.schemas.booking import BookingResponse, DetailerDashboardResponse

router = APIRouter(tags=["Pages"])


@router.get("/auth/login")
async def login_page(profile: Optional[UserProfile] = Depends(get_current_profile)):
    return {"page": "login", "authenticated": profile is not None}


@router.get("/onboard")
async def onboard_page(profile: UserProfile = Depends(require_api_user)):
    return {"page": "onboard", "profile_id": profile.id, "onboarding_completed": profile.onboarding_completed}


@router.get("/detailer/pending")
async def detailer_pending_page(
    identity: Identity = Depends(get_detailer_identity),
    db: AsyncSession = Depends(get_db)
):
    """Shown while a detailer application awaits approval."""
    detailer = await mode_resolver.get_detailer_record(db, identity)
    return {
        "page": "detailer_pending",
        "has_detailer_record": detailer is not None,
        "is_active": bool(detailer and detailer.is_active),
    }


@router.get("/detailer/dashboard", response_model=DetailerDashboardResponse)
async def detailer_dashboard(
    date_range: DateRange = Query("all", alias="range"),
    sort: SortKey = Query("time"),
    identity: Identity = Depends(get_detailer_identity),
    db: AsyncSession = Depends(get_db)
):
    """Jobs board with date-range filter, sort order, earnings and fee split."""
    bookings = await BookingService.list_visible_bookings(db, identity)
    bookings = sort_bookings(filter_bookings_by_date_range(bookings, date_range), sort)
    return DetailerDashboardResponse(
        range=date_range,
        sort=sort,
        bookings=[BookingResponse.model_validate(b) for b in bookings],
        earnings=calculate_earnings(bookings),
        fees=await summarize_booking_fees(db, bookings),
    )


@router.get("/admin/dashboard")
async def admin_dashboard(
    admin: UserProfile = Depends(require_api_admin),
    db: AsyncSession = Depends(get_db)
):
    """Account and open-booking counts, and platform fees on bookings paid today."""
    counts = await AdminService.dashboard_counts(db)
    fees_today = await AdminService.fees_today(db)
    return {
        "page": "admin_dashboard",
        **counts,
        "fees_today": fees_today.model_dump(mode="json", exclude={"by_booking"}),
    }


@router.get("/admin/users", response_model=UserListResponse)
async def admin_users_page(
    role: Optional[UserRole] = Query(None),
    admin: UserProfile = Depends(require_api_admin),
    db: AsyncSession = Depends(get_db)
):
    """Users, newest first, optionally filtered by role."""
    users = await AdminService.list_users(db, role)
    return UserListResponse(
        users=[UserListItem.model_validate(u) for u in users],
        role_filter=role,
        total=len(users),
    )


@router.post("/admin/users/{user_id}/role")
async def admin_update_user_role(
    user_id: str = Path(..., description="Profile ID"),
    role: UserRole = Form(...),
    admin: UserProfile = Depends(require_api_admin),
    db: AsyncSession = Depends(get_db)
):
    """Role form submission; redirects back to the user list."""
    await AdminService.update_user_role(db, user_id, role, admin_id=admin.id)
    return RedirectResponse(url="/admin/users", status_code=status.HTTP_303_SEE_OTHER)
