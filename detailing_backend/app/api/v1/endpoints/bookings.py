"""
Booking API Endpoints.

Admin booking listing and detail, plus the public availability check used
before a booking is created.
"""

from datetime import date
from typing import List, Optional, Union

from fastapi import APIRouter, Depends, Path, Query
from sqlalchemy.ext.asyncio import AsyncSession

from detailing_backend.app.core.exceptions import RequestValidationFailed
from detailing_backend.app.core.guards import require_api_admin
from detailing_backend.app.db.session import get_db
from detailing_backend.app.domain.bookings.booking_service import BookingService
from detailing_backend.app.models.enums import BookingStatus
from detailing_backend.app.schemas.auth import UserProfile
from detailing_backend.app.schemas.booking import (
    AvailabilityCheckRequest,
    BookingDetailResponse,
    BookingFilters,
    BookingListResponse,
    BookingResponse,
)

router = APIRouter(prefix="/bookings", tags=["Bookings"])


def parse_status_param(value: Optional[str]) -> Optional[Union[BookingStatus, List[BookingStatus]]]:
    """Single status, or a comma-separated set matching any of them."""
    if not value:
        return None
    try:
        if "," in value:
            return [BookingStatus(part.strip()) for part in value.split(",") if part.strip()]
        return BookingStatus(value.strip())
    except ValueError:
        raise RequestValidationFailed(f"Invalid status: {value}")


@router.get("", response_model=BookingListResponse)
async def list_bookings(
    status: Optional[str] = Query(None, description="Status or comma-separated statuses"),
    detailer_id: Optional[str] = Query(None, alias="detailerId"),
    organization_id: Optional[str] = Query(None, alias="organizationId"),
    from_date: Optional[date] = Query(None, alias="fromDate"),
    to_date: Optional[date] = Query(None, alias="toDate"),
    limit: Optional[int] = Query(None, ge=1),
    order_by: Optional[str] = Query(None, alias="orderBy"),
    ascending: Optional[str] = Query(None),
    admin: UserProfile = Depends(require_api_admin),
    db: AsyncSession = Depends(get_db)
):
    """
    List bookings for the admin console.

    orderBy accepts created_at; anything else orders by scheduled_date.
    ascending is true unless given as "false".
    """
    overrides = {"limit": limit} if limit is not None else {}
    filters = BookingFilters(
        status=parse_status_param(status),
        detailer_id=detailer_id,
        organization_id=organization_id,
        from_date=from_date,
        to_date=to_date,
        order_by="created_at" if order_by == "created_at" else "scheduled_date",
        ascending=ascending != "false",
        **overrides,
    )

    bookings = await BookingService.list_bookings(db, filters)
    return BookingListResponse(data=[BookingResponse.model_validate(b) for b in bookings])


@router.post("/check-availability")
async def check_availability(
    request: AvailabilityCheckRequest,
    db: AsyncSession = Depends(get_db)
):
    """Whether any detailer can serve the given place and time window."""
    data = await BookingService.check_availability(db, request)
    return {"data": data}


@router.get("/{booking_id}", response_model=BookingDetailResponse)
async def get_booking(
    booking_id: str = Path(..., description="Booking ID"),
    admin: UserProfile = Depends(require_api_admin),
    db: AsyncSession = Depends(get_db)
):
    booking = await BookingService.get_booking_by_id(db, booking_id)
    return BookingDetailResponse(data=BookingResponse.model_validate(booking))
