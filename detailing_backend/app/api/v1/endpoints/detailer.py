"""
Detailer API Endpoints.

The acting detailer's context (mode, organization, capabilities), booking
board and booking commands, and pricing model switching.

Status-changing commands accept an optional Idempotency-Key header; a
replay of the same key for the same booking inside the dedupe window is
answered with 409.
"""

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Header, Path, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from detailing_backend.app.api.v1.endpoints.bookings import parse_status_param
from detailing_backend.app.core.guards import get_detailer_identity
from detailing_backend.app.core.observability import get_request_id
from detailing_backend.app.db.session import get_db
from detailing_backend.app.domain.access.mode import mode_resolver
from detailing_backend.app.domain.access.permissions import get_role_permissions
from detailing_backend.app.domain.billing.pricing_model_service import PricingModelService
from detailing_backend.app.domain.bookings.booking_service import BookingService
from detailing_backend.app.models.enums import BookingStatus, DetailerMode
from detailing_backend.app.schemas.auth import Identity
from detailing_backend.app.schemas.billing import SwitchPricingModelRequest, SwitchPricingModelResponse
from detailing_backend.app.schemas.booking import (
    AssignDetailerRequest,
    BookingCommandResponse,
    BookingFilters,
    BookingListResponse,
    BookingResponse,
    StatusUpdateRequest,
)
from detailing_backend.app.schemas.organization import DetailerContextResponse

router = APIRouter(prefix="/detailer", tags=["Detailer"])


@router.get("/permissions", response_model=DetailerContextResponse)
async def get_detailer_context(
    identity: Identity = Depends(get_detailer_identity),
    db: AsyncSession = Depends(get_db)
):
    """Mode, organization, role and capability set of the caller."""
    mode = await mode_resolver.resolve_mode(db, identity)
    organization = None
    role = None
    if mode == DetailerMode.ORGANIZATION:
        organization = await mode_resolver.resolve_organization(db, identity)
        if organization is not None:
            role = await mode_resolver.resolve_role(db, organization.id, identity)

    return DetailerContextResponse(
        mode=mode,
        organization=organization,
        role=role,
        permissions=get_role_permissions(role),
    )


@router.get("/bookings", response_model=BookingListResponse)
async def list_my_bookings(
    status: Optional[str] = Query(None, description="Status or comma-separated statuses"),
    from_date: Optional[date] = Query(None, alias="fromDate"),
    to_date: Optional[date] = Query(None, alias="toDate"),
    identity: Identity = Depends(get_detailer_identity),
    db: AsyncSession = Depends(get_db)
):
    filters = BookingFilters(status=parse_status_param(status), from_date=from_date, to_date=to_date)
    bookings = await BookingService.list_visible_bookings(db, identity, filters)
    return BookingListResponse(data=[BookingResponse.model_validate(b) for b in bookings])


@router.post("/bookings/{booking_id}/assign", response_model=BookingCommandResponse)
async def assign_booking(
    body: AssignDetailerRequest,
    booking_id: str = Path(..., description="Booking ID"),
    idempotency_key: Optional[str] = Header(None, alias="Idempotency-Key"),
    identity: Identity = Depends(get_detailer_identity),
    db: AsyncSession = Depends(get_db)
):
    """Dispatch a booking to a detailer (requires the assign-jobs capability)."""
    record = await BookingService.assign_job_to_detailer(
        db, identity, booking_id, body.detailer_id, idempotency_key
    )
    return BookingCommandResponse(data=record)


@router.post("/bookings/{booking_id}/accept", response_model=BookingCommandResponse)
async def accept_booking(
    booking_id: str = Path(..., description="Booking ID"),
    idempotency_key: Optional[str] = Header(None, alias="Idempotency-Key"),
    identity: Identity = Depends(get_detailer_identity),
    db: AsyncSession = Depends(get_db)
):
    record = await BookingService.accept_booking(
        db, booking_id, idempotency_key, actor_id=identity.profile_id
    )
    return BookingCommandResponse(data=record)


@router.post("/bookings/{booking_id}/status", response_model=BookingCommandResponse)
async def update_booking_status(
    body: StatusUpdateRequest,
    booking_id: str = Path(..., description="Booking ID"),
    idempotency_key: Optional[str] = Header(None, alias="Idempotency-Key"),
    identity: Identity = Depends(get_detailer_identity),
    db: AsyncSession = Depends(get_db)
):
    record = await BookingService.change_booking_status(
        db, identity, booking_id, body.status, idempotency_key
    )
    return BookingCommandResponse(data=record)


@router.post("/bookings/{booking_id}/cancel", response_model=BookingCommandResponse)
async def cancel_booking(
    booking_id: str = Path(..., description="Booking ID"),
    idempotency_key: Optional[str] = Header(None, alias="Idempotency-Key"),
    identity: Identity = Depends(get_detailer_identity),
    db: AsyncSession = Depends(get_db)
):
    record = await BookingService.change_booking_status(
        db, identity, booking_id, BookingStatus.CANCELLED, idempotency_key
    )
    return BookingCommandResponse(data=record)


@router.post("/switch-pricing-model", response_model=SwitchPricingModelResponse)
async def switch_pricing_model(
    body: SwitchPricingModelRequest,
    request: Request,
    identity: Identity = Depends(get_detailer_identity),
    db: AsyncSession = Depends(get_db)
):
    """Move between subscription and pay-per-booking pricing."""
    return await PricingModelService.switch_pricing_model(
        db, identity, body.pricing_model, request_id=get_request_id(request)
    )
