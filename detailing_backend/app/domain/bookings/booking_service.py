"""
Booking Service (Domain Logic).

Typed read access to bookings and the named status-changing commands.

Reads go through the ORM mappings of the bookings table and its joins.
Writes never touch booking columns directly: every state change is a call
to the platform's status procedures, which own transition legality and
ordering. Callers check capabilities before invoking a command; the
coordination helpers below do that for them.
"""

import logging
from typing import Any, Callable, List, Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from detailing_backend.app.core.exceptions import (
    ContractViolationError,
    InsufficientPermissionsError,
    RequestValidationFailed,
    ResourceNotFoundError,
    UpstreamServiceError,
)
from detailing_backend.app.core.idempotency import claim_command, release_command
from detailing_backend.app.db import rpc
from detailing_backend.app.domain.access.mode import mode_resolver
from detailing_backend.app.domain.access.permissions import (
    can_assign_jobs,
    can_update_booking_status,
    can_view_all_org_bookings,
)
from detailing_backend.app.models.booking import Booking
from detailing_backend.app.models.enums import BookingStatus, DetailerMode, OrganizationRole
from detailing_backend.app.schemas.auth import Identity
from detailing_backend.app.schemas.booking import AvailabilityCheckRequest, BookingFilters, BookingRecord

logger = logging.getLogger(__name__)

def _joined_relations():
    # Built per query; loader options configure the mappers when created
    return (
        selectinload(Booking.service),
        selectinload(Booking.car),
        selectinload(Booking.user),
        selectinload(Booking.detailer),
        selectinload(Booking.team),
    )

_ORDER_COLUMNS = {
    "scheduled_date": Booking.scheduled_date,
    "created_at": Booking.created_at,
}


class BookingService:

    @staticmethod
    async def list_bookings(db: AsyncSession, filters: Optional[BookingFilters] = None) -> List[Booking]:
        """
        List bookings matching the filters, joined with their relations.

        Ordering: filters.order_by in the requested direction, then
        scheduled_time_start ascending with nulls last. Never more than
        filters.limit rows.
        """
        filters = filters or BookingFilters()

        stmt = select(Booking).options(*_joined_relations())

        statuses = filters.statuses
        if statuses:
            stmt = stmt.where(Booking.status.in_([s.value for s in statuses]))
        if filters.detailer_id:
            stmt = stmt.where(Booking.detailer_id == filters.detailer_id)
        if filters.organization_id:
            stmt = stmt.where(Booking.organization_id == filters.organization_id)
        if filters.from_date:
            stmt = stmt.where(Booking.scheduled_date >= filters.from_date)
        if filters.to_date:
            stmt = stmt.where(Booking.scheduled_date <= filters.to_date)

        primary = _ORDER_COLUMNS[filters.order_by]
        stmt = stmt.order_by(
            primary.asc() if filters.ascending else primary.desc(),
            Booking.scheduled_time_start.asc().nulls_last(),
        ).limit(filters.limit)

        result = await db.execute(stmt)
        return list(result.scalars().all())

    @staticmethod
    async def get_booking_by_id(db: AsyncSession, booking_id: str) -> Booking:
        """
        Fetch one fully joined booking.

        Raises:
            ResourceNotFoundError: when the row is missing or the query fails.
                Callers cannot tell the two apart; the log can.
        """
        try:
            result = await db.execute(
                select(Booking).options(*_joined_relations()).where(Booking.id == booking_id)
            )
            booking = result.scalar_one_or_none()
        except SQLAlchemyError as e:
            await db.rollback()
            logger.warning(
                "Booking lookup failed, reporting as not found",
                extra={"booking_id": booking_id, "cause": "query_error", "error": str(e)},
            )
            raise ResourceNotFoundError("Booking", booking_id)

        if booking is None:
            logger.info("Booking not found", extra={"booking_id": booking_id, "cause": "missing_row"})
            raise ResourceNotFoundError("Booking", booking_id)
        return booking

    # Commands

    @staticmethod
    async def _run_command(
        db: AsyncSession,
        command: str,
        procedure: str,
        params: dict,
        action: str,
        booking_id: str,
        idempotency_key: Optional[str] = None,
        actor_id: Optional[str] = None,
    ) -> BookingRecord:
        claimed = await claim_command(command, booking_id, idempotency_key, actor_id)
        try:
            rows = await rpc.call_rpc(db, procedure, params, commit=True)
            record = rpc.unwrap_record(rows)
            if record is None:
                logger.error("%s returned no result", procedure, extra={"booking_id": booking_id})
                raise UpstreamServiceError(f"Failed to {action}", details={"procedure": procedure})
            return rpc.parse_result(procedure, BookingRecord, record)
        except UpstreamServiceError as e:
            if claimed:
                await release_command(command, booking_id, idempotency_key, actor_id)
            if isinstance(e, ContractViolationError):
                raise
            raise UpstreamServiceError(
                f"Failed to {action}",
                details={"procedure": procedure, "error": e.details.get("error", e.message)},
            )

    @staticmethod
    async def update_status(
        db: AsyncSession,
        booking_id: str,
        new_status: BookingStatus,
        idempotency_key: Optional[str] = None,
        actor_id: Optional[str] = None,
    ) -> BookingRecord:
        """Request a transition; the procedure decides whether it is legal."""
        return await BookingService._run_command(
            db,
            command="update_status",
            procedure="update_booking_status",
            params={"p_booking_id": booking_id, "p_new_status": BookingStatus(new_status).value},
            action="update booking status",
            booking_id=booking_id,
            idempotency_key=idempotency_key,
            actor_id=actor_id,
        )

    @staticmethod
    async def assign_detailer(
        db: AsyncSession,
        booking_id: str,
        detailer_id: str,
        idempotency_key: Optional[str] = None,
        actor_id: Optional[str] = None,
    ) -> BookingRecord:
        """Reassign a booking. Performs no role check of its own."""
        return await BookingService._run_command(
            db,
            command="assign_detailer",
            procedure="assign_detailer_to_booking",
            params={"p_booking_id": booking_id, "p_detailer_id": detailer_id},
            action="assign detailer",
            booking_id=booking_id,
            idempotency_key=idempotency_key,
            actor_id=actor_id,
        )

    @staticmethod
    async def accept_booking(
        db: AsyncSession,
        booking_id: str,
        idempotency_key: Optional[str] = None,
        actor_id: Optional[str] = None,
    ) -> BookingRecord:
        return await BookingService._run_command(
            db,
            command="accept_booking",
            procedure="accept_booking",
            params={"p_booking_id": booking_id},
            action="accept booking",
            booking_id=booking_id,
            idempotency_key=idempotency_key,
            actor_id=actor_id,
        )

    @staticmethod
    async def cancel_booking(
        db: AsyncSession,
        booking_id: str,
        idempotency_key: Optional[str] = None,
        actor_id: Optional[str] = None,
    ) -> BookingRecord:
        return await BookingService.update_status(
            db, booking_id, BookingStatus.CANCELLED, idempotency_key=idempotency_key, actor_id=actor_id
        )

    # Coordination (capability-gated)

    @staticmethod
    async def _require_capability(
        db: AsyncSession,
        identity: Identity,
        check: Callable[[Optional[OrganizationRole]], bool],
        message: str,
    ) -> None:
        """
        Admins and solo detailers act on their own bookings freely; inside an
        organization the member's role must grant the capability.
        """
        if identity.is_admin:
            return
        mode = await mode_resolver.resolve_mode(db, identity)
        if mode == DetailerMode.SOLO:
            return
        organization = await mode_resolver.resolve_organization(db, identity)
        role = None
        if organization is not None:
            role = await mode_resolver.resolve_role(db, organization.id, identity)
        if not check(role):
            logger.info(
                "Capability denied",
                extra={"profile_id": identity.profile_id, "role": role.value if role else None},
            )
            raise InsufficientPermissionsError(message)

    @staticmethod
    async def assign_job_to_detailer(
        db: AsyncSession,
        identity: Identity,
        booking_id: str,
        detailer_id: str,
        idempotency_key: Optional[str] = None,
    ) -> BookingRecord:
        await BookingService._require_capability(
            db, identity, can_assign_jobs, "You do not have permission to assign jobs"
        )
        return await BookingService.assign_detailer(
            db, booking_id, detailer_id, idempotency_key, actor_id=identity.profile_id
        )

    @staticmethod
    async def change_booking_status(
        db: AsyncSession,
        identity: Identity,
        booking_id: str,
        new_status: BookingStatus,
        idempotency_key: Optional[str] = None,
    ) -> BookingRecord:
        await BookingService._require_capability(
            db, identity, can_update_booking_status, "You do not have permission to update booking status"
        )
        return await BookingService.update_status(
            db, booking_id, new_status, idempotency_key, actor_id=identity.profile_id
        )

    @staticmethod
    async def list_visible_bookings(
        db: AsyncSession,
        identity: Identity,
        filters: Optional[BookingFilters] = None,
    ) -> List[Booking]:
        """
        Bookings the acting detailer may see on their board.

        Organization members whose role can view all organization bookings
        see the whole organization; everyone else sees their own jobs.
        """
        filters = filters or BookingFilters()
        if identity.is_admin:
            return await BookingService.list_bookings(db, filters)

        detailer = await mode_resolver.get_detailer_record(db, identity)
        if detailer is None:
            return []

        if detailer.organization_id:
            role = await mode_resolver.resolve_role(db, detailer.organization_id, identity)
            if can_view_all_org_bookings(role):
                scoped = filters.model_copy(
                    update={"organization_id": detailer.organization_id, "detailer_id": None}
                )
                return await BookingService.list_bookings(db, scoped)

        scoped = filters.model_copy(update={"detailer_id": detailer.id, "organization_id": None})
        return await BookingService.list_bookings(db, scoped)

    # Availability

    @staticmethod
    async def check_availability(db: AsyncSession, request: AvailabilityCheckRequest) -> Any:
        """
        Ask the platform whether any detailer can take a booking at this
        place and time. Required fields are checked before the call.
        """
        if request.booking_date is None or request.booking_time_start is None:
            raise RequestValidationFailed("booking_date and booking_time_start are required")
        if request.booking_lat is None or request.booking_lng is None:
            raise RequestValidationFailed("booking_lat and booking_lng are required")

        try:
            rows = await rpc.call_rpc(
                db,
                "check_detailer_availability_in_radius",
                {
                    "p_booking_date": request.booking_date,
                    "p_booking_time_start": request.booking_time_start,
                    "p_booking_lat": request.booking_lat,
                    "p_booking_lng": request.booking_lng,
                    "p_booking_time_end": request.booking_time_end,
                    "p_service_duration_minutes": request.service_duration_minutes,
                    "p_exclude_org_detailers": request.exclude_org_detailers,
                },
            )
        except UpstreamServiceError as e:
            raise UpstreamServiceError("Failed to check availability", details=e.details)

        # Scalar or json results come back as a single one-column row
        if len(rows) == 1 and len(rows[0]) == 1:
            return next(iter(rows[0].values()))
        return rows
