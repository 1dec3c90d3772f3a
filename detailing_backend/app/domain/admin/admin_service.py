"""
Admin Service (Domain Logic).

User management and finance views for platform admins. Role changes,
payout listings and refund decisions are platform procedures; the user
list and dashboard counts are plain reads.
"""

import logging
from datetime import date, datetime, time, timezone
from typing import Dict, List, Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from detailing_backend.app.core.exceptions import UpstreamServiceError
from detailing_backend.app.db import rpc
from detailing_backend.app.domain.billing.platform_fees import summarize_booking_fees
from detailing_backend.app.models.booking import Booking
from detailing_backend.app.models.enums import BookingStatus, PaymentStatus, RefundAction, UserRole
from detailing_backend.app.models.profile import Profile
from detailing_backend.app.schemas.admin import PayoutRecord, RefundRequestRecord
from detailing_backend.app.schemas.billing import FeeSummary

logger = logging.getLogger(__name__)

USER_LIST_LIMIT = 100
DEFAULT_PAYOUT_PAGE = 100

# Bookings waiting on a detailer
_OPEN_STATUSES = (BookingStatus.PAID.value, BookingStatus.OFFERED.value)


class AdminService:

    @staticmethod
    async def list_users(db: AsyncSession, role: Optional[UserRole] = None) -> List[Profile]:
        """Newest profiles first, optionally restricted to one role."""
        stmt = select(Profile).order_by(Profile.created_at.desc()).limit(USER_LIST_LIMIT)
        if role is not None:
            stmt = stmt.where(Profile.role == role.value)
        result = await db.execute(stmt)
        return list(result.scalars().all())

    @staticmethod
    async def update_user_role(db: AsyncSession, user_id: str, new_role: UserRole, admin_id: str) -> None:
        try:
            await rpc.call_rpc(
                db,
                "update_user_role",
                {"p_user_id": user_id, "p_new_role": new_role.value},
                commit=True,
            )
        except UpstreamServiceError as e:
            raise UpstreamServiceError("Failed to update user role", details=e.details)

        logger.info(
            "User role updated",
            extra={"user_id": user_id, "new_role": new_role.value, "admin_id": admin_id},
        )

    @staticmethod
    async def dashboard_counts(db: AsyncSession) -> Dict[str, int]:
        users_by_role = await db.execute(select(Profile.role, func.count(Profile.id)).group_by(Profile.role))
        counts = {f"{role or 'unknown'}_count": total for role, total in users_by_role.all()}

        open_bookings = await db.execute(
            select(func.count(Booking.id)).where(Booking.status.in_(_OPEN_STATUSES))
        )
        counts["open_booking_count"] = open_bookings.scalar_one()
        return counts

    @staticmethod
    async def fees_today(db: AsyncSession, today: Optional[date] = None) -> FeeSummary:
        """Fee split of bookings paid and created today (UTC)."""
        today = today or datetime.now(timezone.utc).date()
        start = datetime.combine(today, time.min, tzinfo=timezone.utc)
        result = await db.execute(
            select(Booking).where(
                Booking.payment_status == PaymentStatus.PAID.value,
                Booking.created_at >= start,
            )
        )
        return await summarize_booking_fees(db, result.scalars().all())

    @staticmethod
    async def list_payouts(
        db: AsyncSession,
        limit: int = DEFAULT_PAYOUT_PAGE,
        offset: int = 0,
    ) -> List[PayoutRecord]:
        rows = await rpc.call_rpc(db, "get_all_payouts", {"p_limit": limit, "p_offset": offset})
        return rpc.parse_results("get_all_payouts", PayoutRecord, rows)

    @staticmethod
    async def list_pending_refunds(db: AsyncSession) -> List[RefundRequestRecord]:
        rows = await rpc.call_rpc(db, "get_pending_refunds")
        return rpc.parse_results("get_pending_refunds", RefundRequestRecord, rows)

    @staticmethod
    async def process_refund(
        db: AsyncSession,
        refund_request_id: str,
        action: RefundAction,
        admin_id: str,
        admin_notes: Optional[str] = None,
    ) -> None:
        try:
            await rpc.call_rpc(
                db,
                "process_refund_request",
                {
                    "p_refund_request_id": refund_request_id,
                    "p_action": action.value,
                    "p_admin_notes": admin_notes or None,
                },
                commit=True,
            )
        except UpstreamServiceError as e:
            raise UpstreamServiceError("Failed to process refund", details=e.details)

        logger.info(
            "Refund request processed",
            extra={"refund_request_id": refund_request_id, "action": action.value, "admin_id": admin_id},
        )
