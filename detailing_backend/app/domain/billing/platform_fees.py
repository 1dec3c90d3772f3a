"""
Platform Fee Resolver.

Responsible for determining the commission percentage applicable to a
booking and splitting an amount into platform fee and detailer payout.
Follows priority:
1. Explicit fee percentage supplied by the caller
2. Detailer on the subscription pricing model -> subscription percentage
3. Standard platform percentage

Configured percentages that cannot be read fall back to the defaults in
settings (15% standard, 3% subscription). Every fallback is logged so that
fees computed on a default can be reconciled against the admin value.
"""

import logging
from decimal import Decimal, InvalidOperation, ROUND_HALF_EVEN
from typing import Any, Dict, Iterable, Optional, Union

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from detailing_backend.app.core.config import settings
from detailing_backend.app.core.exceptions import UpstreamServiceError
from detailing_backend.app.db import rpc
from detailing_backend.app.domain.bookings.booking_utils import booking_amount
from detailing_backend.app.models.detailer import Detailer
from detailing_backend.app.models.enums import PricingModel
from detailing_backend.app.models.platform_setting import PlatformSetting
from detailing_backend.app.schemas.billing import FeeSplit, FeeSummary

logger = logging.getLogger(__name__)

SUBSCRIPTION_FEE_SETTING_KEY = "subscription_platform_fee_percentage"

CENT = Decimal("0.01")

Number = Union[Decimal, float, int, str]


def _to_decimal(value: Number) -> Decimal:
    if isinstance(value, Decimal):
        return value
    # str() keeps floats like 0.1 from expanding to binary noise
    return Decimal(str(value))


def _parse_percentage(raw: Any) -> Optional[Decimal]:
    if raw is None:
        return None
    try:
        value = _to_decimal(raw)
    except (InvalidOperation, ValueError):
        return None
    if not value.is_finite() or value <= 0:
        return None
    return value


def to_cents(amount: Number) -> int:
    """Convert a currency amount to integer cents (half-to-even)."""
    return int((_to_decimal(amount) * 100).quantize(Decimal("1"), rounding=ROUND_HALF_EVEN))


class PlatformFeeResolver:

    @staticmethod
    async def get_platform_fee_percentage(db: AsyncSession) -> Decimal:
        """Standard fee percentage (e.g. 15 for 15%)."""
        default = _to_decimal(settings.default_platform_fee_percentage)
        try:
            raw = await rpc.call_rpc_scalar(db, "get_platform_fee_percentage")
        except UpstreamServiceError as e:
            logger.warning(
                "Platform fee percentage unavailable, using default",
                extra={"default_percentage": str(default), "error": e.details.get("error", e.message)},
            )
            return default

        value = _parse_percentage(raw)
        if value is None:
            logger.warning(
                "Platform fee percentage not set or invalid, using default",
                extra={"raw_value": repr(raw), "default_percentage": str(default)},
            )
            return default
        return value

    @staticmethod
    async def get_subscription_fee_percentage(db: AsyncSession) -> Decimal:
        """Fee percentage for detailers on the subscription pricing model."""
        default = _to_decimal(settings.default_subscription_fee_percentage)
        try:
            result = await db.execute(
                select(PlatformSetting.value).where(PlatformSetting.key == SUBSCRIPTION_FEE_SETTING_KEY)
            )
            raw = result.scalar_one_or_none()
        except SQLAlchemyError as e:
            await db.rollback()
            logger.warning(
                "Subscription fee percentage unavailable, using default",
                extra={"default_percentage": str(default), "error": str(e)},
            )
            return default

        value = _parse_percentage(raw)
        if value is None:
            logger.warning(
                "Subscription fee percentage not set or invalid, using default",
                extra={"raw_value": repr(raw), "default_percentage": str(default)},
            )
            return default
        return value

    @staticmethod
    async def get_detailer_pricing_model(db: AsyncSession, detailer_id: str) -> Optional[PricingModel]:
        try:
            result = await db.execute(select(Detailer.pricing_model).where(Detailer.id == detailer_id))
            raw = result.scalar_one_or_none()
        except SQLAlchemyError as e:
            await db.rollback()
            logger.warning(
                "Pricing model lookup failed, using standard fee",
                extra={"detailer_id": detailer_id, "error": str(e)},
            )
            return None

        try:
            return PricingModel(raw) if raw else None
        except ValueError:
            return None

    @staticmethod
    async def resolve_fee_percentage(
        db: AsyncSession,
        detailer_id: Optional[str] = None,
        fee_percentage: Optional[Number] = None,
    ) -> Decimal:
        """
        Resolve the effective commission percentage.

        An explicit fee_percentage wins over any looked-up value.
        """
        if fee_percentage is not None:
            return _to_decimal(fee_percentage)

        if detailer_id:
            pricing_model = await PlatformFeeResolver.get_detailer_pricing_model(db, detailer_id)
            if pricing_model == PricingModel.SUBSCRIPTION:
                return await PlatformFeeResolver.get_subscription_fee_percentage(db)

        return await PlatformFeeResolver.get_platform_fee_percentage(db)


def split_amount(total_amount: Number, fee_percentage: Number) -> FeeSplit:
    """
    Split an amount into platform fee and detailer payout.

    The fee is rounded half-to-even at the cent; the payout is the
    remainder, so fee + payout always equals the total.
    """
    total = _to_decimal(total_amount)
    percentage = _to_decimal(fee_percentage)
    fee = (total * percentage / Decimal(100)).quantize(CENT, rounding=ROUND_HALF_EVEN)
    return FeeSplit(
        total_amount=total,
        fee_percentage=percentage,
        platform_fee=fee,
        detailer_payout=total - fee,
    )


async def calculate_fee_split(
    db: AsyncSession,
    total_amount: Number,
    detailer_id: Optional[str] = None,
    fee_percentage: Optional[Number] = None,
) -> FeeSplit:
    percentage = await PlatformFeeResolver.resolve_fee_percentage(db, detailer_id, fee_percentage)
    return split_amount(total_amount, percentage)


async def calculate_platform_fee(
    db: AsyncSession,
    total_amount: Number,
    detailer_id: Optional[str] = None,
    fee_percentage: Optional[Number] = None,
) -> Decimal:
    split = await calculate_fee_split(db, total_amount, detailer_id, fee_percentage)
    return split.platform_fee


async def calculate_detailer_payout(
    db: AsyncSession,
    total_amount: Number,
    detailer_id: Optional[str] = None,
    fee_percentage: Optional[Number] = None,
) -> Decimal:
    split = await calculate_fee_split(db, total_amount, detailer_id, fee_percentage)
    return split.detailer_payout


async def summarize_booking_fees(db: AsyncSession, bookings: Iterable[Any]) -> FeeSummary:
    """
    Split every booking at its own detailer's fee percentage and total them.

    Each detailer's percentage is resolved once; bookings without a
    detailer use the standard percentage.
    """
    percentages: Dict[Optional[str], Decimal] = {}
    by_booking: Dict[str, FeeSplit] = {}
    for booking in bookings:
        detailer_id = getattr(booking, "detailer_id", None)
        if detailer_id not in percentages:
            percentages[detailer_id] = await PlatformFeeResolver.resolve_fee_percentage(db, detailer_id)
        by_booking[booking.id] = split_amount(booking_amount(booking), percentages[detailer_id])

    splits = by_booking.values()
    return FeeSummary(
        gross_revenue=sum((s.total_amount for s in splits), Decimal("0")),
        platform_fees=sum((s.platform_fee for s in splits), Decimal("0")),
        detailer_payouts=sum((s.detailer_payout for s in splits), Decimal("0")),
        by_booking=by_booking,
    )
