"""
Pricing Model Service.

Switches a detailer between the subscription and pay-per-booking
commission schemes. Moving to subscription records the new model first
(the subscription function validates against it) and reverts it when the
function fails.
"""

import logging
from typing import Optional

from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql import func

from detailing_backend.app.core.exceptions import (
    ConfigurationError,
    RequestValidationFailed,
    ResourceNotFoundError,
    UpstreamServiceError,
)
from detailing_backend.app.models.detailer import Detailer
from detailing_backend.app.models.enums import PricingModel
from detailing_backend.app.schemas.auth import Identity
from detailing_backend.app.schemas.billing import SwitchPricingModelResponse
from detailing_backend.app.services import platform_functions

logger = logging.getLogger(__name__)

CREATE_SUBSCRIPTION_FUNCTION = "create-detailer-subscription"


async def _set_pricing_model(db: AsyncSession, detailer_id: str, **values) -> None:
    try:
        await db.execute(
            update(Detailer)
            .where(Detailer.id == detailer_id)
            .values(updated_at=func.now(), **values)
        )
        await db.commit()
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error("Error updating detailer %s: %s", detailer_id, e)
        raise UpstreamServiceError("Failed to update pricing model", details={"error": str(e)})


class PricingModelService:

    @staticmethod
    async def switch_pricing_model(
        db: AsyncSession,
        identity: Identity,
        requested: Optional[str],
        request_id: Optional[str] = None,
    ) -> SwitchPricingModelResponse:
        try:
            target = PricingModel(requested) if requested else None
        except ValueError:
            target = None
        if target is None:
            raise RequestValidationFailed("Invalid pricing model")

        result = await db.execute(select(Detailer).where(Detailer.profile_id == identity.profile_id))
        detailer = result.scalar_one_or_none()
        if detailer is None:
            raise ResourceNotFoundError("Detailer")

        detailer_id = detailer.id
        previous = detailer.pricing_model
        subscription_id = detailer.stripe_subscription_id
        if previous == target.value:
            return SwitchPricingModelResponse(success=True, message="Already on this pricing model")

        if previous == PricingModel.SUBSCRIPTION.value and subscription_id:
            logger.info(
                "Subscription left for processor-side cancellation",
                extra={"detailer_id": detailer_id, "subscription_id": subscription_id},
            )

        if target == PricingModel.PERCENTAGE:
            await _set_pricing_model(
                db, detailer_id, pricing_model=target.value, stripe_subscription_id=None
            )
            return SwitchPricingModelResponse(success=True, message="Pricing model updated to Pay Per Booking")

        await _set_pricing_model(db, detailer_id, pricing_model=target.value)
        try:
            await platform_functions.invoke_function(
                CREATE_SUBSCRIPTION_FUNCTION, {"detailer_id": detailer_id}, request_id=request_id
            )
        except (UpstreamServiceError, ConfigurationError) as e:
            logger.warning(
                "Subscription creation failed, reverting pricing model",
                extra={"detailer_id": detailer_id, "previous_model": previous},
            )
            await _set_pricing_model(db, detailer_id, pricing_model=previous)
            if isinstance(e, ConfigurationError):
                raise
            raise UpstreamServiceError("Failed to create subscription", details=e.details)

        return SwitchPricingModelResponse(
            success=True,
            message="Pricing model updated. Please complete subscription setup in Stripe.",
        )
