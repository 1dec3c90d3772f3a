"""
Billing Schemas.

Fee split results and pricing model switching.
"""

from pydantic import BaseModel, Field
from decimal import Decimal
from typing import Dict, Optional


class FeeSplit(BaseModel):
    """Platform fee and detailer payout for one amount."""
    total_amount: Decimal
    fee_percentage: Decimal
    platform_fee: Decimal
    detailer_payout: Decimal

    class Config:
        frozen = True


class FeeSummary(BaseModel):
    """Fee totals over a set of bookings, with the split of each booking by id."""
    gross_revenue: Decimal = Decimal("0")
    platform_fees: Decimal = Decimal("0")
    detailer_payouts: Decimal = Decimal("0")
    by_booking: Dict[str, FeeSplit] = Field(default_factory=dict)


class SwitchPricingModelRequest(BaseModel):
    pricing_model: Optional[str] = None


class SwitchPricingModelResponse(BaseModel):
    success: bool
    message: str
