"""
Admin API Schema Definitions.

Pydantic schemas for admin pages and finance endpoints.
"""

from pydantic import BaseModel, Field
from datetime import datetime
from decimal import Decimal
from typing import Optional, List
from detailing_backend.app.models.enums import RefundAction, TransferStatus, UserRole


class UserListItem(BaseModel):
    """Schema for user in list response."""
    id: str
    full_name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    role: Optional[UserRole] = None
    created_at: datetime

    class Config:
        from_attributes = True


class UserListResponse(BaseModel):
    """Schema for the admin users page data."""
    users: List[UserListItem]
    role_filter: Optional[UserRole] = None
    total: int


class PayoutRecord(BaseModel):
    """
    Result row of get_all_payouts.

    Legacy batches have no status and are considered paid once
    stripe_payout_id is present.
    """
    id: str
    detailer_id: Optional[str] = None
    detailer_name: Optional[str] = None
    amount: Decimal = Decimal("0")
    status: Optional[TransferStatus] = None
    stripe_payout_id: Optional[str] = None
    period_start: Optional[datetime] = None
    period_end: Optional[datetime] = None
    created_at: Optional[datetime] = None

    class Config:
        extra = "ignore"

    @property
    def is_paid_out(self) -> bool:
        if self.status is not None:
            return self.status == TransferStatus.SUCCEEDED
        return self.stripe_payout_id is not None


class PayoutListResponse(BaseModel):
    data: List[PayoutRecord]
    total_amount_cents: int = 0
    limit: int
    offset: int


class RefundRequestRecord(BaseModel):
    """Result row of get_pending_refunds."""
    id: str
    booking_id: str
    amount: Optional[Decimal] = None
    reason: Optional[str] = None
    status: Optional[str] = None
    requested_by: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        extra = "ignore"


class RefundListResponse(BaseModel):
    data: List[RefundRequestRecord]


class ProcessRefundRequest(BaseModel):
    action: RefundAction
    admin_notes: Optional[str] = Field(None, max_length=2000)


class AdminActionResponse(BaseModel):
    success: bool = True
    message: str
