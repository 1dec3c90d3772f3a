"""
Admin Finance API Endpoints.

Payout batches and refund requests. Both are owned by platform procedures;
these endpoints list them and forward refund decisions.
"""

from fastapi import APIRouter, Depends, Path, Query
from sqlalchemy.ext.asyncio import AsyncSession

from detailing_backend.app.core.guards import require_api_admin
from detailing_backend.app.db.session import get_db
from detailing_backend.app.domain.admin.admin_service import DEFAULT_PAYOUT_PAGE, AdminService
from detailing_backend.app.domain.billing.platform_fees import to_cents
from detailing_backend.app.models.enums import RefundAction
from detailing_backend.app.schemas.admin import (
    AdminActionResponse,
    PayoutListResponse,
    ProcessRefundRequest,
    RefundListResponse,
)
from detailing_backend.app.schemas.auth import UserProfile

router = APIRouter(prefix="/admin", tags=["Admin - Finance"])


@router.get("/payouts", response_model=PayoutListResponse)
async def list_payouts(
    limit: int = Query(DEFAULT_PAYOUT_PAGE, ge=1, le=500),
    offset: int = Query(0, ge=0),
    admin: UserProfile = Depends(require_api_admin),
    db: AsyncSession = Depends(get_db)
):
    payouts = await AdminService.list_payouts(db, limit=limit, offset=offset)
    return PayoutListResponse(
        data=payouts,
        total_amount_cents=sum(to_cents(p.amount) for p in payouts),
        limit=limit,
        offset=offset,
    )


@router.get("/refunds", response_model=RefundListResponse)
async def list_pending_refunds(
    admin: UserProfile = Depends(require_api_admin),
    db: AsyncSession = Depends(get_db)
):
    refunds = await AdminService.list_pending_refunds(db)
    return RefundListResponse(data=refunds)


@router.post("/refunds/{refund_request_id}", response_model=AdminActionResponse)
async def process_refund(
    body: ProcessRefundRequest,
    refund_request_id: str = Path(..., description="Refund request ID"),
    admin: UserProfile = Depends(require_api_admin),
    db: AsyncSession = Depends(get_db)
):
    """Approve or reject a pending refund request."""
    await AdminService.process_refund(
        db, refund_request_id, body.action, admin_id=admin.id, admin_notes=body.admin_notes
    )
    verb = "approved" if body.action == RefundAction.APPROVE else "rejected"
    return AdminActionResponse(message=f"Refund request {verb}")
