"""
API v1 Router.

Aggregates all JSON API endpoints (mounted under /api).
"""

from fastapi import APIRouter
from detailing_backend.app.api.v1.endpoints import (
    bookings, detailer, members, admin_finance
)

router = APIRouter()

# Bookings (admin listing, availability check)
router.include_router(bookings.router)

# Detailer context, booking board and commands, pricing model
router.include_router(detailer.router)

# Organization membership
router.include_router(members.router)

# Admin finance (payouts, refunds)
router.include_router(admin_finance.router)
