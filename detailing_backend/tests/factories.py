"""
Test data factories and fakes shared by the test modules.
"""

import uuid
from datetime import datetime, timezone
from decimal import Decimal

from detailing_backend.app.core.config import settings
from detailing_backend.app.core.jwt import create_access_token
from detailing_backend.app.models.profile import Profile
from detailing_backend.app.models.detailer import Detailer
from detailing_backend.app.models.organization import Organization
from detailing_backend.app.models.booking import Booking


# Fake remote procedures

class FakeRpc:
    """
    Stand-in for db.rpc.call_rpc.

    Register rows per procedure name; every call is recorded. A registered
    exception is raised instead of returning rows.
    """

    def __init__(self):
        self.results = {}
        self.calls = []

    def returns(self, name, rows):
        self.results[name] = rows

    def fails(self, name, exc):
        self.results[name] = exc

    def called(self, name):
        return [params for called_name, params in self.calls if called_name == name]

    async def __call__(self, db, name, params=None, commit=False):
        self.calls.append((name, params or {}))
        result = self.results.get(name, [])
        if isinstance(result, Exception):
            raise result
        return result


# Account helpers

def make_token(profile_id, email=None):
    return create_access_token({"sub": profile_id, "email": email or f"{profile_id}@example.com"})


def auth_cookies(profile_id):
    return {settings.session_cookie_name: make_token(profile_id)}


def auth_headers(profile_id):
    return {"Authorization": f"Bearer {make_token(profile_id)}"}


async def create_profile(db, role="detailer", onboarding_completed=True, full_name=None, email=None, created_at=None):
    profile_id = str(uuid.uuid4())
    profile = Profile(
        id=profile_id,
        full_name=full_name or f"{role.title()} Person",
        email=email or f"{profile_id[:8]}@example.com",
        role=role,
        onboarding_completed=onboarding_completed,
        created_at=created_at or datetime.now(timezone.utc),
    )
    db.add(profile)
    await db.commit()
    return profile


async def create_detailer(db, profile, is_active=True, organization_id=None, pricing_model=None):
    detailer = Detailer(
        id=str(uuid.uuid4()),
        profile_id=profile.id,
        organization_id=organization_id,
        full_name=profile.full_name,
        is_active=is_active,
        pricing_model=pricing_model,
    )
    db.add(detailer)
    await db.commit()
    return detailer


async def create_organization(db, owner=None, name="Shine Crew"):
    organization = Organization(id=str(uuid.uuid4()), name=name, owner_id=owner.id if owner else None)
    db.add(organization)
    await db.commit()
    return organization


async def create_booking(db, scheduled_date, status="paid", **fields):
    booking_id = str(uuid.uuid4())
    values = {
        "id": booking_id,
        "receipt_id": f"RCPT-{booking_id[:8]}",
        "status": status,
        "payment_status": "paid",
        "scheduled_date": scheduled_date,
        "total_amount": Decimal("100.00"),
        "service_price": Decimal("90.00"),
        "addons_total": Decimal("0.00"),
        "tax_amount": Decimal("10.00"),
        "created_at": datetime.now(timezone.utc),
    }
    values.update(fields)
    booking = Booking(**values)
    db.add(booking)
    await db.commit()
    return booking
