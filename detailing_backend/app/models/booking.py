"""
Booking database model.

Bookings are created by the external booking flow and advanced only through
the platform's status procedures. This layer reads them; it never assigns
`status` or `payment_status` directly.
"""

from sqlalchemy import Column, String, Date, Time, DateTime, Numeric, Float, Text, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from detailing_backend.app.db.session import Base

# Relationship targets below must be mapped before Booking is configured
from detailing_backend.app.models.catalog import Service, Car  # noqa: F401
from detailing_backend.app.models.detailer import Detailer  # noqa: F401
from detailing_backend.app.models.organization import Team  # noqa: F401
from detailing_backend.app.models.profile import Profile  # noqa: F401


class Booking(Base):
    """
    A scheduled detailing engagement.

    A booking with organization_id set and detailer_id NULL is unassigned
    and waits for dispatch.
    """
    __tablename__ = "bookings"

    id = Column(String(36), primary_key=True)
    receipt_id = Column(String(50), index=True, nullable=False)

    # Status (see BookingStatus / PaymentStatus)
    status = Column(String(30), nullable=False, index=True)
    payment_status = Column(String(30), nullable=False)

    # Scheduling
    scheduled_date = Column(Date, nullable=False, index=True)
    scheduled_time_start = Column(Time, nullable=True)
    scheduled_time_end = Column(Time, nullable=True)
    scheduled_start = Column(DateTime(timezone=True), nullable=True)
    scheduled_end = Column(DateTime(timezone=True), nullable=True)

    # Money
    total_amount = Column(Numeric(10, 2), nullable=False, default=0)
    service_price = Column(Numeric(10, 2), nullable=False, default=0)
    addons_total = Column(Numeric(10, 2), nullable=False, default=0)
    tax_amount = Column(Numeric(10, 2), nullable=False, default=0)

    # Assignment
    service_id = Column(String(36), ForeignKey("services.id"), nullable=True)
    car_id = Column(String(36), ForeignKey("cars.id"), nullable=True)
    user_id = Column(String(36), ForeignKey("profiles.id"), nullable=True)
    detailer_id = Column(String(36), ForeignKey("detailers.id"), nullable=True, index=True)
    organization_id = Column(String(36), ForeignKey("organizations.id"), nullable=True, index=True)
    team_id = Column(String(36), ForeignKey("teams.id"), nullable=True)

    # Location
    address_line1 = Column(String(255), nullable=True)
    city = Column(String(100), nullable=True)
    province = Column(String(100), nullable=True)
    postal_code = Column(String(20), nullable=True)
    latitude = Column(Float, nullable=True)
    longitude = Column(Float, nullable=True)
    location_notes = Column(Text, nullable=True)

    # Timestamps
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=True)
    completed_at = Column(DateTime(timezone=True), nullable=True)

    # Read-only joins
    service = relationship("Service", lazy="raise", viewonly=True)
    car = relationship("Car", lazy="raise", viewonly=True)
    user = relationship("Profile", lazy="raise", viewonly=True)
    detailer = relationship("Detailer", lazy="raise", viewonly=True)
    team = relationship("Team", lazy="raise", viewonly=True)

    def __repr__(self):
        return f"<Booking(id={self.id}, receipt_id='{self.receipt_id}', status='{self.status}')>"
