"""
Booking schemas.

Response shapes flatten the relational joins (service, car, customer,
detailer, team) into single nested objects.
"""

from pydantic import BaseModel, Field, field_validator
from datetime import date, datetime, time
from decimal import Decimal
from typing import List, Literal, Optional, Union
from detailing_backend.app.models.enums import BookingStatus, PaymentStatus
from detailing_backend.app.schemas.billing import FeeSummary

DEFAULT_BOOKING_LIMIT = 200


class ServiceSummary(BaseModel):
    id: str
    name: str
    price: Decimal
    duration_minutes: Optional[int] = None

    class Config:
        from_attributes = True


class CarSummary(BaseModel):
    id: str
    make: Optional[str] = None
    model: Optional[str] = None
    year: Optional[str] = None
    license_plate: Optional[str] = None

    class Config:
        from_attributes = True


class CustomerSummary(BaseModel):
    id: str
    full_name: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None

    class Config:
        from_attributes = True


class DetailerSummary(BaseModel):
    id: str
    full_name: Optional[str] = None

    class Config:
        from_attributes = True


class TeamSummary(BaseModel):
    id: str
    name: str

    class Config:
        from_attributes = True


class BookingResponse(BaseModel):
    """Schema for a fully joined booking."""
    id: str
    receipt_id: str
    status: BookingStatus
    payment_status: PaymentStatus
    scheduled_date: date
    scheduled_time_start: Optional[time] = None
    scheduled_time_end: Optional[time] = None
    scheduled_start: Optional[datetime] = None
    scheduled_end: Optional[datetime] = None
    total_amount: Decimal
    service_price: Decimal
    addons_total: Decimal
    tax_amount: Decimal
    detailer_id: Optional[str] = None
    organization_id: Optional[str] = None
    team_id: Optional[str] = None
    address_line1: Optional[str] = None
    city: Optional[str] = None
    province: Optional[str] = None
    postal_code: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    location_notes: Optional[str] = None
    created_at: datetime
    updated_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    service: Optional[ServiceSummary] = None
    car: Optional[CarSummary] = None
    user: Optional[CustomerSummary] = None
    detailer: Optional[DetailerSummary] = None
    team: Optional[TeamSummary] = None

    class Config:
        from_attributes = True


class BookingRecord(BaseModel):
    """
    Booking row returned by the status procedures.

    Only the identity and status fields are required; the procedures may
    return more columns, which are kept.
    """
    id: str
    status: BookingStatus
    payment_status: Optional[PaymentStatus] = None
    detailer_id: Optional[str] = None
    organization_id: Optional[str] = None

    class Config:
        extra = "allow"


class BookingFilters(BaseModel):
    """Filters accepted by the booking list query."""
    status: Optional[Union[BookingStatus, List[BookingStatus]]] = None
    detailer_id: Optional[str] = None
    organization_id: Optional[str] = None
    from_date: Optional[date] = None
    to_date: Optional[date] = None
    limit: int = Field(DEFAULT_BOOKING_LIMIT, ge=1)
    order_by: Literal["scheduled_date", "created_at"] = "scheduled_date"
    ascending: bool = True

    @property
    def statuses(self) -> List[BookingStatus]:
        if self.status is None:
            return []
        if isinstance(self.status, list):
            return self.status
        return [self.status]


class BookingListResponse(BaseModel):
    data: List[BookingResponse]


class BookingDetailResponse(BaseModel):
    data: BookingResponse


class DetailerDashboardResponse(BaseModel):
    """
    Jobs board page data.

    earnings is the gross of the listed bookings; fees splits each of them
    at its detailer's platform fee percentage.
    """
    page: str = "detailer_dashboard"
    range: str
    sort: str
    bookings: List[BookingResponse]
    earnings: Decimal
    fees: FeeSummary


class BookingCommandResponse(BaseModel):
    data: BookingRecord


class StatusUpdateRequest(BaseModel):
    status: BookingStatus


class AssignDetailerRequest(BaseModel):
    detailer_id: str = Field(..., min_length=1)


class AvailabilityCheckRequest(BaseModel):
    """
    Availability search input.

    Required fields are checked by the endpoint so that a missing field
    yields a specific 400 message.
    """
    booking_date: Optional[date] = None
    booking_time_start: Optional[time] = None
    booking_time_end: Optional[time] = None
    service_duration_minutes: Optional[int] = Field(None, gt=0)
    booking_lat: Optional[float] = None
    booking_lng: Optional[float] = None
    exclude_org_detailers: bool = False

    @field_validator("booking_lat")
    @classmethod
    def _check_lat(cls, value: Optional[float]) -> Optional[float]:
        if value is not None and not -90 <= value <= 90:
            raise ValueError("latitude must be between -90 and 90")
        return value

    @field_validator("booking_lng")
    @classmethod
    def _check_lng(cls, value: Optional[float]) -> Optional[float]:
        if value is not None and not -180 <= value <= 180:
            raise ValueError("longitude must be between -180 and 180")
        return value
