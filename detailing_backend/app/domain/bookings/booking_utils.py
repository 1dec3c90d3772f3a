"""
Dashboard helpers for booking lists.

Work on any booking-like object (ORM row or BookingResponse) that exposes
scheduled_date / scheduled_start, total_amount / service_price and
created_at attributes.
"""

import math
from datetime import date, datetime, timedelta
from decimal import Decimal
from typing import Any, Iterable, List, Literal, Optional, Tuple

DateRange = Literal["today", "tomorrow", "this_week", "this_month", "all"]
SortKey = Literal["time", "distance", "price", "rating", "assignment"]


def haversine_distance(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Great-circle distance in kilometers, rounded to 0.1 km."""
    R = 6371.0

    lat1_rad = math.radians(lat1)
    lat2_rad = math.radians(lat2)
    dlat = math.radians(lat2 - lat1)
    dlon = math.radians(lon2 - lon1)

    a = math.sin(dlat / 2)**2 + math.cos(lat1_rad) * math.cos(lat2_rad) * math.sin(dlon / 2)**2
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return round(R * c, 1)


def _booking_day(booking: Any) -> Optional[date]:
    scheduled = getattr(booking, "scheduled_date", None)
    if scheduled is None:
        scheduled = getattr(booking, "scheduled_start", None)
    if isinstance(scheduled, datetime):
        return scheduled.date()
    return scheduled


def booking_amount(booking: Any) -> Decimal:
    """Amount a booking is billed at: total_amount, else service_price."""
    amount = getattr(booking, "total_amount", None) or getattr(booking, "service_price", None) or 0
    return Decimal(str(amount))


def filter_bookings_by_date_range(
    bookings: Iterable[Any],
    date_range: DateRange,
    today: Optional[date] = None,
) -> List[Any]:
    """
    Keep bookings scheduled inside the range.

    Weeks start on Sunday. Bookings without any scheduled date are dropped
    unless the range is "all".
    """
    bookings = list(bookings)
    if date_range == "all":
        return bookings

    today = today or date.today()
    if date_range == "today":
        start, end = today, today
    elif date_range == "tomorrow":
        start = end = today + timedelta(days=1)
    elif date_range == "this_week":
        start = today - timedelta(days=(today.weekday() + 1) % 7)
        end = start + timedelta(days=6)
    elif date_range == "this_month":
        start = today.replace(day=1)
        next_month = (start + timedelta(days=32)).replace(day=1)
        end = next_month - timedelta(days=1)
    else:
        raise ValueError(f"Unknown date range: {date_range}")

    selected = []
    for booking in bookings:
        day = _booking_day(booking)
        if day is not None and start <= day <= end:
            selected.append(booking)
    return selected


def sort_bookings(
    bookings: Iterable[Any],
    sort_by: SortKey,
    origin: Optional[Tuple[float, float]] = None,
) -> List[Any]:
    """
    Return a sorted copy.

    time: soonest first. price: highest first. assignment: newest first.
    distance: nearest to origin first (unchanged without an origin).
    rating: unchanged.
    """
    sorted_bookings = list(bookings)

    if sort_by == "time":
        sorted_bookings.sort(key=lambda b: (_booking_day(b) is None, _booking_day(b)))
    elif sort_by == "price":
        sorted_bookings.sort(key=booking_amount, reverse=True)
    elif sort_by == "assignment":
        sorted_bookings.sort(
            key=lambda b: (getattr(b, "created_at", None) is not None, getattr(b, "created_at", None)),
            reverse=True,
        )
    elif sort_by == "distance" and origin is not None:
        def _distance(booking):
            lat = getattr(booking, "latitude", None)
            lng = getattr(booking, "longitude", None)
            if lat is None or lng is None:
                return math.inf
            return haversine_distance(origin[0], origin[1], lat, lng)
        sorted_bookings.sort(key=_distance)

    return sorted_bookings


def calculate_earnings(bookings: Iterable[Any]) -> Decimal:
    """Sum of total_amount (or service_price when the total is unset)."""
    return sum((booking_amount(b) for b in bookings), Decimal("0"))
