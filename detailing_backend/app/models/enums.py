"""
Enumerations shared across the detailing marketplace.

Values match the strings stored by the external data platform.
"""

import enum


class UserRole(str, enum.Enum):
    """
    Platform-level profile role.

    Roles:
        USER: Customer booking detailing services
        DETAILER: Service provider (solo or organization member)
        ADMIN: Platform administrator
    """
    USER = "user"
    DETAILER = "detailer"
    ADMIN = "admin"


class OrganizationRole(str, enum.Enum):
    """Role of a member inside a detailing organization."""
    OWNER = "owner"
    MANAGER = "manager"
    DISPATCHER = "dispatcher"
    DETAILER = "detailer"


class DetailerMode(str, enum.Enum):
    SOLO = "solo"
    ORGANIZATION = "organization"


class PricingModel(str, enum.Enum):
    """Commission scheme chosen by a detailer."""
    SUBSCRIPTION = "subscription"  # fixed fee plus low percentage
    PERCENTAGE = "percentage"  # pay per booking


class BookingStatus(str, enum.Enum):
    """Booking lifecycle status. Transitions are owned by the data platform."""
    PENDING = "pending"
    REQUIRES_PAYMENT = "requires_payment"
    PAID = "paid"
    OFFERED = "offered"
    ACCEPTED = "accepted"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    NO_SHOW = "no_show"


class PaymentStatus(str, enum.Enum):
    UNPAID = "unpaid"
    REQUIRES_PAYMENT = "requires_payment"
    PROCESSING = "processing"
    PAID = "paid"
    REFUNDED = "refunded"
    FAILED = "failed"


class TransferStatus(str, enum.Enum):
    """Status of a weekly detailer transfer (read-only here)."""
    PENDING = "pending"
    PROCESSING = "processing"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    RETRY_PENDING = "retry_pending"


class RefundAction(str, enum.Enum):
    APPROVE = "approve"
    REJECT = "reject"
