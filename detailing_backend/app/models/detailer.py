"""
Detailer database model.

A detailer row links a profile to its service-provider record, its
organization (nullable: solo mode) and its commission scheme.
"""

from sqlalchemy import Column, String, Boolean, DateTime, Float, Integer, ForeignKey
from sqlalchemy.sql import func
from detailing_backend.app.db.session import Base


class Detailer(Base):
    __tablename__ = "detailers"

    id = Column(String(36), primary_key=True)
    profile_id = Column(String(36), ForeignKey("profiles.id"), unique=True, index=True, nullable=False)
    organization_id = Column(String(36), ForeignKey("organizations.id"), nullable=True, index=True)

    full_name = Column(String(255), nullable=True)
    avatar_url = Column(String(1024), nullable=True)
    rating = Column(Float, default=0, nullable=True)
    review_count = Column(Integer, default=0, nullable=True)
    years_experience = Column(Integer, default=0, nullable=True)
    is_active = Column(Boolean, default=False, nullable=False)

    # Commission scheme: "subscription" or "percentage" (NULL behaves as percentage)
    pricing_model = Column(String(20), nullable=True)
    stripe_subscription_id = Column(String(255), nullable=True)
    stripe_customer_id = Column(String(255), nullable=True)
    stripe_connect_account_id = Column(String(255), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=True)

    def __repr__(self):
        return f"<Detailer(id={self.id}, profile_id={self.profile_id}, organization_id={self.organization_id})>"
