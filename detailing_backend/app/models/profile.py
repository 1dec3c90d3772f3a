"""
Profile database model.

Maps the platform's `profiles` table. One row per authenticated account;
the id equals the auth user id carried in the session token.
"""

from sqlalchemy import Column, String, Boolean, DateTime
from sqlalchemy.sql import func
from detailing_backend.app.db.session import Base


class Profile(Base):
    """
    Account profile with the platform-level role.

    Roles are `user`, `detailer` and `admin` (see UserRole). The role is
    changed only through the `update_user_role` procedure.
    """
    __tablename__ = "profiles"

    id = Column(String(36), primary_key=True)
    full_name = Column(String(255), nullable=True)
    email = Column(String(255), index=True, nullable=True)
    phone = Column(String(50), nullable=True)
    role = Column(String(20), nullable=True, index=True)
    avatar_url = Column(String(1024), nullable=True)
    onboarding_completed = Column(Boolean, default=False, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=True)

    def __repr__(self):
        return f"<Profile(id={self.id}, email='{self.email}', role='{self.role}')>"
