"""
Platform settings key/value model (admin-configured values such as fees).
"""

from sqlalchemy import Column, String, Text, DateTime
from sqlalchemy.sql import func
from detailing_backend.app.db.session import Base


class PlatformSetting(Base):
    __tablename__ = "platform_settings"

    key = Column(String(100), primary_key=True)
    value = Column(Text, nullable=True)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=True)
