"""
Service catalog and customer vehicle models (read-only joins for bookings).
"""

from sqlalchemy import Column, String, Integer, Numeric, ForeignKey
from detailing_backend.app.db.session import Base


class Service(Base):
    __tablename__ = "services"

    id = Column(String(36), primary_key=True)
    name = Column(String(255), nullable=False)
    price = Column(Numeric(10, 2), nullable=False)
    duration_minutes = Column(Integer, nullable=True)


class Car(Base):
    __tablename__ = "cars"

    id = Column(String(36), primary_key=True)
    user_id = Column(String(36), ForeignKey("profiles.id"), nullable=True)
    make = Column(String(100), nullable=True)
    model = Column(String(100), nullable=True)
    year = Column(String(10), nullable=True)
    license_plate = Column(String(20), nullable=True)
