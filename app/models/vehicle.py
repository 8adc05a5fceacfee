from sqlalchemy import Column, String, Integer, DateTime, Numeric
from sqlalchemy.sql import func
from app.core.database import Base


class Vehicle(Base):
    __tablename__ = "vehicles"

    id = Column(Integer, primary_key=True, index=True)

    license_plate = Column(String(50), nullable=False, unique=True)
    make = Column(String(100), nullable=False)
    model = Column(String(100), nullable=False)
    year = Column(Integer, nullable=True)

    # Current catalog price; rentals copy it at booking time
    daily_rate = Column(Numeric(10, 2), nullable=False)
    status = Column(String(20), nullable=False, default="ACTIVE")  # ACTIVE / MAINTENANCE / RETIRED

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), onupdate=func.now(), server_default=func.now(), nullable=False)
