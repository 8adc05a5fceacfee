from sqlalchemy import Column, String, Integer, DateTime, ForeignKey, Numeric, Text, Index, CheckConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.core.database import Base
from app.models.enums import RentalStatus, status_column_type
from app.models.payment import Payment


class Rental(Base):
    __tablename__ = "rentals"
    __table_args__ = (
        CheckConstraint("return_date > pickup_date", name="ck_rentals_return_after_pickup"),
        Index("ix_rentals_vehicle_dates", "vehicle_id", "pickup_date", "return_date"),
    )

    id = Column(Integer, primary_key=True, index=True)

    user_id = Column(String(64), ForeignKey("users.id"), nullable=False, index=True)
    vehicle_id = Column(Integer, ForeignKey("vehicles.id"), nullable=False, index=True)

    # Booking window, stored as UTC; [pickup_date, return_date)
    pickup_date = Column(DateTime(timezone=True), nullable=False)
    return_date = Column(DateTime(timezone=True), nullable=False)
    actual_return_date = Column(DateTime(timezone=True), nullable=True)

    pickup_location = Column(String(255), nullable=False)
    return_location = Column(String(255), nullable=True)

    daily_rate = Column(Numeric(10, 2), nullable=False)  # snapshot of vehicle rate, never updated
    total_cost = Column(Numeric(10, 2), nullable=False)
    additional_fees = Column(Numeric(10, 2), nullable=True)  # late fees etc.

    status = Column(status_column_type(RentalStatus), nullable=False, default=RentalStatus.PENDING, index=True)
    special_requests = Column(Text, nullable=True)

    # Rental owns its payments; Payment.rental_id is lookup-only
    payments = relationship(Payment, cascade="all, delete-orphan", lazy="select")

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), onupdate=func.now(), server_default=func.now(), nullable=False)
    version = Column(Integer, nullable=False, default=1)
