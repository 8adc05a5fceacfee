from sqlalchemy import Column, String, Integer, DateTime, ForeignKey, Numeric
from sqlalchemy.sql import func
from app.core.database import Base


class Invoice(Base):
    __tablename__ = "invoices"

    id = Column(Integer, primary_key=True, index=True)

    # One invoice per rental
    rental_id = Column(Integer, ForeignKey("rentals.id", ondelete="CASCADE"), nullable=False, unique=True, index=True)
    invoice_number = Column(String(64), nullable=False, unique=True, index=True)  # INV-<millis>-<suffix>

    subtotal = Column(Numeric(10, 2), nullable=False)
    taxes = Column(Numeric(10, 2), nullable=False)
    discount = Column(Numeric(10, 2), nullable=False, default=0)  # reserved, always 0 for now
    total_amount = Column(Numeric(10, 2), nullable=False)
    notes = Column(String(1000), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
