from sqlalchemy import Column, String, Integer, DateTime, ForeignKey, Numeric, CheckConstraint
from sqlalchemy.sql import func
from app.core.database import Base
from app.models.enums import PaymentMethod, PaymentStatus, status_column_type


class Payment(Base):
    __tablename__ = "payments"
    __table_args__ = (
        CheckConstraint("amount > 0", name="ck_payments_amount_positive"),
        CheckConstraint(
            "refunded_amount >= 0 AND refunded_amount <= amount",
            name="ck_payments_refunded_within_amount",
        ),
    )

    id = Column(Integer, primary_key=True, index=True)

    rental_id = Column(Integer, ForeignKey("rentals.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(String(64), ForeignKey("users.id"), nullable=False, index=True)

    amount = Column(Numeric(10, 2), nullable=False)
    refunded_amount = Column(Numeric(10, 2), nullable=False, default=0)

    payment_method = Column(status_column_type(PaymentMethod), nullable=False)
    # Caller supplied idempotency key
    transaction_id = Column(String(255), nullable=False, unique=True, index=True)

    status = Column(status_column_type(PaymentStatus), nullable=False, default=PaymentStatus.PENDING, index=True)
    description = Column(String(500), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False, index=True)
    updated_at = Column(DateTime(timezone=True), onupdate=func.now(), server_default=func.now(), nullable=False)
    version = Column(Integer, nullable=False, default=1)
