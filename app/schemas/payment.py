from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from app.core.database import as_utc
from app.models.enums import PaymentMethod, PaymentStatus, RefundStatus


class PaymentCreate(BaseModel):
    rental_id: int
    amount: Decimal = Field(..., gt=0, max_digits=10, decimal_places=2)
    payment_method: PaymentMethod
    transaction_id: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = Field(None, max_length=500)


class PaymentOut(BaseModel):
    id: int
    rental_id: int
    user_id: str
    amount: Decimal
    refunded_amount: Decimal
    payment_method: PaymentMethod
    transaction_id: str
    status: PaymentStatus
    description: Optional[str] = None
    created_at: datetime
    updated_at: datetime
    version: int

    @field_validator("created_at", "updated_at")
    @classmethod
    def to_utc(cls, v):
        return as_utc(v)

    class Config:
        from_attributes = True


class RefundCreate(BaseModel):
    amount: Decimal = Field(..., gt=0, max_digits=10, decimal_places=2)
    reason: Optional[str] = Field(None, max_length=500)


class RefundOut(BaseModel):
    id: int
    payment_id: int
    rental_id: int
    amount: Decimal
    status: RefundStatus
    reason: Optional[str] = None
    created_at: datetime
    processed_at: Optional[datetime] = None

    @field_validator("created_at", "processed_at")
    @classmethod
    def to_utc(cls, v):
        return as_utc(v)

    class Config:
        from_attributes = True


class TotalCostOut(BaseModel):
    rental_id: int
    total_cost: Decimal
