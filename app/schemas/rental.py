from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from app.core.database import as_utc
from app.models.enums import RentalStatus


class RentalCreate(BaseModel):
    vehicle_id: int
    pickup_date: datetime
    return_date: datetime
    pickup_location: str = Field(..., min_length=1, max_length=255)
    return_location: Optional[str] = Field(None, max_length=255)
    special_requests: Optional[str] = Field(None, max_length=2000)

    @field_validator("pickup_date", "return_date")
    @classmethod
    def to_utc(cls, v):
        return as_utc(v)


class RentalUpdate(BaseModel):
    pickup_date: Optional[datetime] = None
    return_date: Optional[datetime] = None
    pickup_location: Optional[str] = Field(None, min_length=1, max_length=255)
    return_location: Optional[str] = Field(None, max_length=255)
    special_requests: Optional[str] = Field(None, max_length=2000)
    # Version the client last read; omitted means "whatever is current"
    version: Optional[int] = None

    @field_validator("pickup_date", "return_date")
    @classmethod
    def to_utc(cls, v):
        return as_utc(v)


class RentalStatusChange(BaseModel):
    version: Optional[int] = None


class RentalOut(BaseModel):
    id: int
    user_id: str
    vehicle_id: int
    pickup_date: datetime
    return_date: datetime
    actual_return_date: Optional[datetime] = None
    pickup_location: str
    return_location: Optional[str] = None
    daily_rate: Decimal
    total_cost: Decimal
    additional_fees: Optional[Decimal] = None
    status: RentalStatus
    special_requests: Optional[str] = None
    created_at: datetime
    updated_at: datetime
    version: int

    @field_validator("pickup_date", "return_date", "actual_return_date", "created_at", "updated_at")
    @classmethod
    def to_utc(cls, v):
        return as_utc(v)

    class Config:
        from_attributes = True


class CancellationQuote(BaseModel):
    rental_id: int
    status: RentalStatus
    cancellable: bool
    hours_until_pickup: int
    refund_percentage: int
    refund_amount: Decimal


class AvailabilityOut(BaseModel):
    vehicle_id: int
    pickup_date: datetime
    return_date: datetime
    available: bool
