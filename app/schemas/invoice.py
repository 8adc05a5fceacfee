from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, field_validator

from app.core.database import as_utc


class InvoiceOut(BaseModel):
    id: int
    rental_id: int
    invoice_number: str
    subtotal: Decimal
    taxes: Decimal
    discount: Decimal
    total_amount: Decimal
    notes: Optional[str] = None
    created_at: datetime

    @field_validator("created_at")
    @classmethod
    def to_utc(cls, v):
        return as_utc(v)

    class Config:
        from_attributes = True
