from datetime import datetime
from typing import Optional

from pydantic import BaseModel, field_validator

from app.core.database import as_utc


class AuditLogOut(BaseModel):
    id: int
    actor_id: str
    actor_email: Optional[str] = None
    actor_role: Optional[str] = None
    action: str
    entity_type: str
    entity_id: str
    source: Optional[str] = None
    status: Optional[str] = None
    rental_id: Optional[int] = None
    risk_level: str
    description: Optional[str] = None
    created_at: datetime

    @field_validator("created_at")
    @classmethod
    def to_utc(cls, v):
        return as_utc(v)

    class Config:
        from_attributes = True
