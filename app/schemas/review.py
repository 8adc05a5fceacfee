from datetime import datetime
from typing import Dict, Optional

from pydantic import BaseModel, Field, field_validator

from app.core.database import as_utc
from app.models.enums import ReviewStatus


class ReviewCreate(BaseModel):
    rental_id: int
    rating: int = Field(..., ge=1, le=5)
    title: str = Field(..., min_length=1, max_length=255)
    content: Optional[str] = Field(None, max_length=5000)
    vehicle_condition_rating: Optional[int] = Field(None, ge=1, le=5)
    cleanliness_rating: Optional[int] = Field(None, ge=1, le=5)
    pickup_process_rating: Optional[int] = Field(None, ge=1, le=5)
    return_process_rating: Optional[int] = Field(None, ge=1, le=5)


class ReviewUpdate(BaseModel):
    rating: Optional[int] = Field(None, ge=1, le=5)
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    content: Optional[str] = Field(None, max_length=5000)
    vehicle_condition_rating: Optional[int] = Field(None, ge=1, le=5)
    cleanliness_rating: Optional[int] = Field(None, ge=1, le=5)
    pickup_process_rating: Optional[int] = Field(None, ge=1, le=5)
    return_process_rating: Optional[int] = Field(None, ge=1, le=5)
    version: Optional[int] = None


class ReviewModeration(BaseModel):
    reason: Optional[str] = Field(None, max_length=500)


class ReviewFlag(BaseModel):
    reason: str = Field(..., min_length=1, max_length=500)


class ReviewOut(BaseModel):
    id: int
    vehicle_id: int
    user_id: str
    rental_id: int
    rating: int
    vehicle_condition_rating: Optional[int] = None
    cleanliness_rating: Optional[int] = None
    pickup_process_rating: Optional[int] = None
    return_process_rating: Optional[int] = None
    title: str
    content: Optional[str] = None
    status: ReviewStatus
    helpful_count: int
    unhelpful_count: int
    flag_reason: Optional[str] = None
    created_at: datetime
    updated_at: datetime
    version: int

    @field_validator("created_at", "updated_at")
    @classmethod
    def to_utc(cls, v):
        return as_utc(v)

    class Config:
        from_attributes = True


class VehicleRatingOut(BaseModel):
    vehicle_id: int
    average_rating: float
    total_reviews: int
    distribution: Dict[int, int]


