from sqlalchemy import Column, String, Integer, DateTime, ForeignKey, Text, CheckConstraint
from sqlalchemy.sql import func
from app.core.database import Base
from app.models.enums import ReviewStatus, status_column_type


class Review(Base):
    __tablename__ = "reviews"
    __table_args__ = (
        CheckConstraint("rating BETWEEN 1 AND 5", name="ck_reviews_rating_range"),
    )

    id = Column(Integer, primary_key=True, index=True)

    vehicle_id = Column(Integer, ForeignKey("vehicles.id"), nullable=False, index=True)
    user_id = Column(String(64), ForeignKey("users.id"), nullable=False, index=True)
    # At most one review per rental
    rental_id = Column(Integer, ForeignKey("rentals.id", ondelete="CASCADE"), nullable=False, unique=True, index=True)

    rating = Column(Integer, nullable=False, index=True)
    vehicle_condition_rating = Column(Integer, nullable=True)
    cleanliness_rating = Column(Integer, nullable=True)
    pickup_process_rating = Column(Integer, nullable=True)
    return_process_rating = Column(Integer, nullable=True)

    title = Column(String(255), nullable=False)
    content = Column(Text, nullable=True)

    status = Column(status_column_type(ReviewStatus), nullable=False, default=ReviewStatus.PENDING, index=True)
    helpful_count = Column(Integer, nullable=False, default=0)
    unhelpful_count = Column(Integer, nullable=False, default=0)
    flag_reason = Column(String(500), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False, index=True)
    updated_at = Column(DateTime(timezone=True), onupdate=func.now(), server_default=func.now(), nullable=False)
    version = Column(Integer, nullable=False, default=1)
