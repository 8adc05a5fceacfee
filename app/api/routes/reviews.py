from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from app.api.deps import get_db
from app.core.auth import ADMIN, User, get_current_user, require_role
from app.models.enums import ReviewStatus
from app.schemas.review import ReviewCreate, ReviewFlag, ReviewModeration, ReviewOut, ReviewUpdate, VehicleRatingOut
from app.services import reviews

router = APIRouter(prefix="/reviews", tags=["reviews"])


@router.post("", response_model=ReviewOut, status_code=status.HTTP_201_CREATED)
def submit_review(
    payload: ReviewCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return reviews.submit_review(db, current_user, **payload.model_dump())


@router.get("/user/my-reviews", response_model=List[ReviewOut])
def my_reviews(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return reviews.list_user_reviews(db, current_user.id)


@router.get("/admin/pending", response_model=List[ReviewOut])
def pending_reviews(
    db: Session = Depends(get_db),
    current_user: User = Depends(require_role(ADMIN)),
):
    return reviews.list_reviews_by_status(db, ReviewStatus.PENDING)


@router.get("/admin/flagged", response_model=List[ReviewOut])
def flagged_reviews(
    db: Session = Depends(get_db),
    current_user: User = Depends(require_role(ADMIN)),
):
    return reviews.list_reviews_by_status(db, ReviewStatus.FLAGGED)


@router.get("/vehicle/{vehicle_id}", response_model=List[ReviewOut])
def vehicle_reviews(
    vehicle_id: int,
    db: Session = Depends(get_db),
    limit: int = Query(10, ge=1, le=100),
    offset: int = Query(0, ge=0),
):
    return reviews.list_vehicle_reviews(db, vehicle_id, limit=limit, offset=offset)


@router.get("/vehicle/{vehicle_id}/helpful", response_model=List[ReviewOut])
def most_helpful_reviews(
    vehicle_id: int,
    db: Session = Depends(get_db),
    limit: int = Query(10, ge=1, le=100),
    offset: int = Query(0, ge=0),
):
    return reviews.list_vehicle_reviews(db, vehicle_id, order="helpful", limit=limit, offset=offset)


@router.get("/vehicle/{vehicle_id}/recent", response_model=List[ReviewOut])
def recent_reviews(
    vehicle_id: int,
    db: Session = Depends(get_db),
    limit: int = Query(10, ge=1, le=100),
    offset: int = Query(0, ge=0),
):
    return reviews.list_vehicle_reviews(db, vehicle_id, order="recent", limit=limit, offset=offset)


@router.get("/vehicle/{vehicle_id}/rating", response_model=VehicleRatingOut)
def vehicle_rating(vehicle_id: int, db: Session = Depends(get_db)):
    return reviews.vehicle_rating_summary(db, vehicle_id)


@router.get("/{review_id}", response_model=ReviewOut)
def get_review(review_id: int, db: Session = Depends(get_db)):
    return reviews.get_review(db, review_id)


@router.patch("/{review_id}", response_model=ReviewOut)
def update_review(
    review_id: int,
    payload: ReviewUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    changes = payload.model_dump(exclude_unset=True, exclude={"version"})
    return reviews.update_review(db, current_user, review_id, changes, expected_version=payload.version)


@router.delete("/{review_id}", response_model=ReviewOut)
def delete_review(
    review_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return reviews.delete_review(db, current_user, review_id)


@router.post("/{review_id}/helpful", response_model=ReviewOut)
def mark_helpful(
    review_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return reviews.mark_helpful(db, review_id)


@router.post("/{review_id}/unhelpful", response_model=ReviewOut)
def mark_unhelpful(
    review_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return reviews.mark_unhelpful(db, review_id)


@router.post("/{review_id}/flag", response_model=ReviewOut)
def flag_review(
    review_id: int,
    payload: ReviewFlag,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return reviews.flag_review(db, current_user, review_id, payload.reason)


@router.post("/{review_id}/approve", response_model=ReviewOut)
def approve_review(
    review_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_role(ADMIN)),
):
    return reviews.approve_review(db, current_user, review_id)


@router.post("/{review_id}/reject", response_model=ReviewOut)
def reject_review(
    review_id: int,
    payload: Optional[ReviewModeration] = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_role(ADMIN)),
):
    return reviews.reject_review(db, current_user, review_id, payload.reason if payload else None)
