"""
Reviews: one per completed rental, submitted within the deadline, then
moderated by an admin.
"""
import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core import content_policy
from app.core.audit import log_audit
from app.core.auth import User
from app.core.config import settings
from app.core.database import as_utc, atomic, utcnow
from app.core.errors import InvalidStateError, NotFoundError, UnauthorizedError, ValidationFailure
from app.models.enums import RentalStatus, ReviewStatus
from app.models.rental import Rental
from app.models.review import Review
from app.services.directory import find_user, find_vehicle
from app.services.versioning import versioned_update

logger = logging.getLogger(__name__)

ASPECT_FIELDS = (
    "vehicle_condition_rating",
    "cleanliness_rating",
    "pickup_process_rating",
    "return_process_rating",
)

# moderation event -> resulting status; none of them may fire on a DELETED review
MODERATION_TARGETS = {
    "update": ReviewStatus.PENDING,
    "approve": ReviewStatus.APPROVED,
    "reject": ReviewStatus.REJECTED,
    "flag": ReviewStatus.FLAGGED,
    "delete": ReviewStatus.DELETED,
}

MODERATION_ACTIONS = {"approve": "approved", "reject": "rejected", "flag": "flagged"}


def _moderate(review: Review, event: str) -> ReviewStatus:
    if review.status == ReviewStatus.DELETED:
        raise InvalidStateError(f"Cannot {event} a deleted review")
    return MODERATION_TARGETS[event]


def _check_rating(name: str, value: Optional[int], required: bool = False) -> None:
    if value is None:
        if required:
            raise ValidationFailure(f"{name} is required")
        return
    if not 1 <= int(value) <= 5:
        raise ValidationFailure(f"{name} must be between 1 and 5")


def _check_text(title: Optional[str], content: Optional[str]) -> None:
    if content_policy.contains_profanity(title) or content_policy.contains_profanity(content):
        raise ValidationFailure("Review contains inappropriate content")


def load_review(db: Session, review_id: int) -> Review:
    review = db.query(Review).filter(Review.id == review_id).first()
    if not review:
        raise NotFoundError(f"Review not found with ID: {review_id}")
    return review


def submit_review(
    db: Session,
    actor: User,
    *,
    rental_id: int,
    rating: int,
    title: str,
    content: Optional[str] = None,
    vehicle_condition_rating: Optional[int] = None,
    cleanliness_rating: Optional[int] = None,
    pickup_process_rating: Optional[int] = None,
    return_process_rating: Optional[int] = None,
    now: Optional[datetime] = None,
) -> Review:
    logger.info("Submitting review for rental: %s, user: %s", rental_id, actor.id)
    now = as_utc(now or utcnow())
    aspects = {
        "vehicle_condition_rating": vehicle_condition_rating,
        "cleanliness_rating": cleanliness_rating,
        "pickup_process_rating": pickup_process_rating,
        "return_process_rating": return_process_rating,
    }

    try:
        with atomic(db):
            rental = db.query(Rental).filter(Rental.id == rental_id).first()
            if not rental:
                raise NotFoundError("Rental not found")
            if rental.user_id != actor.id:
                raise UnauthorizedError("Unauthorized: Cannot review rental belonging to another user")
            if rental.status != RentalStatus.COMPLETED:
                raise InvalidStateError("Can only review completed rentals")
            if db.query(Review.id).filter(Review.rental_id == rental.id).first():
                raise InvalidStateError("Review already exists for this rental")

            # Completion is the rental's last update; it is terminal afterwards
            days_since_completion = (now - as_utc(rental.updated_at)).days
            if days_since_completion > settings.REVIEW_SUBMISSION_DEADLINE_DAYS:
                raise InvalidStateError(
                    f"Review submission deadline has passed "
                    f"({settings.REVIEW_SUBMISSION_DEADLINE_DAYS} days after rental completion)"
                )

            _check_rating("Rating", rating, required=True)
            for name, value in aspects.items():
                _check_rating(name, value)
            if not content_policy.is_valid_review_content(title, content):
                raise ValidationFailure("Invalid review content")
            _check_text(title, content)

            vehicle = find_vehicle(db, rental.vehicle_id)
            find_user(db, actor.id)

            review = Review(
                vehicle_id=vehicle.id,
                user_id=actor.id,
                rental_id=rental.id,
                rating=rating,
                title=content_policy.sanitize(title),
                content=content_policy.sanitize(content),
                status=ReviewStatus.PENDING,
                helpful_count=0,
                unhelpful_count=0,
                version=1,
                **aspects,
            )
            db.add(review)
            db.flush()
            log_audit(
                db,
                actor=actor,
                action="created",
                entity_type="review",
                entity_id=str(review.id),
                status=review.status.value,
                rental_id=rental.id,
                description=f"Review submitted: {review.rating}/5",
            )
    except IntegrityError:
        raise InvalidStateError("Review already exists for this rental")

    logger.info("Review submitted successfully with ID: %s", review.id)
    return review


def get_review(db: Session, review_id: int) -> Review:
    return load_review(db, review_id)


def list_vehicle_reviews(
    db: Session,
    vehicle_id: int,
    order: str = "default",
    limit: int = 10,
    offset: int = 0,
) -> List[Review]:
    """Approved reviews for a vehicle. ``order`` is default|helpful|recent."""
    q = db.query(Review).filter(Review.vehicle_id == vehicle_id).filter(Review.status == ReviewStatus.APPROVED)
    if order == "helpful":
        q = q.order_by(Review.helpful_count.desc(), Review.created_at.desc(), Review.id.desc())
    elif order == "recent":
        q = q.order_by(Review.created_at.desc(), Review.id.desc())
    else:
        q = q.order_by(Review.id)
    return q.offset(offset).limit(limit).all()


def list_user_reviews(db: Session, user_id: str) -> List[Review]:
    return db.query(Review).filter(Review.user_id == user_id).order_by(Review.created_at.desc(), Review.id.desc()).all()


def list_reviews_by_status(db: Session, status: ReviewStatus) -> List[Review]:
    return db.query(Review).filter(Review.status == status).order_by(Review.created_at, Review.id).all()


def vehicle_rating_summary(db: Session, vehicle_id: int) -> Dict[str, Any]:
    """Average rating and 1-5 distribution over approved reviews."""
    rows = (
        db.query(Review.rating, func.count(Review.id))
        .filter(Review.vehicle_id == vehicle_id)
        .filter(Review.status == ReviewStatus.APPROVED)
        .group_by(Review.rating)
        .all()
    )
    distribution = {star: 0 for star in range(1, 6)}
    for rating, count in rows:
        distribution[int(rating)] = int(count)
    total = sum(distribution.values())
    average = round(sum(star * n for star, n in distribution.items()) / total, 2) if total else 0.0
    return {"vehicle_id": vehicle_id, "average_rating": average, "total_reviews": total, "distribution": distribution}


def update_review(
    db: Session,
    actor: User,
    review_id: int,
    changes: Dict[str, Any],
    expected_version: Optional[int] = None,
) -> Review:
    """Edit an own review; it goes back to PENDING for moderation."""
    logger.info("Updating review: %s for user: %s", review_id, actor.id)
    changes = {k: v for k, v in changes.items() if v is not None}

    with atomic(db):
        review = load_review(db, review_id)
        if review.user_id != actor.id:
            raise UnauthorizedError("Unauthorized: Cannot update review belonging to another user")
        target = _moderate(review, "update")

        if "rating" in changes:
            _check_rating("Rating", changes["rating"])
        for name in ASPECT_FIELDS:
            _check_rating(name, changes.get(name))
        if "title" in changes and not changes["title"].strip():
            raise ValidationFailure("Invalid review content")
        if "content" in changes and not changes["content"].strip():
            raise ValidationFailure("Invalid review content")
        _check_text(changes.get("title"), changes.get("content"))

        values: Dict[str, Any] = {}
        for key in ("rating",) + ASPECT_FIELDS:
            if key in changes:
                values[key] = changes[key]
        for key in ("title", "content"):
            if key in changes:
                values[key] = content_policy.sanitize(changes[key])
        values["status"] = target

        versioned_update(db, review, values, expected_version)
        log_audit(
            db,
            actor=actor,
            action="updated",
            entity_type="review",
            entity_id=str(review.id),
            status=review.status.value,
            rental_id=review.rental_id,
            description="Review edited, awaiting moderation",
        )

    logger.info("Review updated successfully: %s", review_id)
    return review


def delete_review(db: Session, actor: User, review_id: int) -> Review:
    """Soft delete: the row stays, status becomes DELETED."""
    logger.info("Deleting review: %s for user: %s", review_id, actor.id)
    with atomic(db):
        review = load_review(db, review_id)
        if review.user_id != actor.id:
            raise UnauthorizedError("Unauthorized: Cannot delete review belonging to another user")
        versioned_update(db, review, {"status": _moderate(review, "delete")})
        log_audit(
            db,
            actor=actor,
            action="deleted",
            entity_type="review",
            entity_id=str(review.id),
            status=review.status.value,
            rental_id=review.rental_id,
            description="Review deleted by author",
        )
    return review


def _admin_moderation(db: Session, actor: User, review_id: int, event: str, reason: Optional[str]) -> Review:
    if not actor.is_admin:
        raise UnauthorizedError("Only administrators can moderate reviews")
    with atomic(db):
        review = load_review(db, review_id)
        target = _moderate(review, event)
        # approving clears a previous flag/rejection reason
        versioned_update(db, review, {"status": target, "flag_reason": reason})
        log_audit(
            db,
            actor=actor,
            action=MODERATION_ACTIONS[event],
            entity_type="review",
            entity_id=str(review.id),
            status=review.status.value,
            rental_id=review.rental_id,
            description=reason,
        )
    logger.info("Review %s %s", review_id, MODERATION_ACTIONS[event])
    return review


def approve_review(db: Session, actor: User, review_id: int) -> Review:
    return _admin_moderation(db, actor, review_id, "approve", None)


def reject_review(db: Session, actor: User, review_id: int, reason: Optional[str] = None) -> Review:
    return _admin_moderation(db, actor, review_id, "reject", reason)


def flag_review(db: Session, actor: User, review_id: int, reason: str) -> Review:
    """Any signed-in user may flag a review for an admin to look at."""
    logger.info("Flagging review: %s by user: %s", review_id, actor.id)
    with atomic(db):
        review = load_review(db, review_id)
        versioned_update(db, review, {"status": _moderate(review, "flag"), "flag_reason": reason})
        log_audit(
            db,
            actor=actor,
            action="flagged",
            entity_type="review",
            entity_id=str(review.id),
            status=review.status.value,
            rental_id=review.rental_id,
            description=reason,
        )
    return review


def _bump_counter(db: Session, review_id: int, column) -> Review:
    with atomic(db):
        review = load_review(db, review_id)
        if review.status == ReviewStatus.DELETED:
            raise InvalidStateError("Cannot vote on a deleted review")
        db.query(Review).filter(Review.id == review_id).update(
            {column: column + 1}, synchronize_session=False
        )
        db.refresh(review)
    return review


def mark_helpful(db: Session, review_id: int) -> Review:
    logger.debug("Marking review %s as helpful", review_id)
    return _bump_counter(db, review_id, Review.helpful_count)


def mark_unhelpful(db: Session, review_id: int) -> Review:
    logger.debug("Marking review %s as unhelpful", review_id)
    return _bump_counter(db, review_id, Review.unhelpful_count)
