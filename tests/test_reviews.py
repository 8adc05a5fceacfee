from datetime import timedelta

import pytest

from app.core.database import as_utc
from app.core.errors import (
    ConcurrencyConflictError,
    InvalidStateError,
    NotFoundError,
    UnauthorizedError,
    ValidationFailure,
)
from app.models.enums import ReviewStatus
from app.services import reviews


@pytest.fixture
def completed_at(completed_rental):
    return as_utc(completed_rental.updated_at)


def submit(db, user, rental_id, when, **overrides):
    fields = dict(rating=4, title="Great car", content="Clean and on time.")
    fields.update(overrides)
    return reviews.submit_review(db, user, rental_id=rental_id, now=when, **fields)


def test_review_within_deadline(db, completed_rental, completed_at, customer, vehicle):
    review = submit(db, customer, completed_rental.id, completed_at + timedelta(days=29), cleanliness_rating=5)
    assert review.status == ReviewStatus.PENDING
    assert review.vehicle_id == vehicle.id
    assert review.cleanliness_rating == 5
    assert review.helpful_count == 0
    assert review.unhelpful_count == 0


def test_review_after_deadline(db, completed_rental, completed_at, customer):
    with pytest.raises(InvalidStateError, match="deadline"):
        submit(db, customer, completed_rental.id, completed_at + timedelta(days=31))


def test_one_review_per_rental(db, completed_rental, completed_at, customer):
    submit(db, customer, completed_rental.id, completed_at)
    with pytest.raises(InvalidStateError, match="already exists"):
        submit(db, customer, completed_rental.id, completed_at)


def test_only_completed_rentals_by_their_owner(db, book, completed_rental, completed_at, other_customer, customer, now):
    with pytest.raises(UnauthorizedError):
        submit(db, other_customer, completed_rental.id, completed_at)
    with pytest.raises(NotFoundError):
        submit(db, customer, 999, completed_at)
    pending = book(20, 22)
    with pytest.raises(InvalidStateError, match="completed rentals"):
        submit(db, customer, pending.id, now)


def test_content_rules(db, completed_rental, completed_at, customer):
    with pytest.raises(ValidationFailure):
        submit(db, customer, completed_rental.id, completed_at, title="   ")
    with pytest.raises(ValidationFailure):
        submit(db, customer, completed_rental.id, completed_at, content="  ")
    with pytest.raises(ValidationFailure, match="inappropriate"):
        submit(db, customer, completed_rental.id, completed_at, content="That was BADWORD2 service")
    with pytest.raises(ValidationFailure):
        submit(db, customer, completed_rental.id, completed_at, rating=6)

    review = submit(db, customer, completed_rental.id, completed_at, title="  Very   good ", content="Smooth\n\nride")
    assert review.title == "Very good"
    assert review.content == "Smooth ride"


def test_moderation_flow(db, completed_rental, completed_at, customer, other_customer, admin, vehicle):
    review = submit(db, customer, completed_rental.id, completed_at)
    assert [r.id for r in reviews.list_reviews_by_status(db, ReviewStatus.PENDING)] == [review.id]
    assert reviews.list_vehicle_reviews(db, vehicle.id) == []

    with pytest.raises(UnauthorizedError):
        reviews.approve_review(db, customer, review.id)
    approved = reviews.approve_review(db, admin, review.id)
    assert approved.status == ReviewStatus.APPROVED
    assert [r.id for r in reviews.list_vehicle_reviews(db, vehicle.id)] == [review.id]

    flagged = reviews.flag_review(db, other_customer, review.id, "spam")
    assert flagged.status == ReviewStatus.FLAGGED
    assert flagged.flag_reason == "spam"
    assert [r.id for r in reviews.list_reviews_by_status(db, ReviewStatus.FLAGGED)] == [review.id]

    assert reviews.approve_review(db, admin, review.id).flag_reason is None
    rejected = reviews.reject_review(db, admin, review.id, "off topic")
    assert rejected.status == ReviewStatus.REJECTED


def test_edit_goes_back_to_moderation(db, completed_rental, completed_at, customer, other_customer, admin):
    review = submit(db, customer, completed_rental.id, completed_at)
    reviews.approve_review(db, admin, review.id)

    with pytest.raises(UnauthorizedError):
        reviews.update_review(db, other_customer, review.id, {"rating": 1})
    edited = reviews.update_review(db, customer, review.id, {"rating": 2, "content": "Meh  actually"})
    assert edited.status == ReviewStatus.PENDING
    assert edited.rating == 2
    assert edited.content == "Meh actually"
    assert edited.title == "Great car"

    with pytest.raises(ConcurrencyConflictError):
        reviews.update_review(db, customer, review.id, {"rating": 3}, expected_version=1)


def test_deleted_review_is_frozen(db, completed_rental, completed_at, customer, admin):
    review = submit(db, customer, completed_rental.id, completed_at)
    deleted = reviews.delete_review(db, customer, review.id)
    assert deleted.status == ReviewStatus.DELETED

    with pytest.raises(InvalidStateError):
        reviews.approve_review(db, admin, review.id)
    with pytest.raises(InvalidStateError):
        reviews.update_review(db, customer, review.id, {"rating": 5})
    with pytest.raises(InvalidStateError):
        reviews.delete_review(db, customer, review.id)
    with pytest.raises(InvalidStateError):
        reviews.mark_helpful(db, review.id)


def test_votes_and_rating_summary(db, completed_rental, completed_at, customer, admin, vehicle):
    review = submit(db, customer, completed_rental.id, completed_at, rating=5)
    reviews.approve_review(db, admin, review.id)

    reviews.mark_helpful(db, review.id)
    reviews.mark_helpful(db, review.id)
    voted = reviews.mark_unhelpful(db, review.id)
    assert voted.helpful_count == 2
    assert voted.unhelpful_count == 1

    assert [r.id for r in reviews.list_vehicle_reviews(db, vehicle.id, order="helpful")] == [review.id]
    summary = reviews.vehicle_rating_summary(db, vehicle.id)
    assert summary["average_rating"] == 5.0
    assert summary["total_reviews"] == 1
    assert summary["distribution"] == {1: 0, 2: 0, 3: 0, 4: 0, 5: 1}
    assert [r.id for r in reviews.list_user_reviews(db, customer.id)] == [review.id]


def test_rating_summary_without_reviews(db, vehicle):
    summary = reviews.vehicle_rating_summary(db, vehicle.id)
    assert summary["average_rating"] == 0.0
    assert summary["total_reviews"] == 0
