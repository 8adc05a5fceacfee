from datetime import timedelta

import pytest

from app.core.errors import BookingConflictError, ValidationFailure
from app.models.enums import RentalStatus
from app.services import availability, rentals


def test_overlaps_is_half_open(now):
    a, b, c = now, now + timedelta(days=1), now + timedelta(days=2)
    assert availability.overlaps(a, c, b, c)
    assert not availability.overlaps(a, b, b, c)
    assert not availability.overlaps(b, c, a, b)


def test_back_to_back_bookings_do_not_conflict(db, book, vehicle, now):
    book(2, 5)
    assert availability.is_available(db, vehicle.id, now + timedelta(days=5), now + timedelta(days=7))
    assert availability.is_available(db, vehicle.id, now + timedelta(days=1), now + timedelta(days=2))


def test_overlapping_window_is_not_available(db, book, vehicle, now):
    booked = book(2, 5)
    assert not availability.is_available(db, vehicle.id, now + timedelta(days=4), now + timedelta(days=6))
    conflicts = availability.find_conflicts(db, vehicle.id, now + timedelta(days=3), now + timedelta(days=4))
    assert [r.id for r in conflicts] == [booked.id]


def test_cancelled_rental_frees_the_vehicle(db, book, customer, vehicle, now):
    booked = book(2, 5)
    rentals.cancel_rental(db, customer, booked.id, now=now)
    assert booked.status == RentalStatus.CANCELLED
    assert availability.is_available(db, vehicle.id, now + timedelta(days=3), now + timedelta(days=4))


def test_own_rental_can_be_excluded(db, book, vehicle, now):
    booked = book(2, 5)
    assert availability.is_available(
        db, vehicle.id, now + timedelta(days=3), now + timedelta(days=6), exclude_rental_id=booked.id
    )


def test_check_availability_raises_conflict(db, book, vehicle, now):
    book(2, 5)
    with pytest.raises(BookingConflictError):
        availability.check_availability(db, vehicle.id, now + timedelta(days=2), now + timedelta(days=5))


def test_inverted_window_is_rejected(db, vehicle, now):
    with pytest.raises(ValidationFailure):
        availability.is_available(db, vehicle.id, now + timedelta(days=3), now + timedelta(days=3))
