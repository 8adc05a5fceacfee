from decimal import Decimal

import pytest

from app.models.enums import PaymentStatus, RentalStatus
from app.services import rental_state
from app.services.payment_state import refundable_balance, status_for_refunded

EVENTS = [rental_state.UPDATE, rental_state.CONFIRM, rental_state.ACTIVATE, rental_state.COMPLETE, rental_state.CANCEL]


@pytest.mark.parametrize(
    "current, event, target",
    [
        (RentalStatus.PENDING, rental_state.UPDATE, RentalStatus.PENDING),
        (RentalStatus.PENDING, rental_state.CONFIRM, RentalStatus.CONFIRMED),
        (RentalStatus.CONFIRMED, rental_state.ACTIVATE, RentalStatus.ACTIVE),
        (RentalStatus.ACTIVE, rental_state.COMPLETE, RentalStatus.COMPLETED),
        (RentalStatus.PENDING, rental_state.CANCEL, RentalStatus.CANCELLED),
        (RentalStatus.CONFIRMED, rental_state.CANCEL, RentalStatus.CANCELLED),
    ],
)
def test_legal_transitions(current, event, target):
    result = rental_state.transition(current, event)
    assert result.allowed
    assert result.target == target


@pytest.mark.parametrize("current", sorted(rental_state.TERMINAL_STATUSES))
@pytest.mark.parametrize("event", EVENTS)
def test_terminal_statuses_accept_nothing(current, event):
    result = rental_state.transition(current, event)
    assert not result.allowed
    assert result.target is None
    assert result.reason


def test_refusal_messages():
    assert rental_state.transition(RentalStatus.ACTIVE, rental_state.CANCEL).reason == (
        "Cannot cancel an active rental. Please return the vehicle first."
    )
    assert rental_state.transition(RentalStatus.CONFIRMED, rental_state.CONFIRM).reason == (
        "Only PENDING rentals can be confirmed"
    )
    assert rental_state.transition(RentalStatus.CONFIRMED, rental_state.UPDATE).reason == (
        "Only PENDING rentals can be modified"
    )


def test_unknown_event():
    with pytest.raises(ValueError):
        rental_state.transition(RentalStatus.PENDING, "teleport")


def test_transition_accepts_raw_status_strings():
    assert rental_state.transition("PENDING", rental_state.CONFIRM).allowed


def test_blocking_statuses():
    assert rental_state.is_blocking(RentalStatus.PENDING)
    assert rental_state.is_blocking(RentalStatus.ACTIVE)
    assert not rental_state.is_blocking(RentalStatus.CANCELLED)
    assert not rental_state.is_blocking(RentalStatus.COMPLETED)


@pytest.mark.parametrize(
    "refunded, status",
    [
        ("0", PaymentStatus.COMPLETED),
        ("0.01", PaymentStatus.PARTIALLY_REFUNDED),
        ("75", PaymentStatus.PARTIALLY_REFUNDED),
        ("150", PaymentStatus.REFUNDED),
    ],
)
def test_payment_status_follows_refunded_amount(refunded, status):
    assert status_for_refunded(Decimal("150"), Decimal(refunded)) == status


def test_refunded_amount_out_of_range():
    with pytest.raises(ValueError):
        status_for_refunded(Decimal("150"), Decimal("150.01"))
    with pytest.raises(ValueError):
        status_for_refunded(Decimal("150"), Decimal("-1"))


def test_refundable_balance():
    assert refundable_balance(Decimal("150.00"), Decimal("75.00")) == Decimal("75.00")
    assert refundable_balance(Decimal("150.00"), None) == Decimal("150.00")
