"""
Rental lifecycle.

PENDING -> CONFIRMED -> ACTIVE -> COMPLETED, with CANCELLED reachable from
PENDING and CONFIRMED. COMPLETED and CANCELLED are terminal. Every status
change in the app goes through ``transition`` so the legal moves live in one
table.
"""
from typing import NamedTuple, Optional

from app.models.enums import RentalStatus

BLOCKING_STATUSES = frozenset({RentalStatus.PENDING, RentalStatus.CONFIRMED, RentalStatus.ACTIVE})
TERMINAL_STATUSES = frozenset({RentalStatus.COMPLETED, RentalStatus.CANCELLED})

UPDATE = "update"
CONFIRM = "confirm"
ACTIVATE = "activate"
COMPLETE = "complete"
CANCEL = "cancel"

# event -> (statuses it may fire from, resulting status)
TRANSITIONS = {
    UPDATE: (frozenset({RentalStatus.PENDING}), RentalStatus.PENDING),
    CONFIRM: (frozenset({RentalStatus.PENDING}), RentalStatus.CONFIRMED),
    ACTIVATE: (frozenset({RentalStatus.CONFIRMED}), RentalStatus.ACTIVE),
    COMPLETE: (frozenset({RentalStatus.ACTIVE}), RentalStatus.COMPLETED),
    CANCEL: (frozenset({RentalStatus.PENDING, RentalStatus.CONFIRMED}), RentalStatus.CANCELLED),
}


_REFUSALS = {
    UPDATE: "Only PENDING rentals can be modified",
    CONFIRM: "Only PENDING rentals can be confirmed",
    ACTIVATE: "Only CONFIRMED rentals can be activated",
    COMPLETE: "Only ACTIVE rentals can be completed",
}


class Transition(NamedTuple):
    allowed: bool
    target: Optional[RentalStatus]
    reason: Optional[str] = None


def _cancel_refusal(current: RentalStatus) -> str:
    if current == RentalStatus.ACTIVE:
        return "Cannot cancel an active rental. Please return the vehicle first."
    return f"Cannot cancel a {current.value.lower()} rental"


def transition(current: RentalStatus, event: str) -> Transition:
    """Resolve ``event`` against ``current`` without touching the database."""
    if event not in TRANSITIONS:
        raise ValueError(f"Unknown rental event: {event}")
    sources, target = TRANSITIONS[event]
    current = RentalStatus(current)
    if current in sources:
        return Transition(True, target)
    reason = _cancel_refusal(current) if event == CANCEL else _REFUSALS[event]
    return Transition(False, None, reason)


def is_blocking(status: RentalStatus) -> bool:
    return RentalStatus(status) in BLOCKING_STATUSES
