"""
Vehicle availability.

Rental windows are half-open, ``[pickup_date, return_date)``: a booking that
returns at 10:00 does not collide with one picking up at 10:00. Only rentals
in a blocking status (PENDING, CONFIRMED, ACTIVE) hold the vehicle.
"""
import logging
from datetime import datetime
from typing import Iterable, List, Optional

from sqlalchemy.orm import Session

from app.core.errors import BookingConflictError, ValidationFailure
from app.models.rental import Rental
from app.services.rental_state import BLOCKING_STATUSES

logger = logging.getLogger(__name__)


def validate_window(pickup_date: datetime, return_date: datetime) -> None:
    if return_date <= pickup_date:
        raise ValidationFailure("Return date must be after pickup date")


def overlaps(a_start: datetime, a_end: datetime, b_start: datetime, b_end: datetime) -> bool:
    return not (a_end <= b_start or a_start >= b_end)


def find_conflicts(
    db: Session,
    vehicle_id: int,
    pickup_date: datetime,
    return_date: datetime,
    blocking_statuses: Iterable = BLOCKING_STATUSES,
    exclude_rental_id: Optional[int] = None,
) -> List[Rental]:
    q = (
        db.query(Rental)
        .filter(Rental.vehicle_id == vehicle_id)
        .filter(Rental.status.in_(list(blocking_statuses)))
        # NOT (existing.return <= new.pickup OR existing.pickup >= new.return)
        .filter(Rental.return_date > pickup_date)
        .filter(Rental.pickup_date < return_date)
    )
    if exclude_rental_id is not None:
        q = q.filter(Rental.id != exclude_rental_id)
    return q.order_by(Rental.pickup_date).all()


def is_available(
    db: Session,
    vehicle_id: int,
    pickup_date: datetime,
    return_date: datetime,
    exclude_rental_id: Optional[int] = None,
) -> bool:
    validate_window(pickup_date, return_date)
    return not find_conflicts(db, vehicle_id, pickup_date, return_date, exclude_rental_id=exclude_rental_id)


def check_availability(
    db: Session,
    vehicle_id: int,
    pickup_date: datetime,
    return_date: datetime,
    blocking_statuses: Iterable = BLOCKING_STATUSES,
    exclude_rental_id: Optional[int] = None,
) -> None:
    """
    Raise BookingConflictError if the window overlaps a blocking rental.

    Must run in the same transaction as the write it guards, after the vehicle
    row has been locked (see directory.find_vehicle(lock=True)).
    """
    validate_window(pickup_date, return_date)
    conflicts = find_conflicts(
        db, vehicle_id, pickup_date, return_date, blocking_statuses, exclude_rental_id
    )
    if conflicts:
        logger.warning(
            "Booking conflict for vehicle %s [%s, %s): overlaps rental(s) %s",
            vehicle_id,
            pickup_date.isoformat(),
            return_date.isoformat(),
            ", ".join(str(r.id) for r in conflicts),
        )
        raise BookingConflictError("Vehicle is not available for the selected dates")
