"""
Rental bookings: create, modify, cancel and the admin lifecycle steps.

Every function that changes a rental runs in a single ``atomic`` block:
the vehicle lock, the conflict scan, the write and the audit row commit
together or not at all.
"""
import logging
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Any, Callable, Dict, List, Optional

from sqlalchemy.orm import Session

from app.core.audit import log_audit
from app.core.auth import User
from app.core.config import settings
from app.core.database import as_utc, atomic, utcnow
from app.core.errors import InvalidStateError, NotFoundError, UnauthorizedError, ValidationFailure
from app.models.enums import PaymentStatus, RentalStatus
from app.models.payment import Payment
from app.models.rental import Rental
from app.services import pricing, rental_state
from app.services.availability import check_availability, validate_window
from app.services.directory import find_user, find_vehicle
from app.services.payments import issue_refund
from app.services.versioning import versioned_update

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = ("pickup_date", "return_date", "pickup_location", "return_location", "special_requests")

ADMIN_ACTIONS = {
    rental_state.CONFIRM: "confirmed",
    rental_state.ACTIVATE: "activated",
    rental_state.COMPLETE: "completed",
}


def load_rental(db: Session, rental_id: int) -> Rental:
    rental = db.query(Rental).filter(Rental.id == rental_id).first()
    if not rental:
        raise NotFoundError(f"Rental not found with ID: {rental_id}")
    return rental


def _ensure_owner(rental: Rental, actor: User, verb: str) -> None:
    if rental.user_id != actor.id:
        raise UnauthorizedError(f"Cannot {verb} rental belonging to another user")


def _ensure_admin(actor: User) -> None:
    if not actor.is_admin:
        raise UnauthorizedError("Only administrators can change rental status")


def _apply(rental: Rental, event: str) -> RentalStatus:
    result = rental_state.transition(rental.status, event)
    if not result.allowed:
        raise InvalidStateError(result.reason)
    return result.target


def _billable_days(pickup_date: datetime, return_date: datetime) -> int:
    days = pricing.rental_days(pickup_date, return_date)
    if days < 1:
        raise ValidationFailure("Rental must last at least one full day")
    return days


def create_rental(
    db: Session,
    actor: User,
    *,
    vehicle_id: int,
    pickup_date: datetime,
    return_date: datetime,
    pickup_location: str,
    return_location: Optional[str] = None,
    special_requests: Optional[str] = None,
    now: Optional[datetime] = None,
) -> Rental:
    """Book a vehicle. The new rental starts PENDING at the vehicle's current rate."""
    logger.info("Creating rental for user: %s, vehicle: %s", actor.id, vehicle_id)
    now = as_utc(now or utcnow())
    pickup_date, return_date = as_utc(pickup_date), as_utc(return_date)

    validate_window(pickup_date, return_date)
    if pickup_date < now:
        raise ValidationFailure("Pickup date must be in the future")
    days = _billable_days(pickup_date, return_date)

    with atomic(db):
        find_user(db, actor.id)
        # Held until commit: a second booking for this vehicle waits here
        vehicle = find_vehicle(db, vehicle_id, lock=True)
        check_availability(db, vehicle.id, pickup_date, return_date)

        rental = Rental(
            user_id=actor.id,
            vehicle_id=vehicle.id,
            pickup_date=pickup_date,
            return_date=return_date,
            pickup_location=pickup_location,
            return_location=return_location,
            daily_rate=vehicle.daily_rate,
            total_cost=pricing.total_cost(vehicle.daily_rate, days),
            special_requests=special_requests,
            status=RentalStatus.PENDING,
            version=1,
        )
        db.add(rental)
        db.flush()
        log_audit(
            db,
            actor=actor,
            action="created",
            entity_type="rental",
            entity_id=str(rental.id),
            status=rental.status.value,
            rental_id=rental.id,
            description=f"Rental booked: vehicle {vehicle.id}, {days} day(s), total {rental.total_cost}",
        )

    logger.info("Rental created successfully with ID: %s", rental.id)
    return rental


def get_rental(db: Session, actor: User, rental_id: int) -> Rental:
    rental = load_rental(db, rental_id)
    if not actor.is_admin:
        _ensure_owner(rental, actor, "view")
    return rental


def list_user_rentals(
    db: Session,
    user_id: str,
    status: Optional[RentalStatus] = None,
    limit: int = 10,
    offset: int = 0,
) -> List[Rental]:
    q = db.query(Rental).filter(Rental.user_id == user_id)
    if status is not None:
        q = q.filter(Rental.status == status)
    return q.order_by(Rental.created_at.desc(), Rental.id.desc()).offset(offset).limit(limit).all()


def update_rental(
    db: Session,
    actor: User,
    rental_id: int,
    changes: Dict[str, Any],
    expected_version: Optional[int] = None,
    now: Optional[datetime] = None,
) -> Rental:
    """
    Modify a PENDING booking at least 24 hours before pickup.

    New dates are checked for conflicts (ignoring this rental) before they are
    written, and the total is re-derived from the booked daily rate.
    """
    logger.info("Updating rental: %s for user: %s", rental_id, actor.id)
    now = as_utc(now or utcnow())
    changes = {k: v for k, v in changes.items() if k in UPDATABLE_FIELDS and v is not None}

    with atomic(db):
        rental = load_rental(db, rental_id)
        _ensure_owner(rental, actor, "update")
        _apply(rental, rental_state.UPDATE)

        cutoff = timedelta(hours=settings.RENTAL_MODIFICATION_CUTOFF_HOURS)
        if now + cutoff > as_utc(rental.pickup_date):
            raise InvalidStateError(
                f"Cannot modify rental less than {settings.RENTAL_MODIFICATION_CUTOFF_HOURS} hours before pickup"
            )

        values: Dict[str, Any] = dict(changes)
        pickup_date = as_utc(changes.get("pickup_date", rental.pickup_date))
        return_date = as_utc(changes.get("return_date", rental.return_date))

        if "pickup_date" in changes or "return_date" in changes:
            validate_window(pickup_date, return_date)
            if pickup_date < now:
                raise ValidationFailure("Pickup date must be in the future")
            find_vehicle(db, rental.vehicle_id, lock=True)
            check_availability(db, rental.vehicle_id, pickup_date, return_date, exclude_rental_id=rental.id)
            values["pickup_date"] = pickup_date
            values["return_date"] = return_date

        values["total_cost"] = pricing.total_cost(rental.daily_rate, _billable_days(pickup_date, return_date))

        versioned_update(db, rental, values, expected_version)
        log_audit(
            db,
            actor=actor,
            action="updated",
            entity_type="rental",
            entity_id=str(rental.id),
            status=rental.status.value,
            rental_id=rental.id,
            description=f"Rental updated: {', '.join(sorted(changes)) or 'no fields'}; total {rental.total_cost}",
        )

    logger.info("Rental updated successfully: %s", rental_id)
    return rental


def _completed_payment(db: Session, rental_id: int) -> Optional[Payment]:
    return (
        db.query(Payment)
        .filter(Payment.rental_id == rental_id)
        .filter(Payment.status.in_([PaymentStatus.COMPLETED, PaymentStatus.PARTIALLY_REFUNDED]))
        .first()
    )


def cancel_rental(
    db: Session,
    actor: User,
    rental_id: int,
    expected_version: Optional[int] = None,
    now: Optional[datetime] = None,
) -> Rental:
    """
    Cancel a PENDING or CONFIRMED booking.

    If the customer already paid, the cancellation-policy share of the total is
    refunded in the same transaction.
    """
    logger.info("Cancelling rental: %s for user: %s", rental_id, actor.id)
    now = as_utc(now or utcnow())

    with atomic(db):
        rental = load_rental(db, rental_id)
        _ensure_owner(rental, actor, "cancel")
        previous = rental.status
        target = _apply(rental, rental_state.CANCEL)
        versioned_update(db, rental, {"status": target}, expected_version)

        payment = _completed_payment(db, rental.id)
        if payment is not None:
            owed = min(
                pricing.cancellation_refund(rental.total_cost, rental.pickup_date, now),
                Decimal(payment.amount) - Decimal(payment.refunded_amount or 0),
            )
            if owed > 0:
                issue_refund(db, actor, payment, owed, reason=f"Cancellation of rental {rental.id}")

        log_audit(
            db,
            actor=actor,
            action="cancelled",
            entity_type="rental",
            entity_id=str(rental.id),
            status=rental.status.value,
            previous_status=previous.value,
            rental_id=rental.id,
            description=f"Rental cancelled (was {previous.value})",
        )

    logger.info("Rental cancelled successfully: %s", rental_id)
    return rental


def _admin_step(
    db: Session,
    actor: User,
    rental_id: int,
    event: str,
    expected_version: Optional[int],
    extra_values: Optional[Callable[[Rental], Dict[str, Any]]] = None,
) -> Rental:
    _ensure_admin(actor)
    with atomic(db):
        rental = load_rental(db, rental_id)
        previous = rental.status
        target = _apply(rental, event)
        values = {"status": target}
        if extra_values:
            values.update(extra_values(rental))
        versioned_update(db, rental, values, expected_version)
        log_audit(
            db,
            actor=actor,
            action=ADMIN_ACTIONS[event],
            entity_type="rental",
            entity_id=str(rental.id),
            status=rental.status.value,
            previous_status=previous.value,
            rental_id=rental.id,
            description=f"Rental {previous.value} -> {rental.status.value}",
        )
    return rental


def confirm_rental(db: Session, actor: User, rental_id: int, expected_version: Optional[int] = None) -> Rental:
    logger.info("Confirming rental: %s", rental_id)
    rental = _admin_step(db, actor, rental_id, rental_state.CONFIRM, expected_version)
    logger.info("Rental confirmed successfully: %s", rental_id)
    return rental


def activate_rental(db: Session, actor: User, rental_id: int, expected_version: Optional[int] = None) -> Rental:
    logger.info("Activating rental: %s", rental_id)
    rental = _admin_step(db, actor, rental_id, rental_state.ACTIVATE, expected_version)
    logger.info("Rental activated successfully: %s", rental_id)
    return rental


def complete_rental(
    db: Session,
    actor: User,
    rental_id: int,
    expected_version: Optional[int] = None,
    now: Optional[datetime] = None,
) -> Rental:
    """Close an ACTIVE rental, recording the return time and any late fee."""
    logger.info("Completing rental: %s", rental_id)
    now = as_utc(now or utcnow())

    def _return_values(rental: Rental) -> Dict[str, Any]:
        fee = pricing.late_fee(rental.return_date, rental.daily_rate, now)
        values: Dict[str, Any] = {"actual_return_date": now}
        if fee > 0:
            logger.info("Rental %s returned late, charging %s", rental.id, fee)
            values["additional_fees"] = pricing.round_money(Decimal(rental.additional_fees or 0) + fee)
        return values

    rental = _admin_step(db, actor, rental_id, rental_state.COMPLETE, expected_version, _return_values)
    logger.info("Rental completed successfully: %s", rental_id)
    return rental


def cancellation_quote(db: Session, actor: User, rental_id: int, now: Optional[datetime] = None) -> Dict[str, Any]:
    """What cancelling right now would refund, without cancelling."""
    now = as_utc(now or utcnow())
    rental = get_rental(db, actor, rental_id)
    share = pricing.refund_share(rental.pickup_date, now)
    return {
        "rental_id": rental.id,
        "status": rental.status,
        "cancellable": rental_state.transition(rental.status, rental_state.CANCEL).allowed,
        "hours_until_pickup": int((as_utc(rental.pickup_date) - now).total_seconds() / 3600),
        "refund_percentage": int(share * 100),
        "refund_amount": pricing.cancellation_refund(rental.total_cost, rental.pickup_date, now),
    }
