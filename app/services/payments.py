"""
Payment ledger and refund processor.

Payments are recorded, never charged: the gateway call happens upstream and
hands us its transaction id, which doubles as the idempotency key. Once a
payment is COMPLETED its status only ever follows ``refunded_amount``.
"""
import logging
from datetime import datetime, timedelta
from decimal import Decimal
from typing import List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.audit import log_audit
from app.core.auth import User
from app.core.config import settings
from app.core.database import as_utc, atomic, utcnow
from app.core.errors import InvalidStateError, NotFoundError, UnauthorizedError, ValidationFailure
from app.models.enums import PaymentMethod, PaymentStatus, RefundStatus, RentalStatus
from app.models.payment import Payment
from app.models.refund import Refund
from app.models.rental import Rental
from app.services import pricing
from app.services.payment_state import REFUNDABLE_STATUSES, refundable_balance, status_for_refunded
from app.services.versioning import versioned_update

logger = logging.getLogger(__name__)


def _load_rental(db: Session, rental_id: int, lock: bool = False) -> Rental:
    q = db.query(Rental).filter(Rental.id == rental_id)
    if lock:
        # Held until commit: a second payment for this rental waits here
        q = q.with_for_update()
    rental = q.first()
    if not rental:
        raise NotFoundError("Rental not found")
    return rental


def _load_payment(db: Session, payment_id: int) -> Payment:
    payment = db.query(Payment).filter(Payment.id == payment_id).first()
    if not payment:
        raise NotFoundError(f"Payment not found with ID: {payment_id}")
    return payment


def _ensure_can_view(owner_id: str, actor: User, what: str) -> None:
    if not actor.is_admin and owner_id != actor.id:
        raise UnauthorizedError(f"Unauthorized: {what} does not belong to user")


def create_payment(
    db: Session,
    actor: User,
    *,
    rental_id: int,
    amount: Decimal,
    payment_method: PaymentMethod,
    transaction_id: str,
    description: Optional[str] = None,
) -> Payment:
    """Record the single full payment for a rental."""
    logger.info("Processing payment for rental: %s, user: %s", rental_id, actor.id)

    if amount is None or Decimal(amount) <= 0:
        raise ValidationFailure("Invalid payment amount")
    try:
        payment_method = PaymentMethod(payment_method)
    except ValueError:
        raise ValidationFailure(f"Unsupported payment method: {payment_method}")

    try:
        with atomic(db):
            if db.query(Payment.id).filter(Payment.transaction_id == transaction_id).first():
                raise ValidationFailure("Payment with this transaction ID already exists")

            rental = _load_rental(db, rental_id, lock=True)
            if rental.user_id != actor.id:
                raise UnauthorizedError("Unauthorized: Rental does not belong to user")
            if rental.status == RentalStatus.CANCELLED:
                raise InvalidStateError("Cannot pay for a cancelled rental")

            if Decimal(amount) != Decimal(rental.total_cost):
                raise ValidationFailure("Payment amount must match rental total cost")

            already_paid = (
                db.query(Payment.id)
                .filter(Payment.rental_id == rental.id)
                .filter(Payment.status == PaymentStatus.COMPLETED)
                .first()
            )
            if already_paid:
                raise ValidationFailure("Payment already completed for this rental")

            payment = Payment(
                rental_id=rental.id,
                user_id=rental.user_id,
                amount=pricing.round_money(amount),
                refunded_amount=Decimal("0.00"),
                payment_method=payment_method,
                transaction_id=transaction_id,
                status=PaymentStatus.COMPLETED,
                description=description,
                version=1,
            )
            db.add(payment)
            db.flush()
            log_audit(
                db,
                actor=actor,
                action="paid",
                entity_type="payment",
                entity_id=str(payment.id),
                status=payment.status.value,
                rental_id=rental.id,
                description=f"Payment {transaction_id} of {payment.amount} via {payment_method.value}",
            )
    except IntegrityError:
        # Lost a race on the unique transaction id
        logger.warning("Duplicate transaction id rejected by database: %s", transaction_id)
        raise ValidationFailure("Payment with this transaction ID already exists")

    logger.info("Payment processed successfully with ID: %s", payment.id)
    return payment


def get_payment(db: Session, actor: User, payment_id: int) -> Payment:
    payment = _load_payment(db, payment_id)
    _ensure_can_view(payment.user_id, actor, "Payment")
    return payment


def list_rental_payments(db: Session, actor: User, rental_id: int) -> List[Payment]:
    rental = _load_rental(db, rental_id)
    _ensure_can_view(rental.user_id, actor, "Rental")
    return db.query(Payment).filter(Payment.rental_id == rental_id).order_by(Payment.created_at, Payment.id).all()


def list_user_payments(db: Session, user_id: str, limit: int = 10, offset: int = 0) -> List[Payment]:
    return (
        db.query(Payment)
        .filter(Payment.user_id == user_id)
        .order_by(Payment.created_at.desc(), Payment.id.desc())
        .offset(offset)
        .limit(limit)
        .all()
    )


def issue_refund(db: Session, actor: User, payment: Payment, amount: Decimal, reason: Optional[str] = None) -> Refund:
    """
    Insert an INITIATED refund and move the payment's refunded total.

    Runs inside the caller's transaction; refund_payment and rental
    cancellation both go through here.
    """
    amount = pricing.round_money(amount)
    if amount <= 0:
        raise ValidationFailure("Refund amount must be greater than 0")

    balance = refundable_balance(payment.amount, payment.refunded_amount)
    if amount > balance:
        raise ValidationFailure("Refund amount exceeds refundable balance")
    if payment.status not in REFUNDABLE_STATUSES:
        raise InvalidStateError("Only completed payments can be refunded")

    refund = Refund(
        payment_id=payment.id,
        rental_id=payment.rental_id,
        amount=amount,
        reason=reason,
        status=RefundStatus.INITIATED,
    )
    db.add(refund)
    db.flush()

    new_refunded = pricing.round_money(Decimal(payment.refunded_amount or 0) + amount)
    versioned_update(
        db,
        payment,
        {"refunded_amount": new_refunded, "status": status_for_refunded(payment.amount, new_refunded)},
    )
    log_audit(
        db,
        actor=actor,
        action="refunded",
        entity_type="refund",
        entity_id=str(refund.id),
        status=payment.status.value,
        rental_id=payment.rental_id,
        description=f"Refund of {refund.amount} on payment {payment.id} ({payment.refunded_amount}/{payment.amount} refunded)",
    )
    logger.info("Refund created successfully with ID: %s", refund.id)
    return refund


def refund_payment(
    db: Session,
    actor: User,
    payment_id: int,
    amount: Decimal,
    reason: Optional[str] = None,
) -> Refund:
    logger.info("Processing refund for payment: %s", payment_id)
    with atomic(db):
        payment = _load_payment(db, payment_id)
        _ensure_can_view(payment.user_id, actor, "Payment")
        refund = issue_refund(db, actor, payment, amount, reason)
    return refund


def list_payment_refunds(db: Session, actor: User, payment_id: int) -> List[Refund]:
    payment = get_payment(db, actor, payment_id)
    return db.query(Refund).filter(Refund.payment_id == payment.id).order_by(Refund.created_at, Refund.id).all()


def find_stuck_refunds(db: Session, now: Optional[datetime] = None) -> List[Refund]:
    """Refunds still PROCESSING past the configured threshold."""
    now = as_utc(now or utcnow())
    cutoff = now - timedelta(hours=settings.REFUND_STUCK_AFTER_HOURS)
    return (
        db.query(Refund)
        .filter(Refund.status == RefundStatus.PROCESSING)
        .filter(Refund.created_at < cutoff)
        .order_by(Refund.created_at)
        .all()
    )


def report_stuck_refunds(db: Session, now: Optional[datetime] = None) -> List[Refund]:
    """Log every stuck refund. Reports only; nothing is retried or resolved."""
    logger.info("Checking for stuck refunds")
    refunds = find_stuck_refunds(db, now)
    for refund in refunds:
        logger.warning(
            "Refund stuck in processing: %s (payment %s, created %s)",
            refund.id,
            refund.payment_id,
            as_utc(refund.created_at).isoformat(),
        )
    return refunds


def calculate_total_cost(db: Session, actor: User, rental_id: int) -> Decimal:
    """Booking total plus additional fees plus tax on both. Read-only."""
    rental = _load_rental(db, rental_id)
    _ensure_can_view(rental.user_id, actor, "Rental")
    base = Decimal(rental.total_cost) + Decimal(rental.additional_fees or 0)
    return pricing.round_money(base + pricing.tax_on(base, settings.TAX_RATE))
