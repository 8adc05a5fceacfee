import logging
import time
import uuid
from decimal import Decimal
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.audit import log_audit
from app.core.auth import User
from app.core.config import settings
from app.core.database import atomic
from app.core.errors import NotFoundError, UnauthorizedError
from app.models.invoice import Invoice
from app.models.rental import Rental
from app.services import pricing

logger = logging.getLogger(__name__)


def generate_invoice_number(prefix: Optional[str] = None) -> str:
    """
    INV-<epoch millis>-<8 hex chars>. Uniqueness is enforced by the column's
    unique constraint, not here.
    """
    prefix = prefix or settings.INVOICE_PREFIX
    return f"{prefix}-{int(time.time() * 1000)}-{uuid.uuid4().hex[:8].upper()}"


def find_invoice(db: Session, rental_id: int):
    return db.query(Invoice).filter(Invoice.rental_id == rental_id).first()


def generate_invoice(db: Session, actor: User, rental_id: int) -> Invoice:
    """
    Return the rental's invoice, creating it on first request.

    The amounts are frozen at generation time: later fee changes on the rental
    do not touch an existing invoice.
    """
    logger.info("Generating invoice for rental: %s", rental_id)

    rental = db.query(Rental).filter(Rental.id == rental_id).first()
    if not rental:
        raise NotFoundError("Rental not found")
    if not actor.is_admin and rental.user_id != actor.id:
        raise UnauthorizedError("Unauthorized: Rental does not belong to user")

    existing = find_invoice(db, rental_id)
    if existing:
        logger.info("Invoice already exists for rental: %s", rental_id)
        return existing

    subtotal = pricing.round_money(rental.total_cost)
    taxes = pricing.tax_on(subtotal, settings.TAX_RATE)
    discount = Decimal("0.00")

    try:
        with atomic(db):
            invoice = Invoice(
                rental_id=rental.id,
                invoice_number=generate_invoice_number(),
                subtotal=subtotal,
                taxes=taxes,
                discount=discount,
                total_amount=subtotal + taxes - discount,
                notes=f"Invoice for rental {rental.id}",
            )
            db.add(invoice)
            db.flush()
            log_audit(
                db,
                actor=actor,
                action="invoiced",
                entity_type="invoice",
                entity_id=str(invoice.id),
                status=rental.status.value,
                rental_id=rental.id,
                description=f"Invoice {invoice.invoice_number}: {invoice.total_amount}",
            )
    except IntegrityError:
        # Another request created it first
        existing = find_invoice(db, rental_id)
        if existing is None:
            raise
        logger.info("Invoice for rental %s created concurrently, returning it", rental_id)
        return existing

    logger.info("Invoice generated successfully with ID: %s", invoice.id)
    return invoice
