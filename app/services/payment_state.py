from decimal import Decimal

from app.models.enums import PaymentStatus

# Payments with money left to give back
REFUNDABLE_STATUSES = frozenset({PaymentStatus.COMPLETED, PaymentStatus.PARTIALLY_REFUNDED})


def status_for_refunded(amount: Decimal, refunded_amount: Decimal) -> PaymentStatus:
    """
    Status of a completed payment as a function of how much of it was refunded.
    0 -> COMPLETED, part -> PARTIALLY_REFUNDED, all -> REFUNDED.
    """
    amount = Decimal(amount)
    refunded_amount = Decimal(refunded_amount or 0)
    if refunded_amount < 0 or refunded_amount > amount:
        raise ValueError(f"refunded amount {refunded_amount} outside [0, {amount}]")
    if refunded_amount == 0:
        return PaymentStatus.COMPLETED
    if refunded_amount == amount:
        return PaymentStatus.REFUNDED
    return PaymentStatus.PARTIALLY_REFUNDED


def refundable_balance(amount: Decimal, refunded_amount: Decimal) -> Decimal:
    return Decimal(amount) - Decimal(refunded_amount or 0)
