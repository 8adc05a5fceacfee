"""
Rental pricing rules.

All money is Decimal and rounded half-up to cents. Durations are truncated to
whole units: a 47h59m rental bills one day, a 167h59m lead time is 167 hours.
"""
from datetime import datetime, timedelta
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional

from app.core.database import as_utc, utcnow

CENTS = Decimal("0.01")

# (minimum whole hours before pickup, share of total refunded), checked top-down
CANCELLATION_TIERS = (
    (168, Decimal("1.00")),
    (72, Decimal("0.70")),
    (24, Decimal("0.50")),
)


def round_money(value: Decimal) -> Decimal:
    return Decimal(value).quantize(CENTS, rounding=ROUND_HALF_UP)


def _whole_hours(delta: timedelta) -> int:
    return int(delta.total_seconds() / 3600)


def rental_days(pickup_date: datetime, return_date: datetime) -> int:
    """Whole days between pickup and return, truncated."""
    return (as_utc(return_date) - as_utc(pickup_date)).days


def total_cost(daily_rate: Decimal, days: int) -> Decimal:
    return round_money(Decimal(daily_rate) * days)


def refund_share(pickup_date: datetime, now: Optional[datetime] = None) -> Decimal:
    """Fraction of the booking refunded when cancelling at ``now``."""
    now = now or utcnow()
    hours_until_pickup = _whole_hours(as_utc(pickup_date) - as_utc(now))
    for min_hours, share in CANCELLATION_TIERS:
        if hours_until_pickup >= min_hours:
            return share
    return Decimal("0")


def cancellation_refund(total: Decimal, pickup_date: datetime, now: Optional[datetime] = None) -> Decimal:
    return round_money(Decimal(total) * refund_share(pickup_date, now))


def late_fee(return_date: datetime, daily_rate: Decimal, now: Optional[datetime] = None) -> Decimal:
    """Hourly rate (daily / 24, rounded to cents) times whole hours past the return date."""
    now = now or utcnow()
    hours_late = _whole_hours(as_utc(now) - as_utc(return_date))
    if hours_late <= 0:
        return Decimal("0.00")
    hourly_rate = round_money(Decimal(daily_rate) / 24)
    return round_money(hourly_rate * hours_late)


def tax_on(amount: Decimal, tax_rate: Decimal) -> Decimal:
    return round_money(Decimal(amount) * Decimal(str(tax_rate)))
