from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from app.services import pricing

PICKUP = datetime(2026, 6, 1, 10, 0, tzinfo=timezone.utc)


@pytest.mark.parametrize(
    "span, days",
    [
        (timedelta(hours=24), 1),
        (timedelta(hours=47, minutes=59), 1),
        (timedelta(hours=48), 2),
        (timedelta(days=3), 3),
        (timedelta(hours=23, minutes=59), 0),
    ],
)
def test_rental_days_truncates(span, days):
    assert pricing.rental_days(PICKUP, PICKUP + span) == days


def test_total_cost_is_rate_times_days():
    assert pricing.total_cost(Decimal("50.00"), 3) == Decimal("150.00")
    assert pricing.total_cost(Decimal("33.33"), 3) == Decimal("99.99")


@pytest.mark.parametrize(
    "lead, share",
    [
        (timedelta(hours=200), Decimal("1.00")),
        (timedelta(hours=168), Decimal("1.00")),
        (timedelta(hours=167, minutes=59), Decimal("0.70")),
        (timedelta(hours=72), Decimal("0.70")),
        (timedelta(hours=71, minutes=59), Decimal("0.50")),
        (timedelta(hours=24), Decimal("0.50")),
        (timedelta(hours=23, minutes=59), Decimal("0")),
        (timedelta(hours=-5), Decimal("0")),
    ],
)
def test_refund_share_tiers(lead, share):
    assert pricing.refund_share(PICKUP, now=PICKUP - lead) == share


def test_cancellation_refund_amount():
    now = PICKUP - timedelta(hours=100)
    assert pricing.cancellation_refund(Decimal("150.00"), PICKUP, now) == Decimal("105.00")


def test_late_fee_uses_rounded_hourly_rate():
    # 50 / 24 = 2.0833.. -> 2.08 per hour
    due = PICKUP + timedelta(days=3)
    assert pricing.late_fee(due, Decimal("50.00"), now=due + timedelta(hours=3, minutes=30)) == Decimal("6.24")


def test_no_late_fee_within_the_first_hour_or_early():
    due = PICKUP + timedelta(days=3)
    assert pricing.late_fee(due, Decimal("50.00"), now=due + timedelta(minutes=59)) == Decimal("0.00")
    assert pricing.late_fee(due, Decimal("50.00"), now=due - timedelta(hours=5)) == Decimal("0.00")


def test_tax_and_rounding():
    assert pricing.tax_on(Decimal("150.00"), Decimal("0.10")) == Decimal("15.00")
    assert pricing.tax_on(Decimal("0.05"), 0.10) == Decimal("0.01")
    assert pricing.round_money(Decimal("2.345")) == Decimal("2.35")
