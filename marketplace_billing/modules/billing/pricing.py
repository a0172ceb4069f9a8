"""Billing quote calculator.

Computes the total due, resulting status and expiry of a subscription for a
plan, a requested billing cycle and an amount paid. Pure functions: the only
ambient input is the current time, which callers may inject through ``now``.
"""

import calendar
import math
from datetime import datetime, timezone
from typing import Optional, Tuple, Union

from marketplace_billing.modules.billing.exceptions import (
    InsufficientPayment,
    InvalidBillingCycle,
    InvalidPlanConfiguration,
)
from marketplace_billing.modules.billing.models import Quote, SubscriptionStatus
from marketplace_billing.modules.plans.models import BillingCycle, Plan


# Whole months granted by a fully paid cycle
CYCLE_MONTHS = {
    BillingCycle.MONTHLY.value: 1,
    BillingCycle.QUARTERLY.value: 3,
    BillingCycle.HALF_YEARLY.value: 6,
    BillingCycle.ANNUALLY.value: 12,
}

DEFAULT_CYCLE = BillingCycle.MONTHLY.value

# Partial activation requires at least half of the cycle total
MIN_PARTIAL_PAYMENT_RATIO = 0.5

# Free plans never lapse; a far horizon stands in for "forever"
FREE_PLAN_HORIZON_YEARS = 10


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def add_months(moment: datetime, months: int) -> datetime:
    """Add calendar months, clamping the day to the end of the target month.

    Jan 31 + 1 month is Feb 28 (or Feb 29 in a leap year).
    """
    month = moment.month + months
    year = moment.year + (month - 1) // 12
    month = ((month - 1) % 12) + 1

    max_day = calendar.monthrange(year, month)[1]
    day = min(moment.day, max_day)

    return moment.replace(year=year, month=month, day=day)


def cycle_months(cycle: str) -> int:
    """Months in a billing cycle.

    Unknown cycle names fall back to one month. Callers validate the cycle
    against the plan's price table first, so the fallback is never reached
    through compute_quote.
    """
    return CYCLE_MONTHS.get(cycle, 1)


def compute_expiry(
    cycle: str,
    paid: float,
    total: float,
    now: Optional[datetime] = None,
) -> Tuple[datetime, SubscriptionStatus, int]:
    """Derive expiry, status and months granted from a payment.

    Args:
        cycle: Billing cycle name
        paid: Amount paid
        total: Cycle total
        now: Time the quote is computed at (defaults to now, UTC)

    Returns:
        Tuple of (expires_at, status, months_granted)

    Raises:
        InvalidPlanConfiguration: If the cycle total is not positive
        InsufficientPayment: If less than half of the total was paid
    """
    if total <= 0:
        raise InvalidPlanConfiguration(
            f"total for cycle '{cycle}' must be positive, got {total}"
        )

    if now is None:
        now = utc_now()

    full_months = cycle_months(cycle)

    if paid >= total:
        return add_months(now, full_months), SubscriptionStatus.ACTIVE, full_months

    paid_fraction = paid / total
    if paid_fraction < MIN_PARTIAL_PAYMENT_RATIO:
        raise InsufficientPayment(paid_fraction, MIN_PARTIAL_PAYMENT_RATIO)

    # Truncated to whole months; no day-level proration
    months = math.floor(full_months * paid / total)
    return add_months(now, months), SubscriptionStatus.PARTIALLY_PAID, months


def compute_quote(
    plan: Plan,
    requested_cycle: Optional[Union[BillingCycle, str]] = None,
    amount_paid: float = 0,
    now: Optional[datetime] = None,
) -> Quote:
    """Compute the billing quote for subscribing to a plan.

    Args:
        plan: Plan being subscribed to
        requested_cycle: Billing cycle name (defaults to monthly)
        amount_paid: Amount paid so far
        now: Time the quote is computed at (defaults to now, UTC)

    Returns:
        Quote with total, paid amount, cycle, status and expiry

    Raises:
        InvalidBillingCycle: If the plan is not priced for the cycle
        InsufficientPayment: If a partial payment is below the floor
        InvalidPlanConfiguration: If the cycle total is not positive
    """
    if now is None:
        now = utc_now()

    if not plan.is_premium:
        horizon = FREE_PLAN_HORIZON_YEARS * 12
        return Quote(
            total_amount=0,
            amount_paid=0,
            billing_cycle=DEFAULT_CYCLE,
            expires_at=add_months(now, horizon),
            status=SubscriptionStatus.ACTIVE,
            months_granted=horizon,
        )

    if isinstance(requested_cycle, BillingCycle):
        cycle = requested_cycle.value
    else:
        cycle = requested_cycle or DEFAULT_CYCLE

    total_amount = plan.get_price(cycle)
    if total_amount is None:
        raise InvalidBillingCycle(cycle)

    expires_at, status, months = compute_expiry(cycle, amount_paid, total_amount, now=now)

    return Quote(
        total_amount=total_amount,
        amount_paid=amount_paid,
        billing_cycle=cycle,
        expires_at=expires_at,
        status=status,
        months_granted=months,
    )
