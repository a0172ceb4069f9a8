"""Billing module.

Computes subscription quotes (total, status, expiry) from a plan's price
table and the amount paid.
"""

from marketplace_billing.modules.billing.exceptions import (
    ActionDeniedError,
    BillingError,
    InsufficientPayment,
    InvalidBillingCycle,
    InvalidPlanConfiguration,
    PlanNotFoundError,
    QuoteError,
)
from marketplace_billing.modules.billing.models import Quote, SubscriptionStatus
from marketplace_billing.modules.billing.pricing import (
    CYCLE_MONTHS,
    FREE_PLAN_HORIZON_YEARS,
    MIN_PARTIAL_PAYMENT_RATIO,
    add_months,
    compute_expiry,
    compute_quote,
)
from marketplace_billing.modules.billing.notifications import (
    BillingNotifierBase,
    QuoteNotification,
    build_quote_notification,
)

__all__ = [
    "ActionDeniedError",
    "BillingError",
    "InsufficientPayment",
    "InvalidBillingCycle",
    "InvalidPlanConfiguration",
    "PlanNotFoundError",
    "QuoteError",
    "Quote",
    "SubscriptionStatus",
    "CYCLE_MONTHS",
    "FREE_PLAN_HORIZON_YEARS",
    "MIN_PARTIAL_PAYMENT_RATIO",
    "add_months",
    "compute_expiry",
    "compute_quote",
    "BillingNotifierBase",
    "QuoteNotification",
    "build_quote_notification",
]
