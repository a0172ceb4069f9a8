"""Billing and quota exceptions.

All of these are validation-class failures: retrying with the same inputs
yields the same verdict, so callers surface them rather than retry.
"""

from typing import Optional


class BillingError(Exception):
    """Base exception for billing engine errors."""
    pass


class PlanNotFoundError(BillingError):
    """Raised when a plan slug is not in the catalog."""

    def __init__(self, slug: str):
        self.slug = slug
        super().__init__(f"Plan not found: {slug}")


class QuoteError(BillingError):
    """Base exception for quote computation failures."""
    pass


class InvalidBillingCycle(QuoteError):
    """Raised when the requested cycle is not priced on the plan."""

    def __init__(self, cycle: str):
        self.cycle = cycle
        super().__init__(f"Pricing not configured for cycle: {cycle}")


class InsufficientPayment(QuoteError):
    """Raised when a partial payment is below the activation floor."""

    def __init__(self, paid_fraction: float, minimum_fraction: float = 0.5):
        self.paid_fraction = paid_fraction
        self.minimum_fraction = minimum_fraction
        super().__init__(
            f"Minimum {minimum_fraction * 100:.0f}% payment required for partial "
            f"activation, received {paid_fraction * 100:.1f}%"
        )


class InvalidPlanConfiguration(QuoteError):
    """Raised for malformed plan data (e.g. a non-positive paid-cycle total)."""

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(f"Invalid plan configuration: {reason}")


class ActionDeniedError(BillingError):
    """Raised when a listing action is denied by the plan's restrictions."""

    def __init__(
        self,
        reason: str,
        message: str,
        limit: Optional[int] = None,
        current: Optional[int] = None,
    ):
        self.reason = reason
        self.limit = limit
        self.current = current
        super().__init__(message)
