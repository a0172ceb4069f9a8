"""Billing value types."""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum


class SubscriptionStatus(str, Enum):
    """Subscription status values."""
    ACTIVE = "ACTIVE"
    PARTIALLY_PAID = "PARTIALLY_PAID"
    PENDING = "PENDING"
    CANCELLED = "CANCELLED"
    EXPIRED = "EXPIRED"


@dataclass(frozen=True)
class Quote:
    """Outcome of pricing a subscription for a plan and cycle."""
    total_amount: float
    amount_paid: float
    billing_cycle: str
    expires_at: datetime
    status: SubscriptionStatus
    months_granted: int

    @property
    def paid_fraction(self) -> float:
        if self.total_amount <= 0:
            return 1.0
        return self.amount_paid / self.total_amount

    @property
    def is_partial(self) -> bool:
        return self.status == SubscriptionStatus.PARTIALLY_PAID
