"""Subscription record binding a subscriber to a plan."""

import uuid
from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field

from marketplace_billing.modules.billing.models import Quote, SubscriptionStatus


class SubscriptionType(str, Enum):
    """What a subscription pays for."""
    PLAN = "PLAN"
    ENTITY = "ENTITY"


ACTIVE_STATUSES = frozenset({SubscriptionStatus.ACTIVE, SubscriptionStatus.PARTIALLY_PAID})


class Subscription(BaseModel):
    """Billing state of a subscriber's plan (or entity) subscription."""
    id: uuid.UUID = Field(default_factory=uuid.uuid4)
    subscriber_id: str
    plan_id: Optional[str] = None
    type: SubscriptionType = SubscriptionType.PLAN
    entity_ids: list[str] = Field(default_factory=list)
    billing_cycle: str = "monthly"
    total_amount: float = 0
    amount_paid: float = 0
    currency: str
    status: SubscriptionStatus = SubscriptionStatus.PENDING
    started_at: datetime
    expires_at: datetime
    created_at: datetime
    updated_at: datetime

    def __repr__(self) -> str:
        return (
            f"<Subscription(id={self.id}, subscriber={self.subscriber_id}, "
            f"plan={self.plan_id}, status={self.status.value})>"
        )

    def is_active(self, now: Optional[datetime] = None) -> bool:
        """Active or partially paid, and not past its expiry."""
        if self.status not in ACTIVE_STATUSES:
            return False
        if now is not None and self.expires_at <= now:
            return False
        return True

    def is_expired(self, now: datetime) -> bool:
        if self.status == SubscriptionStatus.EXPIRED:
            return True
        return self.status in ACTIVE_STATUSES and self.expires_at <= now

    def apply_quote(self, quote: Quote, now: datetime) -> None:
        """Store the totals, status and expiry of a freshly computed quote."""
        self.billing_cycle = quote.billing_cycle
        self.total_amount = quote.total_amount
        self.amount_paid = quote.amount_paid
        self.status = quote.status
        self.expires_at = quote.expires_at
        self.updated_at = now
