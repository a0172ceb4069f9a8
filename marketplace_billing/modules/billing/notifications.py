"""Billing notifications for quote outcomes.

The engine only builds the notification; delivering it is up to the
caller's notifier.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any

from marketplace_billing.modules.billing.models import Quote, SubscriptionStatus


@dataclass
class QuoteNotification:
    """Notification describing the result of a (re)computed quote."""
    subscriber_id: str
    event_type: str
    title: str
    message: str
    payload: dict[str, Any] = field(default_factory=dict)


class BillingNotifierBase(ABC):
    """Delivery channel for billing notifications."""

    @abstractmethod
    async def notify(self, notification: QuoteNotification) -> None:
        """Deliver a quote notification to its subscriber."""
        pass


def build_quote_notification(
    subscriber_id: str,
    plan_name: str,
    quote: Quote,
    currency: str,
) -> QuoteNotification:
    """Build the notification for a quote.

    Args:
        subscriber_id: Subscriber the quote belongs to
        plan_name: Display name of the plan
        quote: Computed quote
        currency: Currency code

    Returns:
        QuoteNotification ready to be delivered
    """
    expiry = quote.expires_at.strftime("%Y-%m-%d")

    if quote.status == SubscriptionStatus.PARTIALLY_PAID:
        event_type = "subscription.partially_paid"
        title = "Payment Partially Received"
        outstanding = quote.total_amount - quote.amount_paid
        message = (
            f"We received {currency} {quote.amount_paid:,.2f} of {currency} "
            f"{quote.total_amount:,.2f} for {plan_name} ({quote.billing_cycle}). "
            f"Your plan is active until {expiry}. "
            f"Pay the remaining {currency} {outstanding:,.2f} to extend it."
        )
    elif quote.total_amount == 0:
        event_type = "subscription.activated"
        title = "Plan Activated"
        message = f"Your {plan_name} plan is now active."
    else:
        event_type = "subscription.activated"
        title = "Payment Successful!"
        message = (
            f"Your payment of {currency} {quote.amount_paid:,.2f} for {plan_name} "
            f"({quote.billing_cycle}) has been received. "
            f"Your plan is active until {expiry}."
        )

    return QuoteNotification(
        subscriber_id=subscriber_id,
        event_type=event_type,
        title=title,
        message=message,
        payload={
            "plan": plan_name,
            "status": quote.status.value,
            "billing_cycle": quote.billing_cycle,
            "total_amount": quote.total_amount,
            "amount_paid": quote.amount_paid,
            "currency": currency,
            "expires_at": quote.expires_at.isoformat(),
        },
    )
