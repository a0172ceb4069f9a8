"""Subscription storage collaborators.

Persistence lives outside the engine; ``SubscriptionRepositoryBase`` is the
contract the service relies on and ``InMemorySubscriptionRepository`` backs
wiring and tests.
"""

import uuid
from abc import ABC, abstractmethod
from typing import Optional

from marketplace_billing.modules.subscriptions.models import (
    ACTIVE_STATUSES,
    Subscription,
    SubscriptionType,
)


class SubscriptionRepositoryBase(ABC):
    """Storage contract for subscriptions."""

    @abstractmethod
    async def add(self, subscription: Subscription) -> Subscription:
        """Persist a new subscription."""
        pass

    @abstractmethod
    async def save(self, subscription: Subscription) -> Subscription:
        """Persist changes to an existing subscription."""
        pass

    @abstractmethod
    async def get_by_id(self, subscription_id: uuid.UUID) -> Optional[Subscription]:
        """Get subscription by ID."""
        pass

    @abstractmethod
    async def list_by_subscriber(self, subscriber_id: str) -> list[Subscription]:
        """All subscriptions of a subscriber, oldest first."""
        pass

    @abstractmethod
    async def list_active(self) -> list[Subscription]:
        """All subscriptions in an active status."""
        pass

    async def get_active_plan_subscription(self, subscriber_id: str) -> Optional[Subscription]:
        """The subscriber's most recent plan subscription in an active status."""
        for subscription in reversed(await self.list_by_subscriber(subscriber_id)):
            if (
                subscription.type == SubscriptionType.PLAN
                and subscription.status in ACTIVE_STATUSES
            ):
                return subscription
        return None


class InMemorySubscriptionRepository(SubscriptionRepositoryBase):
    """Dictionary-backed repository."""

    def __init__(self):
        self._items: dict[uuid.UUID, Subscription] = {}

    async def add(self, subscription: Subscription) -> Subscription:
        self._items[subscription.id] = subscription.model_copy(deep=True)
        return subscription

    async def save(self, subscription: Subscription) -> Subscription:
        if subscription.id not in self._items:
            raise KeyError(f"Subscription {subscription.id} does not exist")
        self._items[subscription.id] = subscription.model_copy(deep=True)
        return subscription

    async def get_by_id(self, subscription_id: uuid.UUID) -> Optional[Subscription]:
        subscription = self._items.get(subscription_id)
        return subscription.model_copy(deep=True) if subscription else None

    async def list_by_subscriber(self, subscriber_id: str) -> list[Subscription]:
        return [
            s.model_copy(deep=True)
            for s in sorted(self._items.values(), key=lambda s: s.created_at)
            if s.subscriber_id == subscriber_id
        ]

    async def list_active(self) -> list[Subscription]:
        return [s.model_copy(deep=True) for s in self._items.values() if s.status in ACTIVE_STATUSES]
