"""Subscriptions module.

Creates plan subscriptions, credits payments and resolves module access for
subscribers.
"""

from marketplace_billing.modules.subscriptions.models import (
    ACTIVE_STATUSES,
    Subscription,
    SubscriptionType,
)
from marketplace_billing.modules.subscriptions.repository import (
    InMemorySubscriptionRepository,
    SubscriptionRepositoryBase,
)
from marketplace_billing.modules.subscriptions.schemas import (
    ModuleAccess,
    SubscribeToPlanRequest,
    SubscriptionResponse,
)
from marketplace_billing.modules.subscriptions.service import (
    NoActiveSubscriptionError,
    PlanAlreadyActiveError,
    PlanNotFoundError,
    SubscriptionNotActiveError,
    SubscriptionNotFoundError,
    SubscriptionService,
    SubscriptionServiceError,
)

__all__ = [
    "ACTIVE_STATUSES",
    "Subscription",
    "SubscriptionType",
    "InMemorySubscriptionRepository",
    "SubscriptionRepositoryBase",
    "ModuleAccess",
    "SubscribeToPlanRequest",
    "SubscriptionResponse",
    "NoActiveSubscriptionError",
    "PlanAlreadyActiveError",
    "PlanNotFoundError",
    "SubscriptionNotActiveError",
    "SubscriptionNotFoundError",
    "SubscriptionService",
    "SubscriptionServiceError",
]
