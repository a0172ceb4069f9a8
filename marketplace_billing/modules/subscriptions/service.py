"""Subscription service.

Wires the quote calculator and quota evaluator to the plan catalog and the
subscription repository: creating subscriptions, crediting payments,
resolving module access and authorizing listing actions.
"""

import logging
import uuid
from typing import Optional

from marketplace_billing.core.clock import Clock, SystemClock
from marketplace_billing.core.config import settings
from marketplace_billing.core.logging import log_error, log_info, log_warning
from marketplace_billing.modules.billing.exceptions import PlanNotFoundError, QuoteError
from marketplace_billing.modules.billing.models import Quote, SubscriptionStatus
from marketplace_billing.modules.billing.notifications import (
    BillingNotifierBase,
    build_quote_notification,
)
from marketplace_billing.modules.billing.pricing import compute_expiry, compute_quote
from marketplace_billing.modules.plans.catalog import PlanCatalog
from marketplace_billing.modules.plans.models import Plan
from marketplace_billing.modules.quota.evaluator import (
    EvaluationResult,
    ListingAction,
    UsageSnapshot,
    evaluate_plan_action,
)
from marketplace_billing.modules.subscriptions.models import Subscription, SubscriptionType
from marketplace_billing.modules.subscriptions.repository import SubscriptionRepositoryBase
from marketplace_billing.modules.subscriptions.schemas import (
    ModuleAccess,
    SubscribeToPlanRequest,
    SubscriptionResponse,
)

logger = logging.getLogger(__name__)


class SubscriptionServiceError(Exception):
    """Base exception for subscription service errors."""
    pass


class PlanAlreadyActiveError(SubscriptionServiceError):
    """Raised when an account already holds an active plan subscription."""
    pass


class SubscriptionNotFoundError(SubscriptionServiceError):
    """Raised when subscription is not found."""
    pass


class SubscriptionNotActiveError(SubscriptionServiceError):
    """Raised when an operation needs an active subscription."""
    pass


class NoActiveSubscriptionError(SubscriptionServiceError):
    """Raised when a subscriber has no active plan subscription."""
    pass


class SubscriptionService:
    """Service for plan subscriptions and module access."""

    def __init__(
        self,
        catalog: PlanCatalog,
        repository: SubscriptionRepositoryBase,
        clock: Optional[Clock] = None,
        notifier: Optional[BillingNotifierBase] = None,
        default_currency: Optional[str] = None,
    ):
        self.catalog = catalog
        self.repository = repository
        self.clock = clock or SystemClock()
        self.notifier = notifier
        self.default_currency = default_currency or settings.DEFAULT_CURRENCY

    # ==================== Subscribing & Payments ====================

    async def subscribe_to_plan(self, request: SubscribeToPlanRequest) -> SubscriptionResponse:
        """Subscribe an account to a plan.

        Raises:
            PlanNotFoundError: If the plan does not exist
            PlanAlreadyActiveError: If the account already has an active plan
            QuoteError: If the cycle or payment is rejected by the calculator
        """
        plan = self.catalog.require(request.plan_slug)

        now = self.clock.now()
        active = await self.repository.get_active_plan_subscription(request.subscriber_id)
        if active is not None and active.is_active(now):
            raise PlanAlreadyActiveError(
                f"Account {request.subscriber_id} already has an active plan "
                f"({active.plan_id})"
            )

        try:
            quote = compute_quote(plan, request.billing_cycle, request.amount_paid, now=now)
        except QuoteError as e:
            log_warning(
                logger,
                "Subscription quote rejected",
                subscriber_id=request.subscriber_id,
                plan_slug=plan.slug,
                billing_cycle=request.billing_cycle,
                error=str(e),
            )
            raise

        subscription = Subscription(
            subscriber_id=request.subscriber_id,
            plan_id=plan.slug,
            type=SubscriptionType.PLAN,
            currency=request.currency or self.default_currency,
            started_at=now,
            expires_at=quote.expires_at,
            created_at=now,
            updated_at=now,
        )
        subscription.apply_quote(quote, now)
        await self.repository.add(subscription)

        log_info(
            logger,
            "Subscription created",
            subscription_id=str(subscription.id),
            subscriber_id=subscription.subscriber_id,
            plan_slug=plan.slug,
            status=subscription.status.value,
            expires_at=subscription.expires_at.isoformat(),
        )

        await self._notify_quote(subscription, plan.name, quote)
        return self._to_response(subscription)

    async def record_payment(
        self,
        subscription_id: uuid.UUID,
        amount: float,
    ) -> SubscriptionResponse:
        """Credit a payment and recompute the subscription's quote.

        Raises:
            SubscriptionNotFoundError: If the subscription does not exist
            SubscriptionNotActiveError: If it is cancelled, expired or pending
            ValueError: If the amount is not positive or the plan is free
        """
        if amount <= 0:
            raise ValueError("Payment amount must be positive")

        subscription = await self._require(subscription_id)
        if subscription.status not in (
            SubscriptionStatus.ACTIVE,
            SubscriptionStatus.PARTIALLY_PAID,
        ):
            raise SubscriptionNotActiveError(
                f"Subscription {subscription_id} is {subscription.status.value}"
            )
        if subscription.type != SubscriptionType.PLAN or subscription.plan_id is None:
            raise ValueError("Only plan subscriptions accept payments")

        if subscription.total_amount <= 0:
            raise ValueError("Free plan subscriptions do not accept payments")

        # Priced at the total quoted on subscribing, not the current catalog price
        now = self.clock.now()
        amount_paid = subscription.amount_paid + amount
        expires_at, status, months = compute_expiry(
            subscription.billing_cycle,
            amount_paid,
            subscription.total_amount,
            now=now,
        )
        quote = Quote(
            total_amount=subscription.total_amount,
            amount_paid=amount_paid,
            billing_cycle=subscription.billing_cycle,
            expires_at=expires_at,
            status=status,
            months_granted=months,
        )
        subscription.apply_quote(quote, now)
        await self.repository.save(subscription)

        log_info(
            logger,
            "Subscription payment recorded",
            subscription_id=str(subscription.id),
            amount=amount,
            amount_paid=subscription.amount_paid,
            status=subscription.status.value,
        )

        plan = self.catalog.get(subscription.plan_id)
        await self._notify_quote(subscription, plan.name if plan else subscription.plan_id, quote)
        return self._to_response(subscription)

    # ==================== Lookups ====================

    async def get_subscription(self, subscription_id: uuid.UUID) -> SubscriptionResponse:
        return self._to_response(await self._require(subscription_id))

    async def get_active_subscriptions(self, subscriber_id: str) -> list[SubscriptionResponse]:
        """Subscriptions of an account that are active at the current time."""
        now = self.clock.now()
        subscriptions = await self.repository.list_by_subscriber(subscriber_id)
        return [self._to_response(s) for s in subscriptions if s.is_active(now)]

    async def get_active_plan(self, subscriber_id: str) -> Optional[Plan]:
        """The plan of the account's active plan subscription, if any."""
        subscription = await self.repository.get_active_plan_subscription(subscriber_id)
        if subscription is None or not subscription.is_active(self.clock.now()):
            return None
        return self.catalog.get(subscription.plan_id)

    # ==================== Module Access ====================

    async def check_module_access(self, subscriber_id: str, module_slug: str) -> ModuleAccess:
        """Resolve whether a subscriber may use a module at all."""
        plan = await self.get_active_plan(subscriber_id)
        if plan is None:
            return ModuleAccess(is_allowed=False, reason="No active subscription")

        restrictions = plan.get_module(module_slug)
        if restrictions is None:
            return ModuleAccess(
                is_allowed=False,
                reason=f"Module '{module_slug}' is not included in plan '{plan.slug}'",
            )

        dumped = restrictions.model_dump(mode="json", exclude_none=True)
        if not restrictions.is_allowed:
            return ModuleAccess(
                is_allowed=False,
                restrictions=dumped,
                reason=f"Module '{module_slug}' is not allowed on plan '{plan.slug}'",
            )

        return ModuleAccess(is_allowed=True, restrictions=dumped)

    async def authorize_listing_action(
        self,
        subscriber_id: str,
        module_slug: str,
        usage: UsageSnapshot,
        action: ListingAction,
        total_active_listings: Optional[int] = None,
    ) -> EvaluationResult:
        """Evaluate a listing action against the subscriber's active plan.

        Raises:
            NoActiveSubscriptionError: If the subscriber has no active plan
        """
        plan = await self.get_active_plan(subscriber_id)
        if plan is None:
            raise NoActiveSubscriptionError(
                f"Account {subscriber_id} has no active plan subscription"
            )

        result = evaluate_plan_action(
            plan,
            module_slug,
            usage,
            action,
            total_active_listings=total_active_listings,
        )

        if not result.allowed:
            log_info(
                logger,
                "Listing action denied",
                subscriber_id=subscriber_id,
                plan_slug=plan.slug,
                module_slug=module_slug,
                reason=result.reason.value,
                limit=result.limit,
                current=result.current,
            )

        return result

    # ==================== Termination ====================

    async def cancel_subscription(self, subscription_id: uuid.UUID) -> SubscriptionResponse:
        """Cancel a subscription.

        Raises:
            SubscriptionNotFoundError: If the subscription does not exist
            SubscriptionNotActiveError: If it is already cancelled or expired
        """
        subscription = await self._require(subscription_id)
        if subscription.status in (SubscriptionStatus.CANCELLED, SubscriptionStatus.EXPIRED):
            raise SubscriptionNotActiveError(
                f"Subscription {subscription_id} is already {subscription.status.value}"
            )

        subscription.status = SubscriptionStatus.CANCELLED
        subscription.updated_at = self.clock.now()
        await self.repository.save(subscription)

        log_info(
            logger,
            "Subscription cancelled",
            subscription_id=str(subscription.id),
            subscriber_id=subscription.subscriber_id,
        )
        return self._to_response(subscription)

    async def expire_due_subscriptions(self) -> list[SubscriptionResponse]:
        """Mark active subscriptions past their expiry as EXPIRED."""
        now = self.clock.now()
        expired = []

        for subscription in await self.repository.list_active():
            if subscription.expires_at > now:
                continue
            subscription.status = SubscriptionStatus.EXPIRED
            subscription.updated_at = now
            await self.repository.save(subscription)
            expired.append(self._to_response(subscription))

        if expired:
            log_info(logger, "Subscriptions expired", count=len(expired))
        return expired

    # ==================== Helpers ====================

    async def _require(self, subscription_id: uuid.UUID) -> Subscription:
        subscription = await self.repository.get_by_id(subscription_id)
        if subscription is None:
            raise SubscriptionNotFoundError(f"Subscription {subscription_id} not found")
        return subscription

    async def _notify_quote(
        self,
        subscription: Subscription,
        plan_name: str,
        quote: Quote,
    ) -> None:
        if self.notifier is None:
            return

        quote_notification = build_quote_notification(
            subscriber_id=subscription.subscriber_id,
            plan_name=plan_name,
            quote=quote,
            currency=subscription.currency,
        )
        try:
            await self.notifier.notify(quote_notification)
        except Exception as e:
            log_error(
                logger,
                "Failed to send billing notification",
                exception=e,
                subscription_id=str(subscription.id),
                event_type=quote_notification.event_type,
            )

    def _to_response(self, subscription: Subscription) -> SubscriptionResponse:
        plan = self.catalog.get(subscription.plan_id) if subscription.plan_id else None
        return SubscriptionResponse(
            id=subscription.id,
            subscriber_id=subscription.subscriber_id,
            plan=plan.name if plan else subscription.plan_id,
            type=subscription.type.value,
            entity_ids=list(subscription.entity_ids),
            status=subscription.status.value,
            billing_cycle=subscription.billing_cycle,
            total_amount=subscription.total_amount,
            amount_paid=subscription.amount_paid,
            currency=subscription.currency,
            started_at=subscription.started_at,
            expires_at=subscription.expires_at,
            created_at=subscription.created_at,
            updated_at=subscription.updated_at,
        )
