"""Module quota evaluator.

Decides whether a listing-creating action is permitted under a plan's
module restrictions. Rules are checked in the fixed order of ``QUOTA_RULES``
and the first violated rule determines the denial reason.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

from marketplace_billing.modules.billing.exceptions import ActionDeniedError
from marketplace_billing.modules.plans.models import ModuleRestrictions, Plan, Vertical


class DenialReason(str, Enum):
    """Why a listing action was refused."""
    MODULE_NOT_ALLOWED = "MODULE_NOT_ALLOWED"
    LISTING_LIMIT_REACHED = "LISTING_LIMIT_REACHED"
    MONTHLY_POST_CAP_REACHED = "MONTHLY_POST_CAP_REACHED"
    IMAGE_LIMIT_EXCEEDED = "IMAGE_LIMIT_EXCEEDED"
    URGENT_MARKING_NOT_ALLOWED = "URGENT_MARKING_NOT_ALLOWED"
    EXTERNAL_LINKS_NOT_ALLOWED = "EXTERNAL_LINKS_NOT_ALLOWED"
    VERIFICATION_REQUIRED = "VERIFICATION_REQUIRED"
    VERTICAL_NOT_ALLOWED = "VERTICAL_NOT_ALLOWED"
    TOTAL_LISTING_LIMIT_REACHED = "TOTAL_LISTING_LIMIT_REACHED"


DENIAL_MESSAGES = {
    DenialReason.MODULE_NOT_ALLOWED: "Your plan does not include {module}.",
    DenialReason.LISTING_LIMIT_REACHED: (
        "You have reached the limit of {limit} active listings in {module} "
        "({current}/{limit})."
    ),
    DenialReason.MONTHLY_POST_CAP_REACHED: (
        "You have reached the limit of {limit} posts this month in {module} "
        "({current}/{limit})."
    ),
    DenialReason.IMAGE_LIMIT_EXCEEDED: (
        "Listings in {module} may carry at most {limit} images ({current} requested)."
    ),
    DenialReason.URGENT_MARKING_NOT_ALLOWED: (
        "Your plan does not allow marking listings in {module} as urgent."
    ),
    DenialReason.EXTERNAL_LINKS_NOT_ALLOWED: (
        "Your plan does not allow external links on listings in {module}."
    ),
    DenialReason.VERIFICATION_REQUIRED: (
        "A verified account is required to post in {module}."
    ),
    DenialReason.VERTICAL_NOT_ALLOWED: (
        "Your plan does not allow offerings in the requested vertical for {module}."
    ),
    DenialReason.TOTAL_LISTING_LIMIT_REACHED: (
        "You have reached your plan's total of {limit} active listings "
        "({current}/{limit})."
    ),
}


@dataclass(frozen=True)
class UsageSnapshot:
    """Current usage counters for one (subscriber, module) pair.

    The caller must supply a consistent snapshot and commit the resulting
    write atomically with it.
    """
    active_listing_count: int = 0
    posts_this_month: int = 0
    # Not read by the rules; the image limit bounds action.image_count
    images_on_listing: int = 0


@dataclass(frozen=True)
class ListingAction:
    """Attributes of an attempted listing write."""
    wants_urgent: bool = False
    has_external_link: bool = False
    image_count: int = 0
    claims_verification: bool = False
    target_vertical: Optional[Vertical] = None


@dataclass(frozen=True)
class EvaluationResult:
    """Allow or deny verdict for a listing action."""
    allowed: bool
    reason: Optional[DenialReason] = None
    message: Optional[str] = None
    limit: Optional[int] = None
    current: Optional[int] = None
    requires_moderation: bool = False
    listing_duration_days: Optional[int] = None

    @classmethod
    def allow(
        cls,
        requires_moderation: bool = False,
        listing_duration_days: Optional[int] = None,
    ) -> "EvaluationResult":
        return cls(
            allowed=True,
            requires_moderation=requires_moderation,
            listing_duration_days=listing_duration_days,
        )

    @classmethod
    def deny(
        cls,
        reason: DenialReason,
        module_slug: Optional[str] = None,
        limit: Optional[int] = None,
        current: Optional[int] = None,
    ) -> "EvaluationResult":
        message = DENIAL_MESSAGES[reason].format(
            module=f"the {module_slug} module" if module_slug else "this module",
            limit=limit,
            current=current,
        )
        return cls(
            allowed=False,
            reason=reason,
            message=message,
            limit=limit,
            current=current,
        )

    def raise_if_denied(self) -> None:
        """Raise ActionDeniedError when the action was denied."""
        if not self.allowed:
            raise ActionDeniedError(
                reason=self.reason.value,
                message=self.message,
                limit=self.limit,
                current=self.current,
            )


def _listing_limit_reached(r: ModuleRestrictions, u: UsageSnapshot, a: ListingAction) -> bool:
    limit = r.effective_listing_limit
    return limit is not None and u.active_listing_count >= limit


def _monthly_cap_reached(r: ModuleRestrictions, u: UsageSnapshot, a: ListingAction) -> bool:
    return r.max_posts_per_month is not None and u.posts_this_month >= r.max_posts_per_month


def _image_limit_exceeded(r: ModuleRestrictions, u: UsageSnapshot, a: ListingAction) -> bool:
    return r.image_limit is not None and a.image_count > r.image_limit


def _urgent_not_allowed(r: ModuleRestrictions, u: UsageSnapshot, a: ListingAction) -> bool:
    return a.wants_urgent and not r.can_mark_as_urgent


def _external_link_not_allowed(r: ModuleRestrictions, u: UsageSnapshot, a: ListingAction) -> bool:
    return a.has_external_link and not r.external_links_allowed


def _verification_missing(r: ModuleRestrictions, u: UsageSnapshot, a: ListingAction) -> bool:
    return r.requires_verification and not a.claims_verification


def _vertical_not_allowed(r: ModuleRestrictions, u: UsageSnapshot, a: ListingAction) -> bool:
    if a.target_vertical is None or r.allowed_verticals is None:
        return False
    return a.target_vertical not in r.allowed_verticals


@dataclass(frozen=True)
class QuotaRule:
    """A predicate that, when true, denies the action with ``reason``."""
    reason: DenialReason
    violated: Callable[[ModuleRestrictions, UsageSnapshot, ListingAction], bool]
    limit: Callable[[ModuleRestrictions], Optional[int]] = lambda r: None
    current: Callable[[UsageSnapshot, ListingAction], Optional[int]] = lambda u, a: None


# Evaluation order; the first violated rule wins
QUOTA_RULES: tuple[QuotaRule, ...] = (
    QuotaRule(
        DenialReason.MODULE_NOT_ALLOWED,
        lambda r, u, a: not r.is_allowed,
    ),
    QuotaRule(
        DenialReason.LISTING_LIMIT_REACHED,
        _listing_limit_reached,
        limit=lambda r: r.effective_listing_limit,
        current=lambda u, a: u.active_listing_count,
    ),
    QuotaRule(
        DenialReason.MONTHLY_POST_CAP_REACHED,
        _monthly_cap_reached,
        limit=lambda r: r.max_posts_per_month,
        current=lambda u, a: u.posts_this_month,
    ),
    QuotaRule(
        DenialReason.IMAGE_LIMIT_EXCEEDED,
        _image_limit_exceeded,
        limit=lambda r: r.image_limit,
        current=lambda u, a: a.image_count,
    ),
    QuotaRule(DenialReason.URGENT_MARKING_NOT_ALLOWED, _urgent_not_allowed),
    QuotaRule(DenialReason.EXTERNAL_LINKS_NOT_ALLOWED, _external_link_not_allowed),
    QuotaRule(DenialReason.VERIFICATION_REQUIRED, _verification_missing),
    QuotaRule(DenialReason.VERTICAL_NOT_ALLOWED, _vertical_not_allowed),
)

DENIAL_PRECEDENCE: tuple[DenialReason, ...] = tuple(rule.reason for rule in QUOTA_RULES)


def evaluate_action(
    restrictions: Optional[ModuleRestrictions],
    usage: UsageSnapshot,
    action: ListingAction,
    module_slug: Optional[str] = None,
) -> EvaluationResult:
    """Evaluate a listing action against a module's restrictions.

    Args:
        restrictions: Restrictions for the target module, or None when the
            plan does not cover the module
        usage: Current usage counters
        action: Attributes of the attempted write
        module_slug: Module name used in denial messages

    Returns:
        EvaluationResult; an allowed result carries ``requires_moderation``
        when the module needs approval before publishing
    """
    if restrictions is None:
        return EvaluationResult.deny(DenialReason.MODULE_NOT_ALLOWED, module_slug)

    for rule in QUOTA_RULES:
        if rule.violated(restrictions, usage, action):
            return EvaluationResult.deny(
                rule.reason,
                module_slug,
                limit=rule.limit(restrictions),
                current=rule.current(usage, action),
            )

    return EvaluationResult.allow(
        requires_moderation=restrictions.approval_required,
        listing_duration_days=restrictions.listing_duration_days,
    )


def evaluate_plan_action(
    plan: Optional[Plan],
    module_slug: str,
    usage: UsageSnapshot,
    action: ListingAction,
    total_active_listings: Optional[int] = None,
) -> EvaluationResult:
    """Evaluate a listing action against a plan.

    Module rules are evaluated first; when they allow the action and the
    caller supplies ``total_active_listings``, the plan-wide listing cap is
    checked as well.
    """
    restrictions = plan.get_module(module_slug) if plan is not None else None
    result = evaluate_action(restrictions, usage, action, module_slug=module_slug)

    if (
        result.allowed
        and plan is not None
        and total_active_listings is not None
        and total_active_listings >= plan.total_listings
    ):
        return EvaluationResult.deny(
            DenialReason.TOTAL_LISTING_LIMIT_REACHED,
            module_slug,
            limit=plan.total_listings,
            current=total_active_listings,
        )

    return result
