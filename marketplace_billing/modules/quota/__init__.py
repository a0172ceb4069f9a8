"""Quota module.

Evaluates listing actions against a plan's per-module restrictions.
"""

from marketplace_billing.modules.quota.evaluator import (
    DENIAL_PRECEDENCE,
    QUOTA_RULES,
    DenialReason,
    EvaluationResult,
    ListingAction,
    QuotaRule,
    UsageSnapshot,
    evaluate_action,
    evaluate_plan_action,
)
from marketplace_billing.modules.quota.lifecycle import (
    InvalidListingTransition,
    ListingStatus,
    initial_status,
    listing_expires_at,
    transition,
)

__all__ = [
    "DENIAL_PRECEDENCE",
    "QUOTA_RULES",
    "DenialReason",
    "EvaluationResult",
    "ListingAction",
    "QuotaRule",
    "UsageSnapshot",
    "evaluate_action",
    "evaluate_plan_action",
    "InvalidListingTransition",
    "ListingStatus",
    "initial_status",
    "listing_expires_at",
    "transition",
]
