"""Listing lifecycle as shaped by plan restrictions.

New listings start in DRAFT and are either published directly or routed
through moderation when the module requires approval. Timed expiry is
applied by an external scheduler using ``listing_expires_at``.
"""

from datetime import datetime, timedelta
from enum import Enum
from typing import Optional

from marketplace_billing.modules.quota.evaluator import EvaluationResult


class ListingStatus(str, Enum):
    """Listing lifecycle states."""
    DRAFT = "DRAFT"
    PENDING_APPROVAL = "PENDING_APPROVAL"
    ACTIVE = "ACTIVE"
    REJECTED = "REJECTED"
    EXPIRED = "EXPIRED"
    CLOSED = "CLOSED"


ALLOWED_TRANSITIONS: dict[ListingStatus, frozenset[ListingStatus]] = {
    ListingStatus.DRAFT: frozenset({ListingStatus.PENDING_APPROVAL, ListingStatus.ACTIVE}),
    ListingStatus.PENDING_APPROVAL: frozenset({ListingStatus.ACTIVE, ListingStatus.REJECTED}),
    ListingStatus.ACTIVE: frozenset({ListingStatus.EXPIRED, ListingStatus.CLOSED}),
    ListingStatus.REJECTED: frozenset(),
    ListingStatus.EXPIRED: frozenset(),
    ListingStatus.CLOSED: frozenset(),
}


class InvalidListingTransition(Exception):
    """Raised when a listing status change is not permitted."""

    def __init__(self, current: ListingStatus, target: ListingStatus):
        self.current = current
        self.target = target
        super().__init__(f"Cannot move listing from {current.value} to {target.value}")


def can_transition(current: ListingStatus, target: ListingStatus) -> bool:
    return target in ALLOWED_TRANSITIONS[current]


def transition(current: ListingStatus, target: ListingStatus) -> ListingStatus:
    """Validate and apply a status change."""
    if not can_transition(current, target):
        raise InvalidListingTransition(current, target)
    return target


def initial_status(result: EvaluationResult) -> ListingStatus:
    """Status a newly submitted listing moves to out of DRAFT.

    Raises:
        ActionDeniedError: If the evaluation denied the action
    """
    result.raise_if_denied()
    if result.requires_moderation:
        return ListingStatus.PENDING_APPROVAL
    return ListingStatus.ACTIVE


def listing_expires_at(
    activated_at: datetime,
    duration_days: Optional[int],
) -> Optional[datetime]:
    """When an active listing lapses, or None if the plan sets no duration."""
    if duration_days is None:
        return None
    return activated_at + timedelta(days=duration_days)
