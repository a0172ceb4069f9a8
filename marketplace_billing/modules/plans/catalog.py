"""Plan catalog construction and lookup.

The catalog is assembled once at startup through ``PlanCatalogBuilder`` so
that every plan is shape-checked before the engine ever reads it.
"""

import json
import logging
from pathlib import Path
from typing import Iterator, Optional, Union

from pydantic import ValidationError

from marketplace_billing.core.config import settings
from marketplace_billing.core.logging import log_debug, log_info, log_warning
from marketplace_billing.modules.billing.exceptions import (
    InvalidPlanConfiguration,
    PlanNotFoundError,
)
from marketplace_billing.modules.plans.models import Plan

logger = logging.getLogger(__name__)


# Built-in plans
DEFAULT_PLANS = [
    {
        "name": "Free Forever",
        "slug": "free-forever",
        "is_premium": False,
        "total_listings": 2,
        "description": (
            "Community access for individuals; House listings and "
            "Professional services require a paid plan."
        ),
        "features": {"prices": {}, "support": "community", "boost": False, "analytics": False},
        "modules": [
            {
                "slug": "houses",
                "restrictions": {
                    "is_allowed": False, "listing_limit": 0, "image_limit": 0,
                    "approval_required": True,
                },
            },
            {
                "slug": "jobs",
                "restrictions": {
                    "is_allowed": True, "listing_limit": 1, "listing_duration_days": 7,
                    "image_limit": 1, "approval_required": True,
                },
            },
            {
                "slug": "help-and-support",
                "restrictions": {
                    "is_allowed": True, "listing_limit": 1, "listing_duration_days": 14,
                    "image_limit": 1, "requires_verification": True,
                    "approval_required": True,
                },
            },
            {
                "slug": "services",
                "restrictions": {
                    "is_allowed": False, "offering_limit": 0, "allowed_verticals": [],
                    "can_appear_in_smart_match": False,
                },
            },
        ],
    },
    {
        "name": "Starter",
        "slug": "starter",
        "is_premium": True,
        "total_listings": 20,
        "description": "Ideal for individuals; professional presence in one pillar.",
        "features": {"prices": {"monthly": 500}, "support": "email", "boost": False, "analytics": True},
        "modules": [
            {
                "slug": "houses",
                "restrictions": {
                    "is_allowed": True, "listing_limit": 10, "listing_duration_days": 30,
                    "image_limit": 10, "can_mark_as_urgent": True,
                    "approval_required": False,
                },
            },
            {
                "slug": "jobs",
                "restrictions": {
                    "is_allowed": True, "listing_limit": 5, "listing_duration_days": 14,
                    "image_limit": 3, "approval_required": True,
                },
            },
            {
                "slug": "help-and-support",
                "restrictions": {
                    "is_allowed": True, "listing_limit": 10, "listing_duration_days": 30,
                    "image_limit": 5, "can_mark_as_urgent": True,
                    "external_links_allowed": True, "requires_verification": True,
                    "approval_required": False,
                },
            },
            {
                "slug": "services",
                "restrictions": {
                    "is_allowed": True, "offering_limit": 1, "allowed_verticals": ["HOUSING"],
                    "can_appear_in_smart_match": True,
                },
            },
        ],
    },
    {
        "name": "Pro",
        "slug": "pro",
        "is_premium": True,
        "total_listings": 80,
        "description": "Perfect for growing businesses and local NGOs.",
        "features": {
            "prices": {"monthly": 2000, "annually": 22000},
            "support": "priority", "boost": True, "analytics": True,
        },
        "modules": [
            {
                "slug": "houses",
                "restrictions": {
                    "is_allowed": True, "listing_limit": 40, "listing_duration_days": 60,
                    "image_limit": 20, "can_mark_as_urgent": True,
                    "external_links_allowed": True, "approval_required": False,
                },
            },
            {
                "slug": "jobs",
                "restrictions": {
                    "is_allowed": True, "listing_limit": 25, "listing_duration_days": 30,
                    "image_limit": 5, "can_mark_as_urgent": True,
                    "external_links_allowed": True, "approval_required": False,
                },
            },
            {
                "slug": "help-and-support",
                "restrictions": {
                    "is_allowed": True, "listing_limit": 30, "listing_duration_days": 90,
                    "image_limit": 15, "can_mark_as_urgent": True,
                    "external_links_allowed": True, "requires_verification": True,
                    "approval_required": False,
                },
            },
            {
                "slug": "services",
                "restrictions": {
                    "is_allowed": True, "offering_limit": 5,
                    "allowed_verticals": ["HOUSING", "JOBS"],
                    "can_appear_in_smart_match": True,
                },
            },
        ],
    },
    {
        "name": "Enterprise",
        "slug": "enterprise",
        "is_premium": True,
        "total_listings": 200,
        "description": "Full capacity for large organizations and international NGOs.",
        "features": {
            "prices": {"monthly": 5000, "quarterly": 14000, "annually": 55000},
            "support": "dedicated", "boost": True, "analytics": True,
        },
        "modules": [
            {
                "slug": "houses",
                "restrictions": {
                    "is_allowed": True, "listing_limit": 100, "listing_duration_days": 180,
                    "image_limit": 50, "can_mark_as_urgent": True,
                    "external_links_allowed": True, "approval_required": False,
                },
            },
            {
                "slug": "jobs",
                "restrictions": {
                    "is_allowed": True, "listing_limit": 60, "listing_duration_days": 60,
                    "image_limit": 10, "can_mark_as_urgent": True,
                    "external_links_allowed": True, "approval_required": False,
                },
            },
            {
                "slug": "help-and-support",
                "restrictions": {
                    "is_allowed": True, "listing_limit": 80, "listing_duration_days": 365,
                    "image_limit": 30, "can_mark_as_urgent": True,
                    "external_links_allowed": True, "requires_verification": True,
                    "approval_required": False,
                },
            },
            {
                "slug": "services",
                "restrictions": {
                    "is_allowed": True, "offering_limit": 25,
                    "allowed_verticals": ["HOUSING", "JOBS", "SOCIAL_SUPPORT"],
                    "can_appear_in_smart_match": True,
                },
            },
        ],
    },
]


class PlanCatalog:
    """Validated, read-only collection of plans keyed by slug."""

    def __init__(self, plans: list[Plan]):
        self._plans: dict[str, Plan] = {plan.slug: plan for plan in plans}

    def __iter__(self) -> Iterator[Plan]:
        return iter(self._plans.values())

    def __len__(self) -> int:
        return len(self._plans)

    def __contains__(self, slug: object) -> bool:
        return slug in self._plans

    def get(self, slug: str) -> Optional[Plan]:
        """Get plan by slug."""
        return self._plans.get(slug)

    def require(self, slug: str) -> Plan:
        """Get plan by slug, raising PlanNotFoundError if absent."""
        plan = self._plans.get(slug)
        if plan is None:
            raise PlanNotFoundError(slug)
        return plan

    def free_plan(self) -> Optional[Plan]:
        """The first non-premium plan, if the catalog has one."""
        for plan in self._plans.values():
            if plan.is_free:
                return plan
        return None


class PlanCatalogBuilder:
    """Builds a PlanCatalog, rejecting malformed plans.

    Args:
        warn_on_capacity: Log plans whose total listing cap is below the sum
            of their module limits as warnings (debug otherwise)

    Usage:
        catalog = PlanCatalogBuilder().add_plans(plans).build()
    """

    def __init__(self, warn_on_capacity: bool = True):
        self._plans: list[Plan] = []
        self.warn_on_capacity = warn_on_capacity

    def add_plan(self, data: Union[Plan, dict]) -> "PlanCatalogBuilder":
        if isinstance(data, Plan):
            plan = data
        else:
            slug = data.get("slug", "<unknown>") if isinstance(data, dict) else "<unknown>"
            try:
                plan = Plan.model_validate(data)
            except ValidationError as e:
                raise InvalidPlanConfiguration(f"plan '{slug}': {e}") from e

        if any(existing.slug == plan.slug for existing in self._plans):
            raise InvalidPlanConfiguration(f"duplicate plan slug '{plan.slug}'")

        self._plans.append(plan)
        return self

    def add_plans(self, plans: list[Union[Plan, dict]]) -> "PlanCatalogBuilder":
        for data in plans:
            self.add_plan(data)
        return self

    def build(self) -> PlanCatalog:
        for plan in self._plans:
            capacity = plan.module_listing_capacity()
            if plan.total_listings < capacity:
                log = log_warning if self.warn_on_capacity else log_debug
                log(
                    logger,
                    "Plan total listing cap is below the sum of module limits",
                    plan_slug=plan.slug,
                    total_listings=plan.total_listings,
                    module_capacity=capacity,
                )

        catalog = PlanCatalog(list(self._plans))
        log_info(logger, "Plan catalog built", plan_count=len(catalog))
        return catalog


def default_catalog() -> PlanCatalog:
    """Catalog of the built-in plans."""
    # Built-in plans cap total listings below their module sums
    return PlanCatalogBuilder(warn_on_capacity=False).add_plans(DEFAULT_PLANS).build()


def load_catalog(path: Optional[str] = None) -> PlanCatalog:
    """Load the catalog from a JSON file, or the built-in plans.

    Args:
        path: JSON file holding a list of plans; defaults to
            ``settings.PLAN_CATALOG_PATH``

    Returns:
        Validated PlanCatalog
    """
    path = path or settings.PLAN_CATALOG_PATH
    if not path:
        return default_catalog()

    try:
        raw = json.loads(Path(path).read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise InvalidPlanConfiguration(f"catalog file '{path}' is not valid JSON: {e}") from e

    if not isinstance(raw, list):
        raise InvalidPlanConfiguration(f"catalog file '{path}' must hold a list of plans")

    return PlanCatalogBuilder().add_plans(raw).build()
