"""Plan catalog models.

A plan bounds how many listings a subscriber may create per vertical module,
for how long, with what media allowance and under what approval regime.
Plans are read-only to the engine; they are validated once when the catalog
is built.
"""

from enum import Enum
from typing import Optional, Union

from pydantic import BaseModel, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel


class BillingCycle(str, Enum):
    """Recurring billing cycles a plan may be priced for."""
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    HALF_YEARLY = "halfYearly"
    ANNUALLY = "annually"


class SupportTier(str, Enum):
    """Support level bundled with a plan (informational)."""
    COMMUNITY = "community"
    EMAIL = "email"
    PRIORITY = "priority"
    DEDICATED = "dedicated"


class ModuleSlug(str, Enum):
    """Marketplace verticals a plan can cover."""
    HOUSES = "houses"
    JOBS = "jobs"
    HELP_AND_SUPPORT = "help-and-support"
    SERVICES = "services"


class Vertical(str, Enum):
    """Verticals a service offering may target."""
    HOUSING = "HOUSING"
    JOBS = "JOBS"
    SOCIAL_SUPPORT = "SOCIAL_SUPPORT"


class CatalogModel(BaseModel):
    """Base for catalog models: immutable, accepts snake_case or camelCase keys."""

    class Config:
        frozen = True
        populate_by_name = True
        alias_generator = to_camel
        extra = "forbid"


class ModuleRestrictions(CatalogModel):
    """Permission and quota envelope for one module under one plan.

    Every field except ``is_allowed`` is optional; an unset limit means the
    plan does not bound that dimension.
    """
    is_allowed: bool = Field(True, description="Module usable under this plan")
    listing_limit: Optional[int] = Field(
        None, ge=0, description="Max concurrently active listings"
    )
    listing_duration_days: Optional[int] = Field(
        None, ge=1, description="Days a listing stays active before renewal"
    )
    image_limit: Optional[int] = Field(None, ge=0, description="Max images per listing")
    can_mark_as_urgent: bool = False
    external_links_allowed: bool = False
    approval_required: bool = Field(
        False, description="Listings are moderated before going live"
    )
    requires_verification: bool = Field(
        False, description="Actor must hold a verified identity"
    )
    max_posts_per_month: Optional[int] = Field(
        None, ge=0, description="Monthly creation cap"
    )

    # Services vertical
    offering_limit: Optional[int] = Field(
        None, ge=0, description="Max concurrently active service offerings"
    )
    allowed_verticals: Optional[list[Vertical]] = None
    can_appear_in_smart_match: bool = False

    @property
    def effective_listing_limit(self) -> Optional[int]:
        """Ceiling on concurrently active items in this module."""
        if self.listing_limit is not None:
            return self.listing_limit
        return self.offering_limit


class PlanModule(CatalogModel):
    """A (module slug, restrictions) entry of a plan."""
    slug: str = Field(..., min_length=1)
    restrictions: ModuleRestrictions


class PlanFeatures(CatalogModel):
    """Pricing table and informational perks of a plan."""
    prices: dict[BillingCycle, float] = Field(
        default_factory=dict, description="Billing cycle to amount"
    )
    support: SupportTier = SupportTier.COMMUNITY
    boost: bool = False
    analytics: bool = False

    @field_validator("prices")
    @classmethod
    def validate_prices(cls, v: dict[BillingCycle, float]) -> dict[BillingCycle, float]:
        for cycle, amount in v.items():
            if amount <= 0:
                raise ValueError(
                    f"price for cycle '{cycle.value}' must be positive, got {amount}"
                )
        return v


class Plan(CatalogModel):
    """A purchasable subscription tier."""
    name: str = Field(..., min_length=1)
    slug: str = Field(..., min_length=1)
    is_premium: bool
    total_listings: int = Field(..., ge=0, description="Global listing cap across modules")
    description: str = ""
    features: PlanFeatures = Field(default_factory=PlanFeatures)
    modules: list[PlanModule] = Field(default_factory=list)

    @model_validator(mode="after")
    def validate_pricing_invariant(self) -> "Plan":
        if not self.is_premium and self.features.prices:
            raise ValueError("non-premium plan must not define prices")
        if self.is_premium and not self.features.prices:
            raise ValueError("premium plan must define at least one price")
        seen: set[str] = set()
        for module in self.modules:
            if module.slug in seen:
                raise ValueError(f"module '{module.slug}' listed more than once")
            seen.add(module.slug)
        return self

    @property
    def is_free(self) -> bool:
        return not self.is_premium

    @property
    def available_cycles(self) -> list[BillingCycle]:
        return list(self.features.prices)

    def get_price(self, cycle: Union[BillingCycle, str]) -> Optional[float]:
        """Price for a cycle, or None if the plan does not offer it."""
        try:
            cycle = BillingCycle(cycle)
        except ValueError:
            return None
        return self.features.prices.get(cycle)

    def get_module(self, slug: Union[ModuleSlug, str]) -> Optional[ModuleRestrictions]:
        """Restrictions for a module, or None when the plan does not cover it."""
        key = slug.value if isinstance(slug, ModuleSlug) else slug
        for module in self.modules:
            if module.slug == key:
                return module.restrictions
        return None

    def module_listing_capacity(self) -> int:
        """Sum of per-module listing limits (allowed modules only)."""
        return sum(
            module.restrictions.listing_limit or 0
            for module in self.modules
            if module.restrictions.is_allowed
        )
