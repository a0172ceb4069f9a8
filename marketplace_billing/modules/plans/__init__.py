"""Plan catalog module."""

from marketplace_billing.modules.plans.models import (
    BillingCycle,
    ModuleRestrictions,
    ModuleSlug,
    Plan,
    PlanFeatures,
    PlanModule,
    SupportTier,
    Vertical,
)
from marketplace_billing.modules.plans.catalog import (
    DEFAULT_PLANS,
    PlanCatalog,
    PlanCatalogBuilder,
    default_catalog,
    load_catalog,
)

__all__ = [
    "BillingCycle",
    "ModuleRestrictions",
    "ModuleSlug",
    "Plan",
    "PlanFeatures",
    "PlanModule",
    "SupportTier",
    "Vertical",
    "DEFAULT_PLANS",
    "PlanCatalog",
    "PlanCatalogBuilder",
    "default_catalog",
    "load_catalog",
]
