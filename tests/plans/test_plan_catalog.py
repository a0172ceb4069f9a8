"""Unit tests for plan catalog models and builder."""

import json
import logging

import pytest
from pydantic import ValidationError

from marketplace_billing.modules.billing.exceptions import (
    InvalidPlanConfiguration,
    PlanNotFoundError,
)
from marketplace_billing.modules.plans.catalog import (
    DEFAULT_PLANS,
    PlanCatalogBuilder,
    default_catalog,
    load_catalog,
)
from marketplace_billing.modules.plans.models import (
    BillingCycle,
    ModuleRestrictions,
    ModuleSlug,
    Plan,
    SupportTier,
    Vertical,
)


def plan_data(**overrides) -> dict:
    data = {
        "name": "Custom",
        "slug": "custom",
        "is_premium": True,
        "total_listings": 10,
        "features": {"prices": {"monthly": 1000}},
        "modules": [
            {"slug": "jobs", "restrictions": {"listing_limit": 5}},
        ],
    }
    data.update(overrides)
    return data


class TestDefaultCatalog:
    """Tests for the built-in plans."""

    def test_contains_four_plans_in_order(self):
        catalog = default_catalog()

        assert len(catalog) == 4
        assert [plan.slug for plan in catalog] == [
            "free-forever", "starter", "pro", "enterprise",
        ]

    def test_free_plan(self):
        catalog = default_catalog()
        free = catalog.free_plan()

        assert free is not None
        assert free.slug == "free-forever"
        assert free.is_free is True
        assert free.features.prices == {}
        assert free.features.support == SupportTier.COMMUNITY

    def test_prices_keyed_by_cycle(self):
        enterprise = default_catalog().require("enterprise")

        assert enterprise.available_cycles == [
            BillingCycle.MONTHLY, BillingCycle.QUARTERLY, BillingCycle.ANNUALLY,
        ]
        assert enterprise.get_price("quarterly") == 14000
        assert enterprise.get_price(BillingCycle.HALF_YEARLY) is None
        assert enterprise.get_price("weekly") is None

    def test_module_lookup(self):
        free = default_catalog().require("free-forever")

        houses = free.get_module(ModuleSlug.HOUSES)
        jobs = free.get_module("jobs")

        assert houses is not None and houses.is_allowed is False
        assert jobs.listing_limit == 1
        assert jobs.listing_duration_days == 7
        assert jobs.approval_required is True
        assert free.get_module("events") is None

    def test_services_restrictions(self):
        pro = default_catalog().require("pro")
        services = pro.get_module(ModuleSlug.SERVICES)

        assert services.offering_limit == 5
        assert services.effective_listing_limit == 5
        assert services.allowed_verticals == [Vertical.HOUSING, Vertical.JOBS]
        assert services.can_appear_in_smart_match is True

    def test_unknown_plan(self):
        catalog = default_catalog()

        assert catalog.get("platinum") is None
        assert "platinum" not in catalog
        with pytest.raises(PlanNotFoundError) as exc_info:
            catalog.require("platinum")
        assert exc_info.value.slug == "platinum"

    def test_built_in_capacity_mismatch_is_debug_only(self, caplog):
        with caplog.at_level(logging.DEBUG):
            default_catalog()

        mismatches = [r for r in caplog.records if getattr(r, "module_capacity", None)]
        assert {r.plan_slug for r in mismatches} == {"starter", "pro", "enterprise"}
        assert all(r.levelno == logging.DEBUG for r in mismatches)

    def test_custom_capacity_mismatch_is_warned(self, caplog):
        with caplog.at_level(logging.WARNING):
            PlanCatalogBuilder().add_plans(DEFAULT_PLANS).build()

        # Starter: 20 total vs 10 + 5 + 10 across modules
        warnings = [r for r in caplog.records if r.levelno == logging.WARNING]
        assert any(getattr(r, "plan_slug", None) == "starter" for r in warnings)
        assert not any(getattr(r, "plan_slug", None) == "free-forever" for r in warnings)


class TestPlanValidation:
    """Tests for plan shape checks."""

    def test_premium_plan_without_prices_rejected(self):
        with pytest.raises(InvalidPlanConfiguration) as exc_info:
            PlanCatalogBuilder().add_plan(plan_data(features={"prices": {}}))
        assert "custom" in str(exc_info.value)

    def test_free_plan_with_prices_rejected(self):
        with pytest.raises(InvalidPlanConfiguration):
            PlanCatalogBuilder().add_plan(plan_data(is_premium=False))

    def test_non_positive_price_rejected(self):
        with pytest.raises(InvalidPlanConfiguration):
            PlanCatalogBuilder().add_plan(
                plan_data(features={"prices": {"monthly": 0}})
            )

    def test_unknown_cycle_key_rejected(self):
        with pytest.raises(InvalidPlanConfiguration):
            PlanCatalogBuilder().add_plan(
                plan_data(features={"prices": {"weekly": 100}})
            )

    def test_negative_limit_rejected(self):
        with pytest.raises(ValidationError):
            ModuleRestrictions(listing_limit=-1)

    def test_duplicate_module_rejected(self):
        modules = [
            {"slug": "jobs", "restrictions": {}},
            {"slug": "jobs", "restrictions": {"listing_limit": 2}},
        ]
        with pytest.raises(InvalidPlanConfiguration):
            PlanCatalogBuilder().add_plan(plan_data(modules=modules))

    def test_duplicate_slug_rejected(self):
        builder = PlanCatalogBuilder().add_plan(plan_data())

        with pytest.raises(InvalidPlanConfiguration) as exc_info:
            builder.add_plan(plan_data(name="Other"))
        assert "duplicate" in str(exc_info.value)

    def test_unknown_field_rejected(self):
        with pytest.raises(InvalidPlanConfiguration):
            PlanCatalogBuilder().add_plan(plan_data(colour="blue"))

    def test_camel_case_keys_accepted(self):
        catalog = PlanCatalogBuilder().add_plan({
            "name": "Camel",
            "slug": "camel",
            "isPremium": True,
            "totalListings": 5,
            "features": {"prices": {"halfYearly": 3000}, "support": "email"},
            "modules": [
                {
                    "slug": "houses",
                    "restrictions": {
                        "isAllowed": True,
                        "listingLimit": 3,
                        "canMarkAsUrgent": True,
                        "maxPostsPerMonth": 2,
                    },
                },
            ],
        }).build()

        plan = catalog.require("camel")
        houses = plan.get_module("houses")
        assert plan.is_premium is True
        assert plan.get_price("halfYearly") == 3000
        assert houses.listing_limit == 3
        assert houses.can_mark_as_urgent is True
        assert houses.max_posts_per_month == 2

    def test_restriction_defaults(self):
        restrictions = ModuleRestrictions()

        assert restrictions.is_allowed is True
        assert restrictions.listing_limit is None
        assert restrictions.effective_listing_limit is None
        assert restrictions.can_mark_as_urgent is False
        assert restrictions.approval_required is False

    def test_plans_are_immutable(self):
        plan = default_catalog().require("pro")

        with pytest.raises(ValidationError):
            plan.total_listings = 1

    def test_accepts_plan_instances(self):
        plan = Plan.model_validate(plan_data())
        catalog = PlanCatalogBuilder().add_plans([plan]).build()

        assert catalog.require("custom") is plan


class TestLoadCatalog:
    """Tests for loading the catalog from JSON."""

    def test_defaults_to_built_in_plans(self):
        assert len(load_catalog()) == len(DEFAULT_PLANS)

    def test_loads_plans_from_file(self, tmp_path):
        path = tmp_path / "plans.json"
        path.write_text(json.dumps([plan_data()]), encoding="utf-8")

        catalog = load_catalog(str(path))

        assert [plan.slug for plan in catalog] == ["custom"]

    def test_invalid_json_rejected(self, tmp_path):
        path = tmp_path / "plans.json"
        path.write_text("{not json", encoding="utf-8")

        with pytest.raises(InvalidPlanConfiguration):
            load_catalog(str(path))

    def test_non_list_rejected(self, tmp_path):
        path = tmp_path / "plans.json"
        path.write_text(json.dumps(plan_data()), encoding="utf-8")

        with pytest.raises(InvalidPlanConfiguration):
            load_catalog(str(path))
