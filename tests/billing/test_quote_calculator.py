"""Unit tests for the billing quote calculator."""

from datetime import datetime, timezone

import pytest

from marketplace_billing.modules.billing.exceptions import (
    InsufficientPayment,
    InvalidBillingCycle,
    InvalidPlanConfiguration,
)
from marketplace_billing.modules.billing.models import SubscriptionStatus
from marketplace_billing.modules.billing.pricing import (
    add_months,
    compute_expiry,
    compute_quote,
    cycle_months,
)
from marketplace_billing.modules.plans.catalog import default_catalog
from marketplace_billing.modules.plans.models import BillingCycle, Plan, PlanFeatures


NOW = datetime(2025, 1, 15, 9, 30, tzinfo=timezone.utc)


def make_plan(prices: dict, is_premium: bool = True) -> Plan:
    return Plan(
        name="Test",
        slug="test",
        is_premium=is_premium,
        total_listings=10,
        features=PlanFeatures(prices=prices),
    )


class TestAddMonths:
    """Tests for calendar month addition."""

    def test_adds_whole_months(self):
        assert add_months(NOW, 1) == datetime(2025, 2, 15, 9, 30, tzinfo=timezone.utc)
        assert add_months(NOW, 12) == datetime(2026, 1, 15, 9, 30, tzinfo=timezone.utc)

    def test_zero_months_is_identity(self):
        assert add_months(NOW, 0) == NOW

    def test_end_of_month_clamps_to_february(self):
        jan_31 = datetime(2025, 1, 31, tzinfo=timezone.utc)
        assert add_months(jan_31, 1) == datetime(2025, 2, 28, tzinfo=timezone.utc)

    def test_end_of_month_clamps_to_leap_day(self):
        jan_31 = datetime(2024, 1, 31, tzinfo=timezone.utc)
        assert add_months(jan_31, 1) == datetime(2024, 2, 29, tzinfo=timezone.utc)

    def test_rolls_over_year(self):
        nov_30 = datetime(2025, 11, 30, tzinfo=timezone.utc)
        assert add_months(nov_30, 3) == datetime(2026, 2, 28, tzinfo=timezone.utc)

    def test_leap_day_plus_ten_years(self):
        leap_day = datetime(2024, 2, 29, tzinfo=timezone.utc)
        assert add_months(leap_day, 120) == datetime(2034, 2, 28, tzinfo=timezone.utc)


class TestFreePlanQuote:
    """Tests for non-premium plans."""

    def test_free_plan_is_active_for_ten_years(self):
        plan = default_catalog().require("free-forever")
        quote = compute_quote(plan, now=NOW)

        assert quote.total_amount == 0
        assert quote.amount_paid == 0
        assert quote.billing_cycle == "monthly"
        assert quote.status == SubscriptionStatus.ACTIVE
        assert quote.expires_at == datetime(2035, 1, 15, 9, 30, tzinfo=timezone.utc)

    def test_free_plan_ignores_cycle_and_payment(self):
        plan = make_plan({}, is_premium=False)
        quote = compute_quote(plan, "annually", 9999, now=NOW)

        assert quote.total_amount == 0
        assert quote.amount_paid == 0
        assert quote.billing_cycle == "monthly"


class TestPremiumPlanQuote:
    """Tests for premium plan quotes."""

    def test_full_monthly_payment(self):
        plan = make_plan({"monthly": 2000})
        quote = compute_quote(plan, "monthly", 2000, now=NOW)

        assert quote.total_amount == 2000
        assert quote.amount_paid == 2000
        assert quote.status == SubscriptionStatus.ACTIVE
        assert quote.expires_at == datetime(2025, 2, 15, 9, 30, tzinfo=timezone.utc)
        assert quote.months_granted == 1

    def test_cycle_defaults_to_monthly(self):
        plan = make_plan({"monthly": 500})
        quote = compute_quote(plan, amount_paid=500, now=NOW)

        assert quote.billing_cycle == "monthly"
        assert quote.total_amount == 500

    def test_accepts_enum_cycle(self):
        plan = make_plan({"halfYearly": 9000})
        quote = compute_quote(plan, BillingCycle.HALF_YEARLY, 9000, now=NOW)

        assert quote.billing_cycle == "halfYearly"
        assert quote.expires_at == datetime(2025, 7, 15, 9, 30, tzinfo=timezone.utc)

    def test_overpayment_is_full_payment(self):
        plan = make_plan({"quarterly": 14000})
        quote = compute_quote(plan, "quarterly", 20000, now=NOW)

        assert quote.status == SubscriptionStatus.ACTIVE
        assert quote.amount_paid == 20000
        assert quote.months_granted == 3

    def test_unpriced_cycle_is_rejected(self):
        plan = default_catalog().require("pro")

        with pytest.raises(InvalidBillingCycle) as exc_info:
            compute_quote(plan, "quarterly", 6000, now=NOW)

        assert exc_info.value.cycle == "quarterly"

    def test_unknown_cycle_name_is_rejected(self):
        plan = make_plan({"monthly": 2000})

        with pytest.raises(InvalidBillingCycle) as exc_info:
            compute_quote(plan, "weekly", 2000, now=NOW)

        assert exc_info.value.cycle == "weekly"

    def test_no_payment_is_insufficient(self):
        plan = make_plan({"monthly": 2000})

        with pytest.raises(InsufficientPayment) as exc_info:
            compute_quote(plan, "monthly", now=NOW)

        assert exc_info.value.paid_fraction == 0

    def test_payment_below_half_is_insufficient(self):
        plan = make_plan({"annually": 22000})

        with pytest.raises(InsufficientPayment) as exc_info:
            compute_quote(plan, "annually", 10999, now=NOW)

        assert exc_info.value.paid_fraction < 0.5

    def test_partial_annual_payment_is_prorated(self):
        plan = make_plan({"annually": 22000})
        # 16500 / 22000 = 0.75 -> 9 months
        quote = compute_quote(plan, "annually", 16500, now=NOW)

        assert quote.status == SubscriptionStatus.PARTIALLY_PAID
        assert quote.months_granted == 9
        assert quote.expires_at == datetime(2025, 10, 15, 9, 30, tzinfo=timezone.utc)

    def test_partial_quarterly_payment_truncates(self):
        plan = make_plan({"quarterly": 14000})
        # 3 * 10000 / 14000 = 2.14 -> 2 months
        quote = compute_quote(plan, "quarterly", 10000, now=NOW)

        assert quote.months_granted == 2
        assert quote.expires_at == datetime(2025, 3, 15, 9, 30, tzinfo=timezone.utc)

    def test_exactly_half_of_monthly_grants_zero_months(self):
        """Paying exactly 50% of a monthly plan expires immediately."""
        plan = default_catalog().require("enterprise")
        quote = compute_quote(plan, "monthly", 2500, now=NOW)

        assert quote.status == SubscriptionStatus.PARTIALLY_PAID
        assert quote.total_amount == 5000
        assert quote.amount_paid == 2500
        assert quote.months_granted == 0
        assert quote.expires_at == NOW

    def test_paid_fraction(self):
        plan = make_plan({"annually": 22000})
        quote = compute_quote(plan, "annually", 16500, now=NOW)

        assert quote.paid_fraction == pytest.approx(0.75)
        assert quote.is_partial is True


class TestComputeExpiry:
    """Tests for the expiry sub-algorithm."""

    def test_zero_total_is_configuration_error(self):
        with pytest.raises(InvalidPlanConfiguration):
            compute_expiry("monthly", 0, 0, now=NOW)

    def test_negative_total_is_configuration_error(self):
        with pytest.raises(InvalidPlanConfiguration):
            compute_expiry("monthly", 100, -100, now=NOW)

    def test_unknown_cycle_falls_back_to_one_month(self):
        assert cycle_months("fortnightly") == 1

        expires_at, status, months = compute_expiry("fortnightly", 100, 100, now=NOW)

        assert status == SubscriptionStatus.ACTIVE
        assert months == 1
        assert expires_at == add_months(NOW, 1)

    def test_defaults_now_to_current_time(self):
        before = datetime.now(timezone.utc)
        expires_at, _, _ = compute_expiry("monthly", 100, 100)

        assert expires_at >= add_months(before, 1)
