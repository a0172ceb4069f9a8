"""Unit tests for engine startup wiring."""

import json
import logging
from datetime import datetime, timezone

import pytest

from marketplace_billing.bootstrap import configure_logging, create_subscription_service
from marketplace_billing.core.clock import FixedClock
from marketplace_billing.core.config import Settings
from marketplace_billing.core.logging import StructuredFormatter
from marketplace_billing.modules.subscriptions.repository import (
    InMemorySubscriptionRepository,
)
from marketplace_billing.modules.subscriptions.schemas import SubscribeToPlanRequest


@pytest.fixture
def root_logger():
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield root
    for handler in root.handlers[:]:
        if handler not in handlers:
            root.removeHandler(handler)
    root.setLevel(level)


class TestConfigureLogging:
    """Tests for configure_logging."""

    def test_uses_configured_level_and_identity(self, root_logger):
        config = Settings(
            LOG_LEVEL="WARNING", PROJECT_NAME="billing-test", VERSION="9.9.9"
        )

        handler = configure_logging(config)

        assert root_logger.level == logging.WARNING
        assert isinstance(handler.formatter, StructuredFormatter)
        assert handler.formatter.service_name == "billing-test"
        assert handler.formatter.service_version == "9.9.9"

    def test_debug_forces_debug_level(self, root_logger):
        configure_logging(Settings(DEBUG=True, LOG_LEVEL="ERROR"))

        assert root_logger.level == logging.DEBUG

    def test_plain_text_format(self, root_logger):
        handler = configure_logging(Settings(LOG_JSON_FORMAT=False))

        assert not isinstance(handler.formatter, StructuredFormatter)


class TestCreateSubscriptionService:
    """Tests for create_subscription_service."""

    def test_built_in_catalog_and_currency(self):
        service = create_subscription_service(
            InMemorySubscriptionRepository(),
            config=Settings(DEFAULT_CURRENCY="USD", PLAN_CATALOG_PATH=None),
        )

        assert len(service.catalog) == 4
        assert service.default_currency == "USD"

    @pytest.mark.asyncio
    async def test_catalog_loaded_from_configured_path(self, tmp_path):
        path = tmp_path / "plans.json"
        path.write_text(json.dumps([{
            "name": "Basic",
            "slug": "basic",
            "isPremium": True,
            "totalListings": 3,
            "features": {"prices": {"monthly": 300}},
            "modules": [{"slug": "jobs", "restrictions": {"listingLimit": 3}}],
        }]), encoding="utf-8")
        clock = FixedClock(datetime(2025, 1, 15, tzinfo=timezone.utc))

        service = create_subscription_service(
            InMemorySubscriptionRepository(),
            clock=clock,
            config=Settings(DEFAULT_CURRENCY="KES", PLAN_CATALOG_PATH=str(path)),
        )
        response = await service.subscribe_to_plan(SubscribeToPlanRequest(
            subscriber_id="acct-1", plan_slug="basic", amount_paid=300,
        ))

        assert [plan.slug for plan in service.catalog] == ["basic"]
        assert response.currency == "KES"
        assert response.expires_at == datetime(2025, 2, 15, tzinfo=timezone.utc)
