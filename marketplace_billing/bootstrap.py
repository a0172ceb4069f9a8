"""Engine startup.

Host applications call ``configure_logging`` once at startup and build their
``SubscriptionService`` through ``create_subscription_service`` so that the
catalog, currency and logging all come from ``settings``.
"""

import logging
from typing import Optional

from marketplace_billing.core.clock import Clock
from marketplace_billing.core.config import Settings, settings
from marketplace_billing.core.logging import log_info, setup_logging
from marketplace_billing.modules.billing.notifications import BillingNotifierBase
from marketplace_billing.modules.plans.catalog import load_catalog
from marketplace_billing.modules.subscriptions.repository import SubscriptionRepositoryBase
from marketplace_billing.modules.subscriptions.service import SubscriptionService

logger = logging.getLogger(__name__)


def configure_logging(config: Optional[Settings] = None) -> logging.Handler:
    """Install structured logging as configured; DEBUG forces debug level."""
    config = config or settings
    return setup_logging(
        level="DEBUG" if config.DEBUG else config.LOG_LEVEL,
        json_format=config.LOG_JSON_FORMAT,
        service_name=config.PROJECT_NAME,
        service_version=config.VERSION,
    )


def create_subscription_service(
    repository: SubscriptionRepositoryBase,
    notifier: Optional[BillingNotifierBase] = None,
    clock: Optional[Clock] = None,
    config: Optional[Settings] = None,
) -> SubscriptionService:
    """Build a SubscriptionService over the configured plan catalog."""
    config = config or settings
    catalog = load_catalog(config.PLAN_CATALOG_PATH)

    log_info(
        logger,
        "Billing engine ready",
        plan_count=len(catalog),
        currency=config.DEFAULT_CURRENCY,
        catalog_source=config.PLAN_CATALOG_PATH or "built-in",
    )

    return SubscriptionService(
        catalog=catalog,
        repository=repository,
        clock=clock,
        notifier=notifier,
        default_currency=config.DEFAULT_CURRENCY,
    )
