"""Core module for configuration and utilities."""

from marketplace_billing.core.clock import Clock, FixedClock, SystemClock
from marketplace_billing.core.config import settings

__all__ = [
    "Clock",
    "FixedClock",
    "SystemClock",
    "settings",
]
