"""Marketplace plan quota and billing engine."""

__version__ = "0.1.0"
