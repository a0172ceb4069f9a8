"""Pydantic schemas for the subscription service."""

import uuid
from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, Field


class SubscribeToPlanRequest(BaseModel):
    """Request to subscribe an account to a plan."""
    subscriber_id: str = Field(..., min_length=1, description="Subscribing account")
    plan_slug: str = Field(..., min_length=1, description="Plan to subscribe to")
    billing_cycle: Optional[str] = Field(None, description="Defaults to monthly")
    amount_paid: float = Field(0, ge=0, description="Amount paid up front")
    currency: Optional[str] = Field(
        None, min_length=3, max_length=3, description="Defaults to the configured currency"
    )


class SubscriptionResponse(BaseModel):
    """Response schema for subscription."""
    id: uuid.UUID
    subscriber_id: str
    plan: Optional[str]
    type: str
    entity_ids: list[str]
    status: str
    billing_cycle: str
    total_amount: float
    amount_paid: float
    currency: str
    started_at: datetime
    expires_at: datetime
    created_at: datetime
    updated_at: datetime


class ModuleAccess(BaseModel):
    """Whether a subscriber may use a module, and under which restrictions."""
    is_allowed: bool
    restrictions: dict[str, Any] = Field(default_factory=dict)
    reason: Optional[str] = None
