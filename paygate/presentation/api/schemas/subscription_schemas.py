"""Pydantic schemas for subscription API endpoints."""

from datetime import datetime

from pydantic import BaseModel


class SubscriptionResponse(BaseModel):
    """Response schema for subscription data."""

    id: str
    status: str
    plan: str
    amount: str
    created_at: datetime
    updated_at: datetime
    is_active: bool
