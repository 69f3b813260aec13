"""Pydantic schemas for PayFast endpoints."""

from typing import Dict

from pydantic import BaseModel, Field


class SubscribeDryRunResponse(BaseModel):
    """Signed redirect request that was built but not stored."""

    target: str = Field(..., description="Processor URL the form would post to")
    fields: Dict[str, str] = Field(..., description="Form fields in posting order, signature last")
    signature: str = Field(..., description="Signature over the canonical field string")
    note: str = "This is a dry run. Nothing was stored and no redirect was issued."
