"""Pydantic schemas for user API endpoints."""

from pydantic import BaseModel


class MeResponse(BaseModel):
    """Who the caller is and whether premium features are unlocked."""

    user_id: str
    subscriber: bool
