"""Entitlement projection consumed by feature-gating code."""

from datetime import datetime
from typing import Optional


class Entitlement:
    """
    Per-user access flag derived from the latest accepted subscription change.

    Attributes:
        user_id: User the flag belongs to
        is_subscriber: Whether premium features are unlocked
        subscription_id: Subscription that caused the last change
        changed_at: When the flag last flipped
    """

    def __init__(
        self,
        user_id: str,
        is_subscriber: bool,
        subscription_id: Optional[str] = None,
        changed_at: Optional[datetime] = None,
    ):
        self.user_id = user_id
        self.is_subscriber = is_subscriber
        self.subscription_id = subscription_id
        self.changed_at = changed_at or datetime.utcnow()

    def __repr__(self) -> str:
        return f"<Entitlement user_id={self.user_id} subscriber={self.is_subscriber}>"
