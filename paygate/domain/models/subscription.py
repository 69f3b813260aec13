"""Subscription domain model tracking one recurring payment attempt."""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, Optional


class SubscriptionStatus(str, Enum):
    PENDING = "pending"
    UNKNOWN = "unknown"
    FAILED = "failed"
    ACTIVE = "active"
    CANCELLED = "cancelled"

    @property
    def rank(self) -> int:
        """Position in the forward-only status order."""
        return _STATUS_RANK[self]

    def can_transition_to(self, target: "SubscriptionStatus") -> bool:
        return target.rank >= self.rank


_STATUS_RANK = {
    SubscriptionStatus.PENDING: 0,
    SubscriptionStatus.UNKNOWN: 1,
    SubscriptionStatus.FAILED: 2,
    SubscriptionStatus.ACTIVE: 3,
    SubscriptionStatus.CANCELLED: 4,
}


class Subscription:
    """
    Subscription entity created when a user starts a payment.

    Attributes:
        id: Opaque identifier, also sent to the processor as ``m_payment_id``
        user_id: Owning user, never reassigned
        status: Current ``SubscriptionStatus``
        plan: Plan label captured at creation
        amount: Price captured at creation
        last_notification: Last accepted notification payload (JSON text)
        created_at: Creation timestamp
        updated_at: Timestamp of the last accepted transition
    """

    def __init__(
        self,
        id: str,
        user_id: str,
        status: SubscriptionStatus,
        plan: str,
        amount: Decimal,
        last_notification: Optional[str] = None,
        created_at: Optional[datetime] = None,
        updated_at: Optional[datetime] = None,
    ):
        self.id = id
        self.user_id = user_id
        self.status = status
        self.plan = plan
        self.amount = amount
        self.last_notification = last_notification
        self.created_at = created_at or datetime.utcnow()
        self.updated_at = updated_at or datetime.utcnow()

    def is_active(self) -> bool:
        """Check if subscription is currently active."""
        return self.status is SubscriptionStatus.ACTIVE

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "status": self.status.value,
            "plan": self.plan,
            "amount": f"{self.amount:.2f}",
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
        }

    def __repr__(self) -> str:
        return f"<Subscription id={self.id} user_id={self.user_id} status={self.status.value}>"
