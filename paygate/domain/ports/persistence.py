from __future__ import annotations

from decimal import Decimal
from enum import Enum
from typing import Optional, Protocol

from ..models import Entitlement, Subscription, SubscriptionStatus


class MergeOutcome(str, Enum):
    """Result of merging a notification into a subscription record."""

    APPLIED = "applied"
    DUPLICATE = "duplicate"
    STALE = "stale"


class SubscriptionRepository(Protocol):
    """Persistence functions related to subscription records."""

    def create_subscription(
        self,
        subscription_id: str,
        user_id: str,
        plan: str,
        amount: Decimal,
    ) -> Subscription:
        ...

    def get_subscription(self, subscription_id: str) -> Optional[Subscription]:
        ...

    def get_latest_subscription_for_user(self, user_id: str) -> Optional[Subscription]:
        ...

    def merge_notification(
        self,
        subscription_id: str,
        user_id: Optional[str],
        status: SubscriptionStatus,
        payload: str,
        plan: str,
        amount: Decimal,
    ) -> MergeOutcome:
        """
        Atomically upsert ``status`` and ``payload`` keyed by ``subscription_id``.

        The write is skipped when ``payload`` equals the stored
        ``last_notification`` (``DUPLICATE``) or when ``status`` would move the
        record backwards (``STALE``). ``user_id``, ``plan`` and ``amount`` are
        only used when the record does not exist yet.
        """
        ...


class EntitlementRepository(Protocol):
    """Persistence functions related to per-user entitlement flags."""

    def get_entitlement(self, user_id: str) -> Optional[Entitlement]:
        ...

    def set_entitlement(
        self,
        user_id: str,
        is_subscriber: bool,
        subscription_id: Optional[str],
    ) -> bool:
        """Store the flag; return True only when the stored value changed."""
        ...


class PersistenceGateway(
    SubscriptionRepository,
    EntitlementRepository,
    Protocol,
):
    """Composite gateway combining every persistence concern used by the app."""

    def close(self) -> None:
        ...
