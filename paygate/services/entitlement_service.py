"""Projects subscription state onto the per-user access flag."""

import logging
from typing import Optional

from ..domain.models import Entitlement, SubscriptionStatus
from ..domain.ports.persistence import EntitlementRepository

logger = logging.getLogger(__name__)


class EntitlementService:
    """Owns the subscriber flag; every other component only reads it."""

    def __init__(self, repository: EntitlementRepository) -> None:
        self._repository = repository

    def propagate(self, user_id: str, entitled: bool, subscription_id: Optional[str] = None) -> bool:
        """
        Set the user's flag to ``entitled``.

        Repeating the call with the same target is a no-op. Returns True when
        the stored flag actually changed.
        """
        changed = self._repository.set_entitlement(user_id, entitled, subscription_id)
        if changed:
            logger.info("Entitlement for user %s set to %s (subscription %s)", user_id, entitled, subscription_id)
        return changed

    def apply_status(self, user_id: str, status: SubscriptionStatus, subscription_id: Optional[str] = None) -> bool:
        """Propagate the flag implied by ``status``; pending and unknown leave it alone."""
        if status is SubscriptionStatus.ACTIVE:
            return self.propagate(user_id, True, subscription_id)
        if status in (SubscriptionStatus.CANCELLED, SubscriptionStatus.FAILED):
            return self.propagate(user_id, False, subscription_id)
        return False

    def is_entitled(self, user_id: str) -> bool:
        entitlement = self._repository.get_entitlement(user_id)
        return entitlement is not None and entitlement.is_subscriber

    def get_entitlement(self, user_id: str) -> Optional[Entitlement]:
        return self._repository.get_entitlement(user_id)
