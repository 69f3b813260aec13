"""
Inbound ITN handling.

Every notification moves through ``received -> signature_checked ->
remote_validated -> applied`` or stops at ``rejected``. Whatever happens, the
caller gets a ``NotificationResult`` back and the transport layer acknowledges
the processor with the same response; nothing raised in here reaches the
HTTP handler.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Optional

from ..core.config import PayFastSettings
from ..domain.errors import (
    DuplicateNotification,
    NotificationRejected,
    RemoteValidationFailed,
    SignatureMismatch,
    StaleNotification,
    UnresolvedReference,
)
from ..domain.models import NOTIFICATION_FIELD_ORDER, Notification, SubscriptionStatus
from ..domain.ports.persistence import MergeOutcome, SubscriptionRepository
from .canonical import build_canonical_string
from .entitlement_service import EntitlementService
from .payfast_validator import PayFastValidator
from .signature import verify
from .subscription_service import user_id_from_reference

logger = logging.getLogger(__name__)


class NotificationStage(str, Enum):
    RECEIVED = "received"
    SIGNATURE_CHECKED = "signature_checked"
    REMOTE_VALIDATED = "remote_validated"
    APPLIED = "applied"
    REJECTED = "rejected"


class NotificationOutcome(str, Enum):
    APPLIED = "applied"
    SIGNATURE_MISMATCH = SignatureMismatch.outcome
    REMOTE_VALIDATION_FAILED = RemoteValidationFailed.outcome
    UNRESOLVED_REFERENCE = UnresolvedReference.outcome
    DUPLICATE = DuplicateNotification.outcome
    STALE = StaleNotification.outcome
    INTERNAL_ERROR = "internal_error"


@dataclass(frozen=True)
class NotificationResult:
    outcome: NotificationOutcome
    stage: NotificationStage
    subscription_id: Optional[str] = None
    status: Optional[SubscriptionStatus] = None
    detail: Optional[str] = None

    @property
    def applied(self) -> bool:
        return self.outcome is NotificationOutcome.APPLIED


class NotificationService:
    """Verifies, deduplicates and applies PayFast notifications."""

    def __init__(
        self,
        subscription_repository: SubscriptionRepository,
        entitlement_service: EntitlementService,
        validator: PayFastValidator,
        settings: PayFastSettings,
    ) -> None:
        self._subscriptions = subscription_repository
        self._entitlements = entitlement_service
        self._validator = validator
        self._settings = settings

    def handle(self, notification: Notification) -> NotificationResult:
        """Process one notification; never raises."""
        stage = NotificationStage.RECEIVED
        reference = notification.payment_reference
        try:
            self._check_signature(notification)
            stage = NotificationStage.SIGNATURE_CHECKED

            self._validate_remotely(notification)
            stage = NotificationStage.REMOTE_VALIDATED

            status = self._apply(notification)
            return NotificationResult(
                outcome=NotificationOutcome.APPLIED,
                stage=NotificationStage.APPLIED,
                subscription_id=reference,
                status=status,
            )
        except DuplicateNotification as exc:
            logger.info("Duplicate ITN for %s acknowledged without changes", reference)
            return self._rejected(exc, reference)
        except NotificationRejected as exc:
            logger.warning("ITN for %s rejected at %s: %s", reference, stage.value, exc)
            return self._rejected(exc, reference)
        except Exception as exc:
            logger.exception(
                "ITN handler error for %s at %s (payload=%s)",
                reference,
                stage.value,
                notification.to_json(),
            )
            return NotificationResult(
                outcome=NotificationOutcome.INTERNAL_ERROR,
                stage=stage,
                subscription_id=reference,
                detail=str(exc),
            )

    # Stages ---------------------------------------------------------------
    def _check_signature(self, notification: Notification) -> None:
        if not verify(
            notification.signed_fields,
            notification.signature,
            self._settings.signing_secret,
            NOTIFICATION_FIELD_ORDER,
        ):
            raise SignatureMismatch("signature does not match payload")

    def _validate_remotely(self, notification: Notification) -> None:
        canonical = build_canonical_string(notification.signed_fields, NOTIFICATION_FIELD_ORDER)
        result = self._validator.validate(canonical)
        if not result.is_valid:
            raise RemoteValidationFailed(f"processor answered {result.value}")

    def _apply(self, notification: Notification) -> SubscriptionStatus:
        reference = notification.payment_reference
        if not reference:
            raise UnresolvedReference("notification has no m_payment_id")

        user_id = notification.user_reference or user_id_from_reference(reference)
        existing = self._subscriptions.get_subscription(reference)
        if existing is None and user_id is None:
            raise UnresolvedReference(f"no subscription {reference} and no user reference")
        if existing is not None and user_id is not None and user_id != existing.user_id:
            logger.warning(
                "ITN for %s names user %s but the subscription belongs to %s",
                reference,
                user_id,
                existing.user_id,
            )

        status = self.resolve_status(notification)
        outcome = self._subscriptions.merge_notification(
            subscription_id=reference,
            user_id=user_id,
            status=status,
            payload=notification.to_json(),
            plan=self._settings.plan,
            amount=notification.amount_gross or Decimal("0"),
        )
        if outcome is MergeOutcome.DUPLICATE:
            self._reapply_entitlement(reference)
            raise DuplicateNotification(f"notification for {reference} already applied")
        if outcome is MergeOutcome.STALE:
            current = existing.status if existing else SubscriptionStatus.UNKNOWN
            if current.can_transition_to(status):
                # moved forward by a concurrent notification after our read
                raise StaleNotification(f"{reference} moved past {status.value} while it was being applied")
            raise StaleNotification(f"{reference} will not move from {current.value} to {status.value}")

        owner = existing.user_id if existing is not None else user_id
        self._entitlements.apply_status(owner, status, reference)
        logger.info("ITN applied: subscription %s is now %s", reference, status.value)
        return status

    def _reapply_entitlement(self, reference: str) -> None:
        """Re-project the stored status onto the owner's flag; a no-op when it already matches."""
        stored = self._subscriptions.get_subscription(reference)
        if stored is None:
            return
        if self._entitlements.apply_status(stored.user_id, stored.status, reference):
            logger.warning("Entitlement for %s repaired from replayed ITN %s", stored.user_id, reference)

    def resolve_status(self, notification: Notification) -> SubscriptionStatus:
        """Map the processor's status fields onto a ``SubscriptionStatus``."""
        payment_status = notification.payment_status
        subscription_status = notification.subscription_status

        if "CANCELLED" in (payment_status, subscription_status):
            return SubscriptionStatus.CANCELLED
        if subscription_status == "ACTIVE" or payment_status == "COMPLETE":
            amount = notification.amount_gross
            minimum = self._settings.minimum_price
            if amount is None or amount < minimum:
                logger.warning(
                    "ITN for %s reports %s but paid %s, below the %s minimum",
                    notification.payment_reference,
                    subscription_status or payment_status,
                    amount,
                    minimum,
                )
                return SubscriptionStatus.UNKNOWN
            return SubscriptionStatus.ACTIVE
        if payment_status == "FAILED":
            return SubscriptionStatus.FAILED
        if payment_status == "PENDING":
            return SubscriptionStatus.PENDING
        return SubscriptionStatus.UNKNOWN

    @staticmethod
    def _rejected(exc: NotificationRejected, reference: Optional[str]) -> NotificationResult:
        return NotificationResult(
            outcome=NotificationOutcome(exc.outcome),
            stage=NotificationStage.REJECTED,
            subscription_id=reference,
            detail=str(exc),
        )
