"""Service that starts PayFast subscriptions."""

import logging
import uuid
from typing import Dict, Optional, Tuple

from ..core.config import PayFastSettings
from ..domain.errors import PersistenceError
from ..domain.models import CHECKOUT_FIELD_ORDER, PayFastField, SignedRequest, Subscription
from ..domain.ports.persistence import SubscriptionRepository
from .canonical import build_canonical_string, canonical_fields
from .signature import sign

logger = logging.getLogger(__name__)

F = PayFastField

SUBSCRIPTION_TYPE_RECURRING = 1
REFERENCE_SEPARATOR = "-"
M_PAYMENT_ID_MAX_LENGTH = 100


def new_subscription_id(user_id: str) -> str:
    """
    Generate a payment reference that carries its owner as a prefix.

    PayFast truncates ``m_payment_id`` past 100 characters, so owners with
    longer ids get a bare token. Their notifications still resolve through
    the stored record and ``custom_str1``.
    """
    token = uuid.uuid4().hex
    reference = f"{user_id}{REFERENCE_SEPARATOR}{token}"
    if len(reference) > M_PAYMENT_ID_MAX_LENGTH:
        return token
    return reference


def user_id_from_reference(reference: Optional[str]) -> Optional[str]:
    """Recover the user id embedded by ``new_subscription_id``."""
    if not reference or REFERENCE_SEPARATOR not in reference:
        return None
    user_id, token = reference.rsplit(REFERENCE_SEPARATOR, 1)
    if not user_id or len(token) != 32:
        return None
    return user_id


class SubscriptionService:
    """Service for starting and looking up user subscriptions."""

    def __init__(self, subscription_repository: SubscriptionRepository, settings: PayFastSettings):
        self.subscription_repository = subscription_repository
        self.settings = settings

    def start_subscription(self, user_id: str) -> Tuple[Subscription, SignedRequest]:
        """
        Create a pending subscription and the signed redirect request for it.

        Args:
            user_id: User starting the subscription

        Returns:
            Tuple of (pending Subscription, SignedRequest to post unmodified)

        Raises:
            ConfigurationError: If processor configuration is incomplete
            PersistenceError: If the pending record could not be stored
        """
        self.settings.validate()

        subscription_id = new_subscription_id(user_id)
        try:
            subscription = self.subscription_repository.create_subscription(
                subscription_id=subscription_id,
                user_id=user_id,
                plan=self.settings.plan,
                amount=self.settings.price,
            )
        except PersistenceError:
            logger.error("Could not store pending subscription for user %s", user_id)
            raise

        signed = self._sign(subscription.id, user_id)
        logger.info(
            "Subscription %s started for user %s (%s mode)",
            subscription.id,
            user_id,
            self.settings.mode,
        )
        logger.debug("PayFast canonical string for %s: %s", subscription.id, signed.canonical_string)
        return subscription, signed

    def preview_subscription(self, user_id: str) -> SignedRequest:
        """Sign a request with a throwaway reference without storing anything."""
        self.settings.validate()
        return self._sign(f"debug{REFERENCE_SEPARATOR}{uuid.uuid4().hex}", user_id)

    def get_user_subscription(self, user_id: str) -> Optional[Subscription]:
        """Latest subscription started by ``user_id``, if any."""
        return self.subscription_repository.get_latest_subscription_for_user(user_id)

    def get_subscription(self, subscription_id: str) -> Optional[Subscription]:
        return self.subscription_repository.get_subscription(subscription_id)

    def build_fields(self, subscription_id: str, user_id: str) -> Dict[str, str]:
        settings = self.settings
        price = settings.price
        raw = {
            F.MERCHANT_ID: settings.merchant_id,
            F.MERCHANT_KEY: settings.merchant_key,
            F.RETURN_URL: settings.return_url,
            F.CANCEL_URL: settings.cancel_url,
            F.NOTIFY_URL: settings.notify_url,
            F.M_PAYMENT_ID: subscription_id,
            F.AMOUNT: price,
            F.ITEM_NAME: settings.item_name,
            F.CUSTOM_STR1: user_id,
            F.SUBSCRIPTION_TYPE: SUBSCRIPTION_TYPE_RECURRING,
            F.BILLING_DATE: settings.billing_date,
            F.RECURRING_AMOUNT: price,
            F.FREQUENCY: settings.frequency,
            F.CYCLES: settings.cycles,
        }
        return canonical_fields(raw, CHECKOUT_FIELD_ORDER)

    def _sign(self, subscription_id: str, user_id: str) -> SignedRequest:
        fields = self.build_fields(subscription_id, user_id)
        return SignedRequest(
            target_url=self.settings.process_url,
            fields=tuple(fields.items()),
            signature=sign(fields, self.settings.signing_secret, CHECKOUT_FIELD_ORDER),
            canonical_string=build_canonical_string(fields, CHECKOUT_FIELD_ORDER),
        )
