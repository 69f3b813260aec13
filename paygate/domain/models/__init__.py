"""Domain models for the billing service."""

from .entitlement import Entitlement
from .payfast import (
    CHECKOUT_FIELD_ORDER,
    NOTIFICATION_FIELD_ORDER,
    Notification,
    PayFastField,
    SignedRequest,
)
from .subscription import Subscription, SubscriptionStatus

__all__ = [
    "CHECKOUT_FIELD_ORDER",
    "Entitlement",
    "NOTIFICATION_FIELD_ORDER",
    "Notification",
    "PayFastField",
    "SignedRequest",
    "Subscription",
    "SubscriptionStatus",
]
