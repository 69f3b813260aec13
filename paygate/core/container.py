from dataclasses import dataclass

from .config import Settings
from ..domain.ports.persistence import PersistenceGateway
from ..services.auth_service import AuthService
from ..services.entitlement_service import EntitlementService
from ..services.notification_service import NotificationService
from ..services.payfast_validator import PayFastValidator
from ..services.subscription_service import SubscriptionService


@dataclass(slots=True)
class ApplicationContainer:
    """Dependency registry shared across the FastAPI application lifecycle."""

    settings: Settings
    persistence: PersistenceGateway
    auth_service: AuthService
    payfast_validator: PayFastValidator
    entitlement_service: EntitlementService
    subscription_service: SubscriptionService
    notification_service: NotificationService
