"""API router for user subscription lookups."""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status

from ....core.dependencies import get_entitlement_service, get_subscription_service
from ....domain.models import Subscription
from ....services.entitlement_service import EntitlementService
from ....services.subscription_service import SubscriptionService
from ...api.dependencies import get_current_user_id, require_subscriber
from ...api.schemas.subscription_schemas import SubscriptionResponse

router = APIRouter(prefix="/api/subscription", tags=["user-subscription"])


@router.get("/current", response_model=Optional[SubscriptionResponse])
async def get_current_subscription(
    user_id: str = Depends(get_current_user_id),
    subscription_service: SubscriptionService = Depends(get_subscription_service),
) -> Optional[SubscriptionResponse]:
    """Get current user subscription."""
    subscription = subscription_service.get_user_subscription(user_id)

    if not subscription:
        return None

    return _to_response(subscription)


@router.get("/active", response_model=SubscriptionResponse)
async def get_active_subscription(
    user_id: str = Depends(require_subscriber),
    entitlement_service: EntitlementService = Depends(get_entitlement_service),
    subscription_service: SubscriptionService = Depends(get_subscription_service),
) -> SubscriptionResponse:
    """Subscription backing the caller's access. Non-subscribers get 402."""
    entitlement = entitlement_service.get_entitlement(user_id)
    subscription = None
    if entitlement is not None and entitlement.subscription_id:
        subscription = subscription_service.get_subscription(entitlement.subscription_id)

    if not subscription:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Subscription not found")

    return _to_response(subscription)


def _to_response(subscription: Subscription) -> SubscriptionResponse:
    return SubscriptionResponse(
        id=subscription.id,
        status=subscription.status.value,
        plan=subscription.plan,
        amount=f"{subscription.amount:.2f}",
        created_at=subscription.created_at,
        updated_at=subscription.updated_at,
        is_active=subscription.is_active(),
    )
