"""PayFast subscription and ITN endpoints."""

import logging
from urllib.parse import parse_qsl

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import HTMLResponse, PlainTextResponse

from ....core.dependencies import get_notification_service, get_subscription_service
from ....domain.errors import ConfigurationError, PersistenceError
from ....domain.models import Notification
from ....services.notification_service import NotificationService
from ....services.subscription_service import SubscriptionService
from ...api.dependencies import get_current_user_id
from ...api.schemas.payfast_schemas import SubscribeDryRunResponse
from ...forms import render_redirect_form

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/payfast", tags=["PayFast"])

ITN_ACK = "OK"


@router.post("/subscribe", response_class=HTMLResponse)
async def subscribe(
    user_id: str = Depends(get_current_user_id),
    subscription_service: SubscriptionService = Depends(get_subscription_service),
) -> HTMLResponse:
    """Start a subscription and return the auto-submitting PayFast form."""
    try:
        _, signed = subscription_service.start_subscription(user_id)
    except ConfigurationError as exc:
        logger.error("Cannot start subscription: %s", exc)
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"error": str(exc), "missing": exc.missing},
        ) from exc
    except PersistenceError as exc:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Could not start subscription",
        ) from exc
    return HTMLResponse(render_redirect_form(signed))


@router.get("/subscribe/dry-run", response_model=SubscribeDryRunResponse)
async def subscribe_dry_run(
    user_id: str = Depends(get_current_user_id),
    subscription_service: SubscriptionService = Depends(get_subscription_service),
) -> SubscribeDryRunResponse:
    """Build and sign a request without storing anything."""
    try:
        signed = subscription_service.preview_subscription(user_id)
    except ConfigurationError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"error": str(exc), "missing": exc.missing},
        ) from exc
    return SubscribeDryRunResponse(**signed.to_dict())


@router.post("/notify", response_class=PlainTextResponse, include_in_schema=False)
async def payfast_notify(
    request: Request,
    notification_service: NotificationService = Depends(get_notification_service),
) -> PlainTextResponse:
    """Handle a PayFast ITN. The processor always gets ``200 OK`` back."""
    try:
        body = await request.body()
        pairs = parse_qsl(body.decode("utf-8", errors="replace"), keep_blank_values=True)
        notification = Notification.from_pairs(pairs)
        result = await run_in_threadpool(notification_service.handle, notification)
        logger.info(
            "ITN %s finished: %s (%s)",
            result.subscription_id,
            result.outcome.value,
            result.detail or result.stage.value,
        )
    except Exception:
        logger.exception("ITN could not be read")
    return PlainTextResponse(ITN_ACK, status_code=status.HTTP_200_OK)
