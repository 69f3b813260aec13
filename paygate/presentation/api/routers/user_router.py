"""API router for the signed-in user."""

from fastapi import APIRouter, Depends

from ....core.dependencies import get_entitlement_service
from ....services.entitlement_service import EntitlementService
from ...api.dependencies import get_current_user_id
from ...api.schemas.user_schemas import MeResponse

router = APIRouter(prefix="/api", tags=["users"])


@router.get("/me", response_model=MeResponse)
async def me(
    user_id: str = Depends(get_current_user_id),
    entitlement_service: EntitlementService = Depends(get_entitlement_service),
) -> MeResponse:
    """Report the caller's id and subscriber flag."""
    return MeResponse(user_id=user_id, subscriber=entitlement_service.is_entitled(user_id))
