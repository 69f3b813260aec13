"""Operator endpoint showing which processor settings are in effect."""

from typing import Dict, Optional

from fastapi import APIRouter, Depends

from ....core.config import Settings
from ....core.dependencies import get_settings

router = APIRouter(prefix="/api/debug", tags=["debug"])


def _mask(value: Optional[str]) -> str:
    if not value:
        return "(empty)"
    if len(value) > 6:
        return f"{value[:3]}...{value[-3:]}"
    return "***"


@router.get("/env")
async def debug_env(settings: Settings = Depends(get_settings)) -> Dict[str, object]:
    """Masked configuration overview; secrets are never returned."""
    payfast = settings.payfast
    return {
        "PAYFAST_MODE": payfast.mode,
        "PAYFAST_MERCHANT_ID": payfast.merchant_id or "(unset)",
        "PAYFAST_MERCHANT_KEY": _mask(payfast.merchant_key),
        "PAYFAST_PASSPHRASE": "(set)" if payfast.passphrase else "(empty)",
        "PAYFAST_RETURN_URL": payfast.return_url or "(unset)",
        "PAYFAST_CANCEL_URL": payfast.cancel_url or "(unset)",
        "PAYFAST_NOTIFY_URL": payfast.notify_url or "(unset)",
        "SUBSCRIPTION_ITEM": payfast.item_name or "(unset)",
        "SUBSCRIPTION_AMOUNT": payfast.amount or "(unset)",
        "missing": payfast.missing_fields(),
    }
