"""Request signing and notification signature verification."""

from __future__ import annotations

import hashlib
import hmac
from typing import Any, Mapping, Optional

from ..domain.models.payfast import CHECKOUT_FIELD_ORDER
from .canonical import FieldKey, FieldOrder, build_canonical_string


def digest(canonical: str) -> str:
    # MD5 is what the processor recomputes on its side.
    return hashlib.md5(canonical.encode("utf-8")).hexdigest()


def sign(
    fields: Mapping[FieldKey, Any],
    secret: Optional[str] = None,
    order: FieldOrder = CHECKOUT_FIELD_ORDER,
) -> str:
    """Return the lowercase hex signature for ``fields``."""
    return digest(build_canonical_string(fields, order, secret=secret))


def verify(
    fields: Mapping[FieldKey, Any],
    claimed_signature: Optional[str],
    secret: Optional[str] = None,
    order: FieldOrder = CHECKOUT_FIELD_ORDER,
) -> bool:
    """
    Recompute the signature over ``fields`` and compare it with ``claimed_signature``.

    A mismatch is a normal outcome and is reported as ``False``; this function
    never raises for bad input.
    """
    if not claimed_signature or not claimed_signature.strip():
        return False
    expected = sign(fields, secret, order)
    return hmac.compare_digest(expected.encode("utf-8"), claimed_signature.strip().lower().encode("utf-8"))
