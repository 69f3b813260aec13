"""
Canonical parameter string shared by request signing and ITN verification.

Both sides of the protocol must hash the exact same bytes, so this module is
the only place that decides which fields appear, in which order, and how
their values are encoded.
"""

from __future__ import annotations

from decimal import Decimal
from enum import Enum
from typing import Any, Dict, Iterable, Mapping, Optional, Union
from urllib.parse import parse_qsl, quote_plus

from ..domain.models.payfast import CHECKOUT_FIELD_ORDER, PayFastField

FieldKey = Union[str, PayFastField]
FieldOrder = Iterable[Union[str, PayFastField]]


def encode_value(value: str) -> str:
    """Form-encode a value: spaces become ``+``, everything else reserved is ``%XX``."""
    return quote_plus(value, safe="")


def normalize_value(value: Any) -> Optional[str]:
    """Coerce a raw field value to its trimmed string form, or None when absent."""
    if value is None:
        return None
    if isinstance(value, Enum):
        value = value.value
    if isinstance(value, bool):
        text = "1" if value else "0"
    elif isinstance(value, Decimal):
        text = format(value, "f")
    else:
        text = str(value)
    text = text.strip()
    return text or None


def canonical_fields(fields: Mapping[FieldKey, Any], order: FieldOrder = CHECKOUT_FIELD_ORDER) -> Dict[str, str]:
    """
    Return the non-empty fields in canonical order.

    Fields named in ``order`` come first, in that order. Any other non-empty
    field follows in lexicographic key order. The ``signature`` and
    ``passphrase`` fields are never included.
    """
    values: Dict[str, str] = {}
    for key, raw in fields.items():
        name = _key(key)
        if name in (PayFastField.SIGNATURE.value, PayFastField.PASSPHRASE.value):
            continue
        text = normalize_value(raw)
        if text is not None:
            values[name] = text

    ordered: Dict[str, str] = {}
    for key in order:
        name = _key(key)
        if name in values:
            ordered[name] = values.pop(name)
    for name in sorted(values):
        ordered[name] = values[name]
    return ordered


def build_canonical_string(
    fields: Mapping[FieldKey, Any],
    order: FieldOrder = CHECKOUT_FIELD_ORDER,
    *,
    secret: Optional[str] = None,
) -> str:
    """
    Build ``k1=v1&k2=v2...`` over ``fields``.

    When ``secret`` is non-empty it is appended last as
    ``passphrase=<encoded secret>``, using the same encoding as every other
    value.
    """
    parts = [f"{name}={encode_value(value)}" for name, value in canonical_fields(fields, order).items()]
    secret_text = normalize_value(secret)
    if secret_text is not None:
        parts.append(f"{PayFastField.PASSPHRASE.value}={encode_value(secret_text)}")
    return "&".join(parts)


def parse_canonical_string(canonical: str) -> Dict[str, str]:
    """Decode a canonical string back into its ordered field mapping."""
    return dict(parse_qsl(canonical, keep_blank_values=True, strict_parsing=bool(canonical)))


def _key(key: FieldKey) -> str:
    return key.value if isinstance(key, PayFastField) else str(key)
