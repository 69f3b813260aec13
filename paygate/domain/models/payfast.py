"""Field vocabulary and value objects for the PayFast redirect/ITN protocol."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Dict, Iterable, List, Optional, Tuple


class PayFastField(str, Enum):
    """Closed set of field names the processor documents."""

    MERCHANT_ID = "merchant_id"
    MERCHANT_KEY = "merchant_key"
    RETURN_URL = "return_url"
    CANCEL_URL = "cancel_url"
    NOTIFY_URL = "notify_url"
    NAME_FIRST = "name_first"
    NAME_LAST = "name_last"
    EMAIL_ADDRESS = "email_address"
    CELL_NUMBER = "cell_number"
    M_PAYMENT_ID = "m_payment_id"
    PF_PAYMENT_ID = "pf_payment_id"
    PAYMENT_STATUS = "payment_status"
    SUBSCRIPTION_STATUS = "subscription_status"
    AMOUNT = "amount"
    AMOUNT_GROSS = "amount_gross"
    AMOUNT_FEE = "amount_fee"
    AMOUNT_NET = "amount_net"
    ITEM_NAME = "item_name"
    ITEM_DESCRIPTION = "item_description"
    CUSTOM_INT1 = "custom_int1"
    CUSTOM_INT2 = "custom_int2"
    CUSTOM_INT3 = "custom_int3"
    CUSTOM_INT4 = "custom_int4"
    CUSTOM_INT5 = "custom_int5"
    CUSTOM_STR1 = "custom_str1"
    CUSTOM_STR2 = "custom_str2"
    CUSTOM_STR3 = "custom_str3"
    CUSTOM_STR4 = "custom_str4"
    CUSTOM_STR5 = "custom_str5"
    EMAIL_CONFIRMATION = "email_confirmation"
    CONFIRMATION_ADDRESS = "confirmation_address"
    PAYMENT_METHOD = "payment_method"
    SUBSCRIPTION_TYPE = "subscription_type"
    BILLING_DATE = "billing_date"
    RECURRING_AMOUNT = "recurring_amount"
    FREQUENCY = "frequency"
    CYCLES = "cycles"
    TOKEN = "token"
    SIGNATURE = "signature"
    PASSPHRASE = "passphrase"


F = PayFastField

# Order the processor hashes a redirect request in.
CHECKOUT_FIELD_ORDER: Tuple[PayFastField, ...] = (
    # merchant details
    F.MERCHANT_ID,
    F.MERCHANT_KEY,
    F.RETURN_URL,
    F.CANCEL_URL,
    F.NOTIFY_URL,
    # buyer details
    F.NAME_FIRST,
    F.NAME_LAST,
    F.EMAIL_ADDRESS,
    F.CELL_NUMBER,
    # transaction details
    F.M_PAYMENT_ID,
    F.AMOUNT,
    F.ITEM_NAME,
    F.ITEM_DESCRIPTION,
    F.CUSTOM_INT1,
    F.CUSTOM_INT2,
    F.CUSTOM_INT3,
    F.CUSTOM_INT4,
    F.CUSTOM_INT5,
    F.CUSTOM_STR1,
    F.CUSTOM_STR2,
    F.CUSTOM_STR3,
    F.CUSTOM_STR4,
    F.CUSTOM_STR5,
    # transaction options
    F.EMAIL_CONFIRMATION,
    F.CONFIRMATION_ADDRESS,
    F.PAYMENT_METHOD,
    # recurring billing
    F.SUBSCRIPTION_TYPE,
    F.BILLING_DATE,
    F.RECURRING_AMOUNT,
    F.FREQUENCY,
    F.CYCLES,
)

# Order the processor posts (and hashes) an ITN in.
NOTIFICATION_FIELD_ORDER: Tuple[PayFastField, ...] = (
    F.M_PAYMENT_ID,
    F.PF_PAYMENT_ID,
    F.PAYMENT_STATUS,
    F.ITEM_NAME,
    F.ITEM_DESCRIPTION,
    F.AMOUNT_GROSS,
    F.AMOUNT_FEE,
    F.AMOUNT_NET,
    F.CUSTOM_STR1,
    F.CUSTOM_STR2,
    F.CUSTOM_STR3,
    F.CUSTOM_STR4,
    F.CUSTOM_STR5,
    F.CUSTOM_INT1,
    F.CUSTOM_INT2,
    F.CUSTOM_INT3,
    F.CUSTOM_INT4,
    F.CUSTOM_INT5,
    F.NAME_FIRST,
    F.NAME_LAST,
    F.EMAIL_ADDRESS,
    F.MERCHANT_ID,
    F.TOKEN,
    F.BILLING_DATE,
)


@dataclass(frozen=True)
class SignedRequest:
    """A redirect request ready to be posted to the processor unmodified."""

    target_url: str
    fields: Tuple[Tuple[str, str], ...]
    signature: str
    canonical_string: str  # without the passphrase

    def form_fields(self) -> List[Tuple[str, str]]:
        """Field pairs in posting order, signature last."""
        return list(self.fields) + [(F.SIGNATURE.value, self.signature)]

    def to_dict(self) -> Dict[str, object]:
        return {
            "target": self.target_url,
            "fields": dict(self.form_fields()),
            "signature": self.signature,
        }


@dataclass
class Notification:
    """
    An inbound ITN as received.

    ``fields`` keeps every posted pair in arrival order (the last value wins
    for repeated keys) so the payload can be re-hashed and compared byte for
    byte.
    """

    fields: Dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_pairs(cls, pairs: Iterable[Tuple[str, str]]) -> "Notification":
        fields: Dict[str, str] = {}
        for key, value in pairs:
            fields[key] = value
        return cls(fields=fields)

    def get(self, name: PayFastField) -> Optional[str]:
        value = self.fields.get(name.value)
        if value is None:
            return None
        value = value.strip()
        return value or None

    @property
    def signature(self) -> Optional[str]:
        return self.get(F.SIGNATURE)

    @property
    def signed_fields(self) -> Dict[str, str]:
        """Every field except the signature itself."""
        return {k: v for k, v in self.fields.items() if k != F.SIGNATURE.value}

    @property
    def payment_reference(self) -> Optional[str]:
        return self.get(F.M_PAYMENT_ID)

    @property
    def user_reference(self) -> Optional[str]:
        return self.get(F.CUSTOM_STR1)

    @property
    def payment_status(self) -> Optional[str]:
        value = self.get(F.PAYMENT_STATUS)
        return value.upper() if value else None

    @property
    def subscription_status(self) -> Optional[str]:
        value = self.get(F.SUBSCRIPTION_STATUS)
        return value.upper() if value else None

    @property
    def amount_gross(self) -> Optional[Decimal]:
        raw = self.get(F.AMOUNT_GROSS) or self.get(F.AMOUNT)
        if raw is None:
            return None
        try:
            amount = Decimal(raw)
        except InvalidOperation:
            return None
        # NaN and Infinity parse but cannot be compared against a price
        return amount if amount.is_finite() else None

    def to_json(self) -> str:
        """Stable text form used for audit and duplicate detection."""
        return json.dumps(self.fields, ensure_ascii=False, separators=(",", ":"))
