from decimal import Decimal

from paygate.domain.models import CHECKOUT_FIELD_ORDER, NOTIFICATION_FIELD_ORDER, PayFastField
from paygate.services.canonical import (
    build_canonical_string,
    canonical_fields,
    encode_value,
    parse_canonical_string,
)


class TestCanonicalString:
    def test_documented_example(self):
        fields = {"merchant_id": "X", "amount": "99.00", "item_name": "Monthly Plan"}
        assert build_canonical_string(fields, secret="") == "merchant_id=X&amount=99.00&item_name=Monthly+Plan"

    def test_fixed_order_ignores_insertion_order(self):
        fields = {"item_name": "Monthly Plan", "amount": "99.00", "merchant_id": "X"}
        assert build_canonical_string(fields) == "merchant_id=X&amount=99.00&item_name=Monthly+Plan"

    def test_empty_values_are_omitted(self):
        fields = {
            "merchant_id": "X",
            "merchant_key": "",
            "return_url": None,
            "cancel_url": "   ",
            "amount": "99.00",
        }
        canonical = build_canonical_string(fields)
        assert canonical == "merchant_id=X&amount=99.00"
        assert "merchant_key" not in canonical
        assert "cancel_url" not in canonical

    def test_values_are_trimmed_and_coerced(self):
        fields = {
            PayFastField.MERCHANT_ID: 10000100,
            PayFastField.AMOUNT: Decimal("99.00"),
            PayFastField.ITEM_NAME: "  Monthly Plan ",
            PayFastField.SUBSCRIPTION_TYPE: 1,
            PayFastField.CYCLES: 0,
        }
        assert build_canonical_string(fields) == (
            "merchant_id=10000100&amount=99.00&item_name=Monthly+Plan&subscription_type=1&cycles=0"
        )

    def test_reserved_characters_use_uppercase_hex(self):
        assert encode_value("https://example.com/a b?x=1&y=2") == "https%3A%2F%2Fexample.com%2Fa+b%3Fx%3D1%26y%3D2"
        assert encode_value("Café") == "Caf%C3%A9"

    def test_unknown_fields_follow_in_lexicographic_order(self):
        fields = {"zeta": "1", "merchant_id": "X", "alpha": "2", "amount": "5.00"}
        assert build_canonical_string(fields) == "merchant_id=X&amount=5.00&alpha=2&zeta=1"

    def test_signature_field_is_never_hashed(self):
        fields = {"merchant_id": "X", "signature": "abc"}
        assert build_canonical_string(fields) == "merchant_id=X"

    def test_secret_is_appended_last(self):
        fields = {"merchant_id": "X", "custom_str5": "z", "extra": "e"}
        canonical = build_canonical_string(fields, secret=" my pass phrase ")
        assert canonical == "merchant_id=X&custom_str5=z&extra=e&passphrase=my+pass+phrase"

    def test_whitespace_secret_is_treated_as_absent(self):
        assert build_canonical_string({"merchant_id": "X"}, secret="  ") == "merchant_id=X"

    def test_notification_order(self):
        fields = {
            "merchant_id": "10000100",
            "amount_gross": "99.00",
            "payment_status": "COMPLETE",
            "m_payment_id": "u1-abc",
        }
        assert build_canonical_string(fields, NOTIFICATION_FIELD_ORDER) == (
            "m_payment_id=u1-abc&payment_status=COMPLETE&amount_gross=99.00&merchant_id=10000100"
        )


class TestCanonicalDecoding:
    def test_decode_restores_filtered_fields(self):
        fields = {
            "merchant_id": "10000100",
            "merchant_key": "",
            "return_url": "https://example.com/done?ok=1",
            "item_name": "Monthly Plan & More",
            "custom_str1": "user 42",
        }
        expected = canonical_fields(fields, CHECKOUT_FIELD_ORDER)
        decoded = parse_canonical_string(build_canonical_string(fields))
        assert decoded == expected
        assert list(decoded) == list(expected)
        assert "merchant_key" not in decoded

    def test_empty_string_decodes_to_nothing(self):
        assert parse_canonical_string("") == {}
