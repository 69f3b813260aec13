import hashlib

import pytest

from paygate.services.signature import sign, verify

FIELDS = {"merchant_id": "X", "amount": "99.00", "item_name": "Monthly Plan"}


def test_signature_is_md5_of_canonical_string():
    expected = hashlib.md5(b"merchant_id=X&amount=99.00&item_name=Monthly+Plan").hexdigest()
    assert sign(FIELDS, "") == expected


def test_tampered_amount_fails_verification():
    signature = sign(FIELDS, "")
    tampered = dict(FIELDS, amount="9.00")
    assert verify(tampered, signature, "") is False


@pytest.mark.parametrize("secret", [None, "", "jt7NOE43FZPn"])
def test_round_trip(secret):
    assert verify(FIELDS, sign(FIELDS, secret), secret) is True


def test_added_field_fails_verification():
    signature = sign(FIELDS)
    assert verify(dict(FIELDS, custom_str1="u1"), signature) is False


def test_removed_field_fails_verification():
    signature = sign(FIELDS)
    fields = {k: v for k, v in FIELDS.items() if k != "item_name"}
    assert verify(fields, signature) is False


def test_reordered_canonical_output_fails_verification():
    signature = sign(FIELDS)
    assert verify(FIELDS, signature, order=["item_name", "amount", "merchant_id"]) is False


def test_secret_must_match():
    signature = sign(FIELDS, "secret-one")
    assert verify(FIELDS, signature, "secret-two") is False
    assert verify(FIELDS, signature, None) is False


def test_signature_comparison_ignores_case_and_padding():
    signature = sign(FIELDS)
    assert verify(FIELDS, f"  {signature.upper()} ") is True


@pytest.mark.parametrize("claimed", [None, "", "   ", "not-a-signature", "ünïcode"])
def test_bad_claims_return_false(claimed):
    assert verify(FIELDS, claimed) is False
