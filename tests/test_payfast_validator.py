import httpx

from paygate.services.payfast_validator import PayFastValidator, ValidationResult

from .conftest import ValidatorEndpoint, make_settings

CANONICAL = "m_payment_id=u1-abc&payment_status=COMPLETE&amount_gross=99.00"


def _validator(endpoint: ValidatorEndpoint, **overrides) -> PayFastValidator:
    return PayFastValidator(make_settings(**overrides), client=endpoint.client())


def test_valid_answer():
    endpoint = ValidatorEndpoint("VALID\n")
    assert _validator(endpoint).validate(CANONICAL) is ValidationResult.VALID

    request = endpoint.requests[0]
    assert request.method == "POST"
    assert str(request.url) == "https://sandbox.payfast.co.za/eng/query/validate"
    assert request.headers["content-type"] == "application/x-www-form-urlencoded"
    assert request.content == CANONICAL.encode()


def test_live_mode_uses_live_host():
    endpoint = ValidatorEndpoint()
    _validator(endpoint, mode="live", passphrase="p").validate(CANONICAL)
    assert endpoint.requests[0].url.host == "www.payfast.co.za"


def test_invalid_answer():
    assert _validator(ValidatorEndpoint("INVALID")).validate(CANONICAL) is ValidationResult.INVALID


def test_unexpected_body_is_invalid():
    assert _validator(ValidatorEndpoint("<html>maintenance</html>")).validate(CANONICAL) is ValidationResult.INVALID


def test_error_status_is_invalid_even_with_valid_body():
    endpoint = ValidatorEndpoint("VALID", status_code=503)
    assert _validator(endpoint).validate(CANONICAL) is ValidationResult.INVALID


def test_network_failure_fails_closed():
    endpoint = ValidatorEndpoint()
    endpoint.error = httpx.ConnectTimeout("timed out")
    result = _validator(endpoint).validate(CANONICAL)
    assert result is ValidationResult.UNREACHABLE
    assert not result.is_valid
