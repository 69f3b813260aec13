from decimal import Decimal

import pytest

from paygate.core.config import PayFastSettings, Settings
from paygate.domain.errors import ConfigurationError

from .conftest import PAYFAST_ENV, make_settings


def test_complete_sandbox_settings_validate():
    settings = make_settings()
    settings.validate()
    assert settings.process_url == "https://sandbox.payfast.co.za/eng/process"
    assert settings.validate_url == "https://sandbox.payfast.co.za/eng/query/validate"
    assert settings.price == Decimal("99.00")
    assert settings.minimum_price == Decimal("99.00")


def test_missing_fields_are_listed():
    settings = make_settings(merchant_key=None, notify_url="  ")
    with pytest.raises(ConfigurationError) as excinfo:
        settings.validate()
    assert excinfo.value.missing == ["PAYFAST_MERCHANT_KEY", "PAYFAST_NOTIFY_URL"]


def test_live_mode_requires_passphrase():
    settings = make_settings(mode="live")
    with pytest.raises(ConfigurationError) as excinfo:
        settings.validate()
    assert excinfo.value.missing == ["PAYFAST_PASSPHRASE"]

    live = make_settings(mode="live", passphrase="jt7NOE43FZPn")
    live.validate()
    assert live.process_url == "https://www.payfast.co.za/eng/process"


def test_sandbox_does_not_require_passphrase():
    assert "PAYFAST_PASSPHRASE" not in make_settings(mode="sandbox").missing_fields()


def test_unknown_mode_is_rejected():
    with pytest.raises(ConfigurationError):
        make_settings(mode="production").validate()


def test_url_with_whitespace_is_rejected():
    with pytest.raises(ConfigurationError, match="PAYFAST_RETURN_URL"):
        make_settings(return_url="https://example.com/sub scribe").validate()


def test_url_with_zero_width_space_is_rejected():
    with pytest.raises(ConfigurationError, match="PAYFAST_CANCEL_URL"):
        make_settings(cancel_url="https://example.com/\u200bcancel").validate()


@pytest.mark.parametrize("amount", ["abc", "0", "-5"])
def test_bad_amount_is_rejected(amount):
    with pytest.raises(ConfigurationError):
        make_settings(amount=amount).validate()


def test_minimum_amount_override():
    settings = make_settings(minimum_amount="50")
    assert settings.minimum_price == Decimal("50.00")


def test_signing_secret_is_trimmed():
    assert make_settings(passphrase="  pass  ").signing_secret == "pass"
    assert make_settings(passphrase="   ").signing_secret is None


def test_settings_read_environment(monkeypatch, tmp_path):
    for key, value in PAYFAST_ENV.items():
        monkeypatch.setenv(key, value)
    monkeypatch.setenv("DATABASE_PATH", str(tmp_path / "db.sqlite"))
    monkeypatch.setenv("PAYFAST_MODE", " LIVE ")
    monkeypatch.setenv("PAYFAST_PASSPHRASE", "secret")
    monkeypatch.setenv("SUBSCRIPTION_FREQUENCY", "6")

    settings = Settings()

    assert isinstance(settings.payfast, PayFastSettings)
    assert settings.payfast.mode == "live"
    assert settings.payfast.frequency == 6
    assert settings.payfast.signing_secret == "secret"
    assert settings.database_path == (tmp_path / "db.sqlite").resolve()


def test_non_integer_frequency_fails_at_startup(monkeypatch):
    monkeypatch.setenv("SUBSCRIPTION_FREQUENCY", "monthly")
    with pytest.raises(RuntimeError):
        Settings()
