import os
import re
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv

from ..domain.errors import ConfigurationError

MODE_SANDBOX = "sandbox"
MODE_LIVE = "live"

_HOSTS = {
    MODE_SANDBOX: "https://sandbox.payfast.co.za",
    MODE_LIVE: "https://www.payfast.co.za",
}

_INVISIBLE = re.compile(r"[\s\u00a0\u200b-\u200d\ufeff]")


@dataclass(frozen=True)
class PayFastSettings:
    """Processor configuration, built once at startup and passed to services."""

    mode: str = MODE_SANDBOX
    merchant_id: Optional[str] = None
    merchant_key: Optional[str] = None
    passphrase: Optional[str] = None
    return_url: Optional[str] = None
    cancel_url: Optional[str] = None
    notify_url: Optional[str] = None
    amount: Optional[str] = None
    item_name: Optional[str] = None
    plan: str = "monthly"
    frequency: int = 3
    cycles: int = 0
    billing_date: Optional[str] = None
    minimum_amount: Optional[str] = None
    validate_timeout: float = 10.0

    @property
    def is_live(self) -> bool:
        return self.mode == MODE_LIVE

    @property
    def process_url(self) -> str:
        return f"{self._host()}/eng/process"

    @property
    def validate_url(self) -> str:
        return f"{self._host()}/eng/query/validate"

    @property
    def price(self) -> Decimal:
        """Plan price rounded to cents."""
        return _parse_amount("SUBSCRIPTION_AMOUNT", self.amount)

    @property
    def minimum_price(self) -> Decimal:
        """Smallest gross amount that may activate a subscription."""
        if self.minimum_amount:
            return _parse_amount("SUBSCRIPTION_MIN_AMOUNT", self.minimum_amount)
        return self.price

    @property
    def signing_secret(self) -> Optional[str]:
        if self.passphrase and self.passphrase.strip():
            return self.passphrase.strip()
        return None

    def missing_fields(self) -> List[str]:
        required = {
            "PAYFAST_MERCHANT_ID": self.merchant_id,
            "PAYFAST_MERCHANT_KEY": self.merchant_key,
            "PAYFAST_RETURN_URL": self.return_url,
            "PAYFAST_CANCEL_URL": self.cancel_url,
            "PAYFAST_NOTIFY_URL": self.notify_url,
            "SUBSCRIPTION_AMOUNT": self.amount,
            "SUBSCRIPTION_ITEM": self.item_name,
        }
        if self.is_live:
            required["PAYFAST_PASSPHRASE"] = self.passphrase
        return [key for key, value in required.items() if not value or not str(value).strip()]

    def validate(self) -> None:
        """
        Check that everything needed to sign a redirect request is present.

        Raises:
            ConfigurationError: If the mode is unknown, a required value is
                missing, a URL carries whitespace or the amount is malformed.
        """
        if self.mode not in _HOSTS:
            raise ConfigurationError(
                f"PAYFAST_MODE must be '{MODE_SANDBOX}' or '{MODE_LIVE}', got {self.mode!r}"
            )
        missing = self.missing_fields()
        if missing:
            raise ConfigurationError(
                "Missing required PayFast configuration: " + ", ".join(missing),
                missing=missing,
            )
        for name, url in (
            ("PAYFAST_RETURN_URL", self.return_url),
            ("PAYFAST_CANCEL_URL", self.cancel_url),
            ("PAYFAST_NOTIFY_URL", self.notify_url),
        ):
            if _INVISIBLE.search(url or ""):
                raise ConfigurationError(f"{name} contains whitespace or invisible characters")
        if self.price <= 0:
            raise ConfigurationError("SUBSCRIPTION_AMOUNT must be greater than zero")
        if self.minimum_price < 0:
            raise ConfigurationError("SUBSCRIPTION_MIN_AMOUNT must not be negative")

    def _host(self) -> str:
        try:
            return _HOSTS[self.mode]
        except KeyError as exc:
            raise ConfigurationError(f"Unknown PAYFAST_MODE {self.mode!r}") from exc


def _parse_amount(key: str, value: Optional[str]) -> Decimal:
    if value is None:
        raise ConfigurationError(f"Missing required PayFast configuration: {key}", missing=[key])
    try:
        amount = Decimal(str(value).strip())
    except InvalidOperation as exc:
        raise ConfigurationError(f"{key} must be a decimal amount, got {value!r}") from exc
    if not amount.is_finite():
        raise ConfigurationError(f"{key} must be a decimal amount, got {value!r}")
    return amount.quantize(Decimal("0.01"))


class Settings:
    """Centralised application configuration sourced from environment variables."""

    def __init__(self) -> None:
        load_dotenv()
        self.database_path = Path(os.getenv("DATABASE_PATH", "data/app.db")).resolve()
        self.jwt_secret = os.getenv("JWT_SECRET", "change-me")
        self.jwt_algorithm = os.getenv("JWT_ALGORITHM", "HS256")
        self.debug_endpoints = os.getenv("DEBUG_ENDPOINTS", "").strip().lower() in ("1", "true", "yes")
        origins = os.getenv("CORS_ALLOW_ORIGINS")
        if origins:
            self.cors_allow_origins = [item.strip() for item in origins.split(",") if item.strip()]
        else:
            self.cors_allow_origins = ["*"]
        self.payfast = PayFastSettings(
            mode=os.getenv("PAYFAST_MODE", MODE_SANDBOX).strip().lower(),
            merchant_id=self._tidy("PAYFAST_MERCHANT_ID"),
            merchant_key=self._tidy("PAYFAST_MERCHANT_KEY"),
            passphrase=self._tidy("PAYFAST_PASSPHRASE"),
            return_url=self._tidy("PAYFAST_RETURN_URL"),
            cancel_url=self._tidy("PAYFAST_CANCEL_URL"),
            notify_url=self._tidy("PAYFAST_NOTIFY_URL"),
            amount=self._tidy("SUBSCRIPTION_AMOUNT"),
            item_name=self._tidy("SUBSCRIPTION_ITEM"),
            plan=os.getenv("SUBSCRIPTION_PLAN", "monthly"),
            frequency=self._get_int("SUBSCRIPTION_FREQUENCY", default=3),
            cycles=self._get_int("SUBSCRIPTION_CYCLES", default=0),
            billing_date=self._tidy("SUBSCRIPTION_BILLING_DATE"),
            minimum_amount=self._tidy("SUBSCRIPTION_MIN_AMOUNT"),
            validate_timeout=self._get_float("PAYFAST_VALIDATE_TIMEOUT", default=10.0),
        )

    @staticmethod
    def _tidy(key: str) -> Optional[str]:
        value = os.getenv(key)
        if value is None:
            return None
        return value.strip() or None

    @staticmethod
    def _get_int(key: str, default: Optional[int] = None) -> int:
        value = os.getenv(key)
        if value is None:
            if default is None:
                raise RuntimeError(f"Missing required environment variable: {key}")
            return default
        try:
            return int(value)
        except ValueError as exc:
            raise RuntimeError(f"Environment variable {key} must be an integer") from exc

    @staticmethod
    def _get_float(key: str, default: float) -> float:
        value = os.getenv(key)
        if value is None:
            return default
        try:
            return float(value)
        except ValueError as exc:
            raise RuntimeError(f"Environment variable {key} must be a number") from exc
