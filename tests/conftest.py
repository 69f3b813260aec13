from typing import Callable, Dict, List, Optional

import httpx
import pytest

from paygate.core.config import PayFastSettings
from paygate.domain.models import NOTIFICATION_FIELD_ORDER
from paygate.infrastructure.persistence.sqlite import SQLitePersistence
from paygate.services.entitlement_service import EntitlementService
from paygate.services.notification_service import NotificationService
from paygate.services.payfast_validator import PayFastValidator
from paygate.services.signature import sign
from paygate.services.subscription_service import SubscriptionService

PAYFAST_ENV = {
    "PAYFAST_MODE": "sandbox",
    "PAYFAST_MERCHANT_ID": "10000100",
    "PAYFAST_MERCHANT_KEY": "46f0cd694581a",
    "PAYFAST_RETURN_URL": "https://example.com/subscribe/success",
    "PAYFAST_CANCEL_URL": "https://example.com/subscribe/cancel",
    "PAYFAST_NOTIFY_URL": "https://example.com/api/payfast/notify",
    "SUBSCRIPTION_AMOUNT": "99",
    "SUBSCRIPTION_ITEM": "Monthly Plan",
}


def make_settings(**overrides) -> PayFastSettings:
    values = dict(
        mode="sandbox",
        merchant_id="10000100",
        merchant_key="46f0cd694581a",
        return_url="https://example.com/subscribe/success",
        cancel_url="https://example.com/subscribe/cancel",
        notify_url="https://example.com/api/payfast/notify",
        amount="99",
        item_name="Monthly Plan",
    )
    values.update(overrides)
    return PayFastSettings(**values)


class ValidatorEndpoint:
    """Stands in for the processor's validation endpoint."""

    def __init__(self, answer: str = "VALID", status_code: int = 200) -> None:
        self.answer = answer
        self.status_code = status_code
        self.requests: List[httpx.Request] = []
        self.error: Optional[Exception] = None

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        return httpx.Response(self.status_code, text=self.answer)

    def client(self) -> httpx.Client:
        return httpx.Client(transport=httpx.MockTransport(self))


@pytest.fixture
def payfast_settings() -> PayFastSettings:
    return make_settings()


@pytest.fixture
def persistence(tmp_path):
    store = SQLitePersistence(tmp_path / "app.db")
    yield store
    store.close()


@pytest.fixture
def validator_endpoint() -> ValidatorEndpoint:
    return ValidatorEndpoint()


@pytest.fixture
def validator(payfast_settings, validator_endpoint) -> PayFastValidator:
    return PayFastValidator(payfast_settings, client=validator_endpoint.client())


@pytest.fixture
def entitlement_service(persistence) -> EntitlementService:
    return EntitlementService(persistence)


@pytest.fixture
def subscription_service(persistence, payfast_settings) -> SubscriptionService:
    return SubscriptionService(persistence, payfast_settings)


@pytest.fixture
def notification_service(persistence, entitlement_service, validator, payfast_settings) -> NotificationService:
    return NotificationService(
        subscription_repository=persistence,
        entitlement_service=entitlement_service,
        validator=validator,
        settings=payfast_settings,
    )


@pytest.fixture
def itn_factory(payfast_settings) -> Callable[..., Dict[str, str]]:
    """Build a correctly signed ITN payload in the processor's field order."""

    def build(subscription_id: str, user_id: Optional[str] = None, secret: Optional[str] = None, **fields) -> Dict[str, str]:
        payload = {
            "m_payment_id": subscription_id,
            "pf_payment_id": "1089250",
            "payment_status": "COMPLETE",
            "item_name": "Monthly Plan",
            "amount_gross": "99.00",
            "amount_fee": "-2.28",
            "amount_net": "96.72",
        }
        if user_id is not None:
            payload["custom_str1"] = user_id
        payload.update({"merchant_id": payfast_settings.merchant_id, "token": "dc0521d3-55fe-269b-fa00-b647310d760f"})
        for key, value in fields.items():
            if value is None:
                payload.pop(key, None)
            else:
                payload[key] = value
        signing_secret = secret if secret is not None else payfast_settings.signing_secret
        payload["signature"] = sign(payload, signing_secret, NOTIFICATION_FIELD_ORDER)
        return payload

    return build
