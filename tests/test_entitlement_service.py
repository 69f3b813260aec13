import pytest

from paygate.domain.models import SubscriptionStatus


def test_propagate_twice_is_a_no_op(entitlement_service):
    assert entitlement_service.propagate("u1", True, "s1") is True
    assert entitlement_service.propagate("u1", True, "s1") is False
    assert entitlement_service.is_entitled("u1")


@pytest.mark.parametrize(
    "status, expected",
    [
        (SubscriptionStatus.ACTIVE, True),
        (SubscriptionStatus.CANCELLED, False),
        (SubscriptionStatus.FAILED, False),
    ],
)
def test_apply_status(entitlement_service, status, expected):
    entitlement_service.apply_status("u1", status, "s1")
    assert entitlement_service.is_entitled("u1") is expected


@pytest.mark.parametrize("status", [SubscriptionStatus.PENDING, SubscriptionStatus.UNKNOWN])
def test_indeterminate_status_leaves_flag_alone(entitlement_service, status):
    entitlement_service.propagate("u1", True, "s1")
    assert entitlement_service.apply_status("u1", status, "s2") is False
    assert entitlement_service.is_entitled("u1")
