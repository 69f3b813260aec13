"""Error taxonomy for subscription initiation and notification handling."""

from typing import Iterable, Optional


class PayGateError(Exception):
    """Base class for every error raised by the billing core."""


class ConfigurationError(PayGateError):
    """Processor configuration is incomplete or malformed."""

    def __init__(self, message: str, missing: Optional[Iterable[str]] = None) -> None:
        super().__init__(message)
        self.missing = list(missing or [])


class PersistenceError(PayGateError):
    """The storage layer could not durably record a change."""


class NotificationRejected(PayGateError):
    """
    An inbound notification was refused.

    Rejections are an expected outcome of the notification protocol: they are
    logged and acknowledged, and never change stored state.
    """

    outcome = "rejected"


class SignatureMismatch(NotificationRejected):
    outcome = "signature_mismatch"


class RemoteValidationFailed(NotificationRejected):
    outcome = "remote_validation_failed"


class UnresolvedReference(NotificationRejected):
    outcome = "unresolved_reference"


class DuplicateNotification(NotificationRejected):
    outcome = "duplicate"


class StaleNotification(NotificationRejected):
    outcome = "stale"
