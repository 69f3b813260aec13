"""Client for the processor's ITN confirmation endpoint."""

from __future__ import annotations

import logging
from enum import Enum
from typing import Optional

import httpx

from ..core.config import PayFastSettings

logger = logging.getLogger(__name__)


class ValidationResult(str, Enum):
    VALID = "VALID"
    INVALID = "INVALID"
    UNREACHABLE = "UNREACHABLE"

    @property
    def is_valid(self) -> bool:
        return self is ValidationResult.VALID


class PayFastValidator:
    """
    Asks the processor whether a notification is authentic.

    The canonical string is posted without the passphrase; the processor
    answers with a bare ``VALID`` or ``INVALID`` token. Anything that is not
    an explicit ``VALID`` must be treated as a rejection by the caller.
    """

    def __init__(self, settings: PayFastSettings, client: Optional[httpx.Client] = None) -> None:
        self._settings = settings
        self._client = client or httpx.Client(timeout=settings.validate_timeout)
        self._owns_client = client is None

    def validate(self, canonical_without_secret: str) -> ValidationResult:
        try:
            response = self._client.post(
                self._settings.validate_url,
                content=canonical_without_secret.encode("utf-8"),
                headers={"Content-Type": "application/x-www-form-urlencoded"},
                timeout=self._settings.validate_timeout,
            )
        except httpx.HTTPError as exc:
            logger.warning("PayFast validation request failed: %s", exc)
            return ValidationResult.UNREACHABLE

        body = response.text.strip()
        if response.status_code != 200:
            logger.warning("PayFast validation returned HTTP %s: %s", response.status_code, body[:200])
            return ValidationResult.INVALID
        if body == ValidationResult.VALID.value:
            return ValidationResult.VALID
        logger.warning("PayFast validation answered %r", body[:200])
        return ValidationResult.INVALID

    def close(self) -> None:
        if self._owns_client:
            self._client.close()
