from __future__ import annotations

from passportsheet.core.errors import PassportSheetError


class NormalizationError(PassportSheetError):
    """Background/attire replacement failed."""


class RateLimited(NormalizationError):
    """The service asked us to slow down (HTTP 429). Retryable."""


class AuthenticationFailed(NormalizationError):
    """Missing or rejected API key. Never retried."""


class EmptyResponse(NormalizationError):
    """The service answered without an image."""
