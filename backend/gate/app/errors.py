"""Error types raised by the verification gate."""
from __future__ import annotations

from fastapi import status


class GateError(Exception):
    """Base class for verification gate failures."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    detail: str = "Verification gate failure"

    def __init__(self, detail: str | None = None) -> None:
        super().__init__(detail or self.detail)
        if detail is not None:
            self.detail = detail


class DecodingError(GateError):
    """The verification cookie is missing, malformed, tampered with or expired."""

    status_code = status.HTTP_403_FORBIDDEN
    detail = "Verification cookie is not valid"


class EncodingError(GateError):
    """The verification cookie could not be sealed."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    detail = "Unable to issue verification cookie"


class VerificationDenied(GateError):
    """The external verification service rejected the challenge response."""

    status_code = status.HTTP_403_FORBIDDEN
    detail = "CAPTCHA verification failed"


class VerificationUnavailable(GateError):
    """The external verification service could not be reached or answered garbage."""

    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    detail = "CAPTCHA verification service unavailable"


__all__ = [
    "DecodingError",
    "EncodingError",
    "GateError",
    "VerificationDenied",
    "VerificationUnavailable",
]
