"""Decide whether a request has proven it was made by a human."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Literal, Protocol

from starlette.requests import HTTPConnection

from .cookies import FingerprintCookieCodec, VerificationCookie
from .errors import DecodingError, VerificationDenied
from .fingerprint import client_host, request_fingerprint
from .logging import get_logger

logger = get_logger(__name__)

VerifiedBy = Literal["cookie", "challenge"]


class ChallengeVerifier(Protocol):
    async def verify(self, token: str | None, remote_ip: str | None = None) -> bool: ...


@dataclass(frozen=True, slots=True)
class GateDecision:
    """Outcome of a successful pass through the gate."""

    fingerprint: str
    cookie: VerificationCookie
    verified_by: VerifiedBy

    @property
    def cookie_value(self) -> str:
        return self.cookie.value


class RecaptchaGate:
    """Accept requests carrying a matching cookie, otherwise require a challenge."""

    def __init__(
        self,
        *,
        codec: FingerprintCookieCodec,
        verifier: ChallengeVerifier,
        challenge_param: str = "c",
    ) -> None:
        self._codec = codec
        self._verifier = verifier
        self._challenge_param = challenge_param

    @property
    def cookie_name(self) -> str:
        return self._codec.name

    def validate_cookie(self, connection: HTTPConnection) -> bool:
        """Return ``True`` when the cookie opens to the caller's own fingerprint."""

        try:
            decoded = self._codec.read(connection)
        except DecodingError as exc:
            logger.debug("recaptcha_cookie_invalid", reason=str(exc))
            return False
        matches = decoded == request_fingerprint(connection)
        if not matches:
            logger.info("recaptcha_cookie_fingerprint_mismatch")
        return matches

    def has_verification_cookie(self, connection: HTTPConnection) -> bool:
        """Return ``True`` when any cookie with the configured name is present."""

        return self._codec.is_present(connection)

    def display_recaptcha(self, connection: HTTPConnection) -> bool:
        """Return ``True`` when the challenge widget should be rendered."""

        return not self.has_verification_cookie(connection)

    async def evaluate(self, connection: HTTPConnection) -> GateDecision:
        """Run the gate for ``connection``.

        Raises :class:`VerificationDenied` when the challenge fails,
        :class:`~.errors.VerificationUnavailable` when the verification service
        cannot be reached and :class:`~.errors.EncodingError` when a new cookie
        cannot be sealed.
        """

        verified_by: VerifiedBy = "cookie"
        if not self.validate_cookie(connection):
            challenge = connection.query_params.get(self._challenge_param)
            if not await self._verifier.verify(challenge, client_host(connection)):
                logger.info("recaptcha_challenge_denied", has_challenge=bool(challenge))
                raise VerificationDenied()
            verified_by = "challenge"
            logger.info("recaptcha_challenge_passed")

        fingerprint = request_fingerprint(connection)
        cookie = self._codec.seal(fingerprint)
        return GateDecision(fingerprint=fingerprint, cookie=cookie, verified_by=verified_by)


__all__ = ["ChallengeVerifier", "GateDecision", "RecaptchaGate", "VerifiedBy"]
