"""Client for the external CAPTCHA verification service."""
from __future__ import annotations

from typing import Any

import httpx

from .config import RecaptchaSettings
from .errors import VerificationUnavailable
from .logging import get_logger


logger = get_logger(__name__)


class CaptchaVerifier:
    """Verify CAPTCHA tokens against a remote verification endpoint."""

    def __init__(
        self,
        *,
        secret_key: str | None,
        verification_url: str,
        timeout_seconds: float,
        site_key: str | None = None,
        test_bypass_token: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._secret_key = (secret_key or "").strip()
        self._verification_url = verification_url
        self._timeout_seconds = timeout_seconds
        self._site_key = site_key
        self._test_bypass_token = (test_bypass_token or "").strip() or None
        self._transport = transport

    @classmethod
    def from_settings(
        cls,
        config: RecaptchaSettings,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> "CaptchaVerifier":
        return cls(
            secret_key=config.private_key,
            verification_url=config.verification_url,
            timeout_seconds=config.timeout_seconds,
            site_key=config.site_key,
            test_bypass_token=config.test_bypass_token,
            transport=transport,
        )

    @property
    def enabled(self) -> bool:
        """Return ``True`` when the verifier has the required credentials."""

        return bool(self._secret_key)

    @property
    def site_key(self) -> str | None:
        return self._site_key

    async def verify(self, token: str | None, remote_ip: str | None = None) -> bool:
        """Validate ``token`` with the configured CAPTCHA provider.

        Returns ``False`` when the provider rejects the token and raises
        :class:`VerificationUnavailable` when the provider cannot be asked.
        """

        if not self.enabled:
            logger.debug("captcha_verifier_disabled")
            return False

        if token is None:
            return False

        cleaned_token = token.strip()
        if not cleaned_token:
            return False

        if self._test_bypass_token and cleaned_token == self._test_bypass_token:
            logger.debug("captcha_bypass_token_matched")
            return True

        payload: dict[str, Any] = {
            "secret": self._secret_key,
            "response": cleaned_token,
        }
        if remote_ip:
            payload["remoteip"] = remote_ip

        try:
            async with httpx.AsyncClient(
                timeout=self._timeout_seconds, transport=self._transport
            ) as client:
                response = await client.post(self._verification_url, data=payload)
            response.raise_for_status()
        except httpx.TimeoutException as exc:
            logger.warning("captcha_verification_timeout", timeout_seconds=self._timeout_seconds)
            raise VerificationUnavailable("CAPTCHA verification timed out") from exc
        except httpx.HTTPError as exc:
            logger.warning("captcha_verification_request_failed", error=str(exc))
            raise VerificationUnavailable() from exc

        try:
            body = response.json()
        except ValueError as exc:
            logger.warning("captcha_verification_invalid_response")
            raise VerificationUnavailable("CAPTCHA verification returned an invalid response") from exc
        if not isinstance(body, dict):
            logger.warning("captcha_verification_invalid_response")
            raise VerificationUnavailable("CAPTCHA verification returned an invalid response")

        success = body.get("success") is True
        if not success:
            logger.info("captcha_verification_rejected", errors=body.get("error-codes", []))
        return success


__all__ = ["CaptchaVerifier"]
