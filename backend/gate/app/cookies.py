"""Signed, encrypted cookie carrying the client fingerprint.

The fingerprint is encrypted with AES-256-GCM and the ciphertext is signed
and time-stamped by an itsdangerous ``URLSafeTimedSerializer``. The cookie
name is bound to the token twice: it is the AES-GCM associated data and the
serializer salt. A token minted for one cookie name therefore never opens
under another.
"""
from __future__ import annotations

import hashlib
import time
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Final, Literal

from cryptography.exceptions import InvalidTag
from itsdangerous import BadData, BadSignature, SignatureExpired, TimestampSigner, URLSafeTimedSerializer
from itsdangerous.encoding import base64_decode, base64_encode
from starlette.requests import HTTPConnection
from starlette.responses import Response

from . import crypto
from .config import RecaptchaCookieSettings
from .errors import DecodingError, EncodingError
from .logging import get_logger

logger = get_logger(__name__)

# Browsers drop cookies larger than this.
MAX_COOKIE_VALUE_LENGTH: Final[int] = 4096


class _ClockedSigner(TimestampSigner):
    """Timestamp signer that reads its time from an injectable clock."""

    def __init__(self, *args: Any, clock: Callable[[], float] = time.time, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self._clock = clock

    def get_timestamp(self) -> int:
        return int(self._clock())


def _is_canonical_signature(token: str) -> bool:
    # The trailing base64 character carries spare bits; reject re-spellings.
    signature = token.rpartition(".")[2]
    try:
        return base64_encode(base64_decode(signature)).decode("ascii") == signature
    except (BadData, ValueError):
        return False


@dataclass(frozen=True, slots=True)
class VerificationCookie:
    """Cookie record proving a successful human verification."""

    name: str
    value: str
    expires: datetime
    max_age_seconds: int
    path: str = "/"
    http_only: bool = True
    secure: bool = False
    same_site: Literal["lax", "strict", "none"] = "lax"

    def apply(self, response: Response) -> None:
        """Attach the cookie to ``response``."""

        response.set_cookie(
            key=self.name,
            value=self.value,
            max_age=self.max_age_seconds,
            expires=self.expires,
            path=self.path,
            secure=self.secure,
            httponly=self.http_only,
            samesite=self.same_site,
        )


class FingerprintCookieCodec:
    """Seal and open verification cookies with process-wide key material."""

    def __init__(
        self,
        *,
        name: str,
        hash_key: bytes,
        block_key: bytes,
        max_age_seconds: int = 86_400,
        secure: bool = False,
        same_site: Literal["lax", "strict", "none"] = "lax",
        clock: Callable[[], float] = time.time,
    ) -> None:
        if not name:
            raise ValueError("cookie name must not be empty")
        if len(hash_key) < 32:
            raise ValueError("hash_key must be at least 32 bytes")
        if len(block_key) != 32:
            raise ValueError("block_key must be exactly 32 bytes")
        if max_age_seconds < 1:
            raise ValueError("max_age_seconds must be at least 1")

        self._name = name
        self._hash_key = bytes(hash_key)
        self._block_key = bytes(block_key)
        self._max_age_seconds = max_age_seconds
        self._secure = secure
        self._same_site = same_site
        self._clock = clock

    @classmethod
    def from_settings(
        cls,
        config: RecaptchaCookieSettings,
        *,
        clock: Callable[[], float] = time.time,
    ) -> "FingerprintCookieCodec":
        """Build a codec from configuration, generating keys when none are set."""

        hash_key = config.hash_key
        block_key = config.block_key
        if not config.has_key_material:
            logger.warning(
                "recaptcha_cookie_keys_generated",
                detail="cookie keys not configured; issued cookies will not survive a restart",
            )
            hash_key = hash_key or crypto.generate_key(64)
            block_key = block_key or crypto.generate_key(32)
        return cls(
            name=config.name,
            hash_key=hash_key,
            block_key=block_key,
            max_age_seconds=config.max_age_seconds,
            secure=config.secure,
            same_site=config.same_site,
            clock=clock,
        )

    @property
    def name(self) -> str:
        return self._name

    @property
    def max_age_seconds(self) -> int:
        return self._max_age_seconds

    def _serializer(self, clock: Callable[[], float]) -> URLSafeTimedSerializer:
        return URLSafeTimedSerializer(
            self._hash_key,
            salt=self._name,
            signer=_ClockedSigner,
            signer_kwargs={"clock": clock, "digest_method": hashlib.sha256},
        )

    def encode(self, value: str, *, issued_at: float | None = None) -> str:
        """Return the sealed token for ``value``, stamped with ``issued_at``."""

        if issued_at is None:
            issued_at = self._clock()
        try:
            ciphertext = crypto.encrypt(
                value,
                key=self._block_key,
                associated_data=self._name.encode("utf-8"),
            )
        except (ValueError, TypeError, UnicodeEncodeError) as exc:
            raise EncodingError(f"Unable to encrypt cookie value: {exc}") from exc

        stamp = issued_at
        token = self._serializer(lambda: stamp).dumps(base64_encode(ciphertext).decode("ascii"))
        if len(token) > MAX_COOKIE_VALUE_LENGTH:
            raise EncodingError("Encoded cookie value exceeds the maximum cookie length")
        return token

    def decode(self, token: str) -> str:
        """Return the value sealed in ``token`` or raise :class:`DecodingError`."""

        if not token:
            raise DecodingError("Verification cookie is empty")
        if len(token) > MAX_COOKIE_VALUE_LENGTH:
            raise DecodingError("Verification cookie is too long")
        if not _is_canonical_signature(token):
            raise DecodingError("Verification cookie signature is malformed")

        try:
            payload = self._serializer(self._clock).loads(token, max_age=self._max_age_seconds)
        except SignatureExpired as exc:
            signed = exc.date_signed
            if signed is not None and signed.timestamp() > self._clock():
                raise DecodingError("Verification cookie was issued in the future") from exc
            raise DecodingError("Verification cookie has expired") from exc
        except BadSignature as exc:
            raise DecodingError("Verification cookie signature mismatch") from exc
        except BadData as exc:
            raise DecodingError("Verification cookie is malformed") from exc

        if not isinstance(payload, str):
            raise DecodingError("Verification cookie is malformed")
        try:
            plaintext = crypto.decrypt(
                base64_decode(payload),
                key=self._block_key,
                associated_data=self._name.encode("utf-8"),
            )
            return plaintext.decode("utf-8")
        except (BadData, InvalidTag, UnicodeDecodeError, ValueError) as exc:
            raise DecodingError("Verification cookie could not be decrypted") from exc

    def seal(self, fingerprint: str) -> VerificationCookie:
        """Build a fresh verification cookie carrying ``fingerprint``."""

        issued_at = int(self._clock())
        value = self.encode(fingerprint, issued_at=issued_at)
        issued = datetime.fromtimestamp(issued_at, tz=timezone.utc)
        return VerificationCookie(
            name=self._name,
            value=value,
            expires=issued + timedelta(seconds=self._max_age_seconds),
            max_age_seconds=self._max_age_seconds,
            secure=self._secure,
            same_site=self._same_site,
        )

    def open(self, value: str) -> str:
        """Return the fingerprint sealed in a cookie value."""

        return self.decode(value)

    def read(self, connection: HTTPConnection) -> str:
        """Read and open the verification cookie carried by ``connection``."""

        value = connection.cookies.get(self._name)
        if value is None:
            raise DecodingError("Verification cookie is missing")
        return self.open(value)

    def is_present(self, connection: HTTPConnection) -> bool:
        return self._name in connection.cookies


__all__ = ["FingerprintCookieCodec", "MAX_COOKIE_VALUE_LENGTH", "VerificationCookie"]
