"""Centralized configuration for the reCAPTCHA gate service."""
from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


_GATE_DIR = Path(__file__).resolve().parents[1]
_ROOT_DIR = _GATE_DIR.parents[1]
_DEFAULT_ENV_FILES: tuple[Path, ...] = (
    _ROOT_DIR / ".env",
    _GATE_DIR / ".env",
)

DEFAULT_VERIFICATION_URL = "https://www.google.com/recaptcha/api/siteverify"

_BLOCK_KEY_SIZE = 32
_HASH_KEY_MIN_SIZE = 32
_HASH_KEY_MAX_SIZE = 64


def _decode_hex_key(value: str | None, *, label: str) -> str | None:
    if value is None:
        return None
    cleaned = value.strip()
    if not cleaned:
        return None
    try:
        bytes.fromhex(cleaned)
    except ValueError as exc:
        raise ValueError(f"{label} must be a valid hex string") from exc
    return cleaned.lower()


class RecaptchaSettings(BaseModel):
    """Credentials and endpoint of the external verification service."""

    private_key: str | None = Field(
        default=None,
        description="Secret used to authenticate with the verification service.",
    )
    site_key: str | None = Field(
        default=None,
        description="Public key handed to the front-end widget.",
    )
    verification_url: str = DEFAULT_VERIFICATION_URL
    timeout_seconds: float = Field(default=5.0, gt=0, le=60)
    challenge_param: str = Field(default="c", min_length=1)
    test_bypass_token: str | None = None

    model_config = ConfigDict(frozen=True)

    @field_validator("private_key", "site_key", "test_bypass_token", mode="before")
    @classmethod
    def _normalise_optional(cls, value: str | None) -> str | None:
        if value is None:
            return None
        cleaned = str(value).strip()
        return cleaned or None

    @field_validator("verification_url", mode="before")
    @classmethod
    def _ensure_url(cls, value: str | None) -> str:
        if value is None:
            return DEFAULT_VERIFICATION_URL
        url = str(value).strip()
        if not url:
            raise ValueError("RECAPTCHA__VERIFICATION_URL must be a non-empty string")
        return url

    @property
    def configured(self) -> bool:
        """Return ``True`` when challenge verification can be performed."""

        return bool(self.private_key)


class RecaptchaCookieSettings(BaseModel):
    """Verification cookie name, lifetime and key material."""

    name: str = Field(default="reCAPTCHA", min_length=1)
    hash_key_hex: str | None = Field(
        default=None,
        description="Hex encoded HMAC key (32 to 64 bytes) used to sign cookies.",
    )
    block_key_hex: str | None = Field(
        default=None,
        description="Hex encoded AES-256 key (32 bytes) used to encrypt cookies.",
    )
    max_age_seconds: int = Field(default=86_400, ge=60)
    secure: bool = False
    same_site: Literal["lax", "strict", "none"] = "lax"

    model_config = ConfigDict(frozen=True)

    @field_validator("name", mode="before")
    @classmethod
    def _normalise_name(cls, value: str) -> str:
        cleaned = str(value).strip()
        if not cleaned:
            raise ValueError("RECAPTCHA_COOKIE__NAME must be a non-empty string")
        if any(char in cleaned for char in ' ;,="\\'):
            raise ValueError("RECAPTCHA_COOKIE__NAME contains characters not allowed in a cookie name")
        return cleaned

    @field_validator("hash_key_hex", mode="before")
    @classmethod
    def _validate_hash_key(cls, value: str | None) -> str | None:
        cleaned = _decode_hex_key(value, label="RECAPTCHA_COOKIE__HASH_KEY_HEX")
        if cleaned is None:
            return None
        size = len(bytes.fromhex(cleaned))
        if not _HASH_KEY_MIN_SIZE <= size <= _HASH_KEY_MAX_SIZE:
            raise ValueError(
                "RECAPTCHA_COOKIE__HASH_KEY_HEX must decode to between 32 and 64 bytes"
            )
        return cleaned

    @field_validator("block_key_hex", mode="before")
    @classmethod
    def _validate_block_key(cls, value: str | None) -> str | None:
        cleaned = _decode_hex_key(value, label="RECAPTCHA_COOKIE__BLOCK_KEY_HEX")
        if cleaned is None:
            return None
        if len(bytes.fromhex(cleaned)) != _BLOCK_KEY_SIZE:
            raise ValueError("RECAPTCHA_COOKIE__BLOCK_KEY_HEX must decode to exactly 32 bytes")
        return cleaned

    @property
    def hash_key(self) -> bytes | None:
        return bytes.fromhex(self.hash_key_hex) if self.hash_key_hex else None

    @property
    def block_key(self) -> bytes | None:
        return bytes.fromhex(self.block_key_hex) if self.block_key_hex else None

    @property
    def has_key_material(self) -> bool:
        return self.hash_key_hex is not None and self.block_key_hex is not None


class GateSettings(BaseModel):
    """Which request paths the verification gate applies to."""

    protected_prefixes: tuple[str, ...] = ("/",)
    exempt_paths: tuple[str, ...] = (
        "/system/health",
        "/recaptcha/status",
        "/docs",
        "/docs/oauth2-redirect",
        "/redoc",
        "/openapi.json",
    )

    model_config = ConfigDict(frozen=True)

    @field_validator("protected_prefixes", "exempt_paths", mode="before")
    @classmethod
    def _normalise_paths(cls, value: Any) -> tuple[str, ...]:
        if value is None:
            return ()
        if isinstance(value, str):
            candidates = value.replace(",", " ").split()
        else:
            candidates = [str(item) for item in value]
        cleaned: list[str] = []
        seen: set[str] = set()
        for candidate in candidates:
            path = candidate.strip()
            if not path:
                continue
            if not path.startswith("/"):
                path = f"/{path}"
            if path in seen:
                continue
            seen.add(path)
            cleaned.append(path)
        return tuple(cleaned)


_JSON_SECTION_KEYS = {
    "Recaptcha": "recaptcha",
    "RecaptchaCookie": "recaptcha_cookie",
    "Gate": "gate",
}

_JSON_FIELD_KEYS = {
    "PrivateKey": "private_key",
    "SiteKey": "site_key",
    "VerificationUrl": "verification_url",
    "TimeoutSeconds": "timeout_seconds",
    "ChallengeParam": "challenge_param",
    "Name": "name",
    "HashKey": "hash_key_hex",
    "BlockKey": "block_key_hex",
    "MaxAgeSeconds": "max_age_seconds",
    "Secure": "secure",
    "SameSite": "same_site",
    "ProtectedPrefixes": "protected_prefixes",
    "ExemptPaths": "exempt_paths",
}


def _translate_json_config(payload: dict[str, Any]) -> dict[str, Any]:
    translated: dict[str, Any] = {}
    for key, value in payload.items():
        section = _JSON_SECTION_KEYS.get(key, key)
        if isinstance(value, dict):
            translated[section] = {
                _JSON_FIELD_KEYS.get(field, field): item for field, item in value.items()
            }
        else:
            translated[section] = value
    return translated


class Settings(BaseSettings):
    """Top level gate configuration, immutable once loaded."""

    env: str = "dev"
    log_level: str = "INFO"
    recaptcha: RecaptchaSettings = Field(default_factory=RecaptchaSettings)
    recaptcha_cookie: RecaptchaCookieSettings = Field(default_factory=RecaptchaCookieSettings)
    gate: GateSettings = Field(default_factory=GateSettings)

    model_config = SettingsConfigDict(
        env_file=_DEFAULT_ENV_FILES,
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        extra="ignore",
        frozen=True,
    )

    @classmethod
    def from_json_file(cls, path: str | Path) -> "Settings":
        """Load settings from a JSON document.

        Both the snake_case layout of the environment variables and the
        ``{"Recaptcha": {"PrivateKey": ...}, "RecaptchaCookie": {"Name": ...}}``
        layout are accepted. Values in the file take precedence over the
        environment.
        """

        with Path(path).open(encoding="utf-8") as handle:
            payload = json.load(handle)
        if not isinstance(payload, dict):
            raise ValueError("Configuration file must contain a JSON object")
        return cls(**_translate_json_config(payload))


__all__ = [
    "DEFAULT_VERIFICATION_URL",
    "GateSettings",
    "RecaptchaCookieSettings",
    "RecaptchaSettings",
    "Settings",
]
