"""FastAPI application factory for the reCAPTCHA gate service."""
from __future__ import annotations

import time
from typing import Callable

from fastapi import FastAPI

from .captcha import CaptchaVerifier
from .config import Settings
from .cookies import FingerprintCookieCodec
from .dependencies import load_settings
from .gate import ChallengeVerifier, RecaptchaGate
from .logging import get_logger, setup_logging
from .middleware import RecaptchaMiddleware
from .routes import recaptcha, system

logger = get_logger(__name__)


def build_gate(
    settings: Settings,
    *,
    verifier: ChallengeVerifier | None = None,
    clock: Callable[[], float] = time.time,
) -> RecaptchaGate:
    """Wire the cookie codec and the verifier described by ``settings``."""

    codec = FingerprintCookieCodec.from_settings(settings.recaptcha_cookie, clock=clock)
    if verifier is None:
        verifier = CaptchaVerifier.from_settings(settings.recaptcha)
        if not settings.recaptcha.configured:
            logger.warning(
                "recaptcha_verifier_disabled",
                detail="RECAPTCHA__PRIVATE_KEY is not set; every challenge will be denied",
            )
    return RecaptchaGate(
        codec=codec,
        verifier=verifier,
        challenge_param=settings.recaptcha.challenge_param,
    )


def create_app(
    settings: Settings | None = None,
    *,
    verifier: ChallengeVerifier | None = None,
    clock: Callable[[], float] = time.time,
) -> FastAPI:
    """Create and configure the FastAPI application instance.

    Parameters
    ----------
    settings:
        Configuration to build the application from. Defaults to the settings
        loaded from the environment.
    verifier:
        Replacement for the HTTP verification client, used by tests.
    clock:
        Time source for cookie issuance and expiry checks.
    """

    if settings is None:
        settings = load_settings()
    setup_logging(level=settings.log_level)

    gate = build_gate(settings, verifier=verifier, clock=clock)

    app = FastAPI(title="reCAPTCHA Gate", version="1.0")
    app.state.settings = settings
    app.state.gate = gate
    app.add_middleware(
        RecaptchaMiddleware,
        gate=gate,
        protected_prefixes=settings.gate.protected_prefixes,
        exempt_paths=settings.gate.exempt_paths,
    )

    app.include_router(system.router)
    app.include_router(recaptcha.router)

    return app


__all__ = ["build_gate", "create_app"]
