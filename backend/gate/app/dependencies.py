"""Common FastAPI dependency helpers."""
from __future__ import annotations

from functools import lru_cache

from fastapi import HTTPException, Request, status

from .config import Settings
from .gate import GateDecision, RecaptchaGate
from .middleware import STATE_KEY


@lru_cache(maxsize=1)
def load_settings() -> Settings:
    """Load settings from the environment once per process."""

    return Settings()


def get_settings(request: Request) -> Settings:
    """Return the settings the running application was built with."""

    return request.app.state.settings


def get_gate(request: Request) -> RecaptchaGate:
    """Return the verification gate shared by the application."""

    return request.app.state.gate


def get_gate_decision(request: Request) -> GateDecision:
    """Return the decision recorded by :class:`RecaptchaMiddleware` for this request."""

    decision = getattr(request.state, STATE_KEY, None)
    if not isinstance(decision, GateDecision):
        raise HTTPException(status.HTTP_403_FORBIDDEN, detail="CAPTCHA verification required")
    return decision


__all__ = ["get_gate", "get_gate_decision", "get_settings", "load_settings"]
