"""Routes for front-ends integrating with the verification gate."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request

from ..config import Settings
from ..dependencies import get_gate, get_gate_decision, get_settings
from ..gate import GateDecision, RecaptchaGate
from ..schemas import RecaptchaSessionResponse, RecaptchaStatusResponse


router = APIRouter(prefix="/recaptcha", tags=["recaptcha"])


@router.get("/status", response_model=RecaptchaStatusResponse, response_model_by_alias=True)
def get_recaptcha_status(
    request: Request,
    gate: RecaptchaGate = Depends(get_gate),
    settings: Settings = Depends(get_settings),
) -> RecaptchaStatusResponse:
    """Tell the front-end whether it has to render the challenge widget.

    Only the presence of the cookie is checked; whether it is still valid is
    decided by the gate on the next protected request.
    """

    return RecaptchaStatusResponse(
        display=gate.display_recaptcha(request),
        site_key=settings.recaptcha.site_key,
        cookie_name=gate.cookie_name,
    )


@router.get("/session", response_model=RecaptchaSessionResponse, response_model_by_alias=True)
def get_recaptcha_session(
    decision: GateDecision = Depends(get_gate_decision),
) -> RecaptchaSessionResponse:
    """Describe the verification that let this request through."""

    return RecaptchaSessionResponse(
        verified_by=decision.verified_by,
        expires_at=decision.cookie.expires,
        cookie=decision.cookie_value,
    )
