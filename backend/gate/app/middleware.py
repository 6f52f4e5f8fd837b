"""Starlette middleware chaining the verification gate into request handling."""
from __future__ import annotations

from collections.abc import Awaitable, Callable, Iterable

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, Response
from starlette.types import ASGIApp

from .errors import GateError
from .fingerprint import client_host
from .gate import RecaptchaGate
from .logging import bind_contextvars, clear_contextvars, get_logger

logger = get_logger(__name__)

STATE_KEY = "recaptcha"


def _matches_prefix(path: str, prefix: str) -> bool:
    if prefix == "/":
        return True
    trimmed = prefix.rstrip("/")
    return path == trimmed or path.startswith(f"{trimmed}/")


class RecaptchaMiddleware(BaseHTTPMiddleware):
    """Require a verification cookie or a passed challenge before ``call_next``."""

    def __init__(
        self,
        app: ASGIApp,
        *,
        gate: RecaptchaGate,
        protected_prefixes: Iterable[str] = ("/",),
        exempt_paths: Iterable[str] = (),
    ) -> None:
        super().__init__(app)
        self._gate = gate
        self._protected_prefixes = tuple(protected_prefixes)
        self._exempt_paths = frozenset(exempt_paths)

    def is_protected(self, path: str) -> bool:
        if path in self._exempt_paths:
            return False
        return any(_matches_prefix(path, prefix) for prefix in self._protected_prefixes)

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        if not self.is_protected(request.url.path):
            return await call_next(request)

        bind_contextvars(client_ip=client_host(request), path=request.url.path)
        try:
            try:
                decision = await self._gate.evaluate(request)
            except GateError as exc:
                logger.info(
                    "recaptcha_gate_rejected",
                    error=type(exc).__name__,
                    status_code=exc.status_code,
                )
                return JSONResponse({"detail": exc.detail}, status_code=exc.status_code)

            setattr(request.state, STATE_KEY, decision)
            response = await call_next(request)
            decision.cookie.apply(response)
            return response
        finally:
            clear_contextvars()


__all__ = ["RecaptchaMiddleware", "STATE_KEY"]
