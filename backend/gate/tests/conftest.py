"""Common test fixtures for gate unit tests."""

from __future__ import annotations

from collections.abc import AsyncIterator, Callable
from typing import Any

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from starlette.requests import Request

from backend.gate.app.config import (
    GateSettings,
    RecaptchaCookieSettings,
    RecaptchaSettings,
    Settings,
)
from backend.gate.app.cookies import FingerprintCookieCodec
from backend.gate.app.gate import RecaptchaGate
from backend.gate.app.main import create_app

from support import (
    BLOCK_KEY,
    CLIENT_ADDRESS,
    COOKIE_NAME,
    HASH_KEY,
    USER_AGENT,
    FakeClock,
    FakeVerifier,
)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def verifier() -> FakeVerifier:
    return FakeVerifier()


@pytest.fixture
def codec(clock: FakeClock) -> FingerprintCookieCodec:
    return FingerprintCookieCodec(
        name=COOKIE_NAME,
        hash_key=HASH_KEY,
        block_key=BLOCK_KEY,
        clock=clock,
    )


@pytest.fixture
def gate(codec: FingerprintCookieCodec, verifier: FakeVerifier) -> RecaptchaGate:
    return RecaptchaGate(codec=codec, verifier=verifier)


@pytest.fixture
def settings() -> Settings:
    return Settings(
        env="test",
        log_level="DEBUG",
        recaptcha=RecaptchaSettings(private_key="test-secret", site_key="site-key"),
        recaptcha_cookie=RecaptchaCookieSettings(
            name=COOKIE_NAME,
            hash_key_hex=HASH_KEY.hex(),
            block_key_hex=BLOCK_KEY.hex(),
        ),
        gate=GateSettings(),
    )


@pytest.fixture
def make_request() -> Callable[..., Request]:
    """Build a bare Starlette request for gate level tests."""

    def factory(
        *,
        client: tuple[str, int] | None = CLIENT_ADDRESS,
        user_agent: str | None = USER_AGENT,
        cookies: dict[str, str] | None = None,
        query_string: str = "",
        path: str = "/",
    ) -> Request:
        headers: list[tuple[bytes, bytes]] = []
        if user_agent is not None:
            headers.append((b"user-agent", user_agent.encode("latin-1")))
        if cookies:
            cookie_header = "; ".join(f"{name}={value}" for name, value in cookies.items())
            headers.append((b"cookie", cookie_header.encode("latin-1")))
        scope: dict[str, Any] = {
            "type": "http",
            "method": "GET",
            "path": path,
            "query_string": query_string.encode("latin-1"),
            "headers": headers,
            "client": client,
        }
        return Request(scope)

    return factory


@pytest.fixture
def app(settings: Settings, verifier: FakeVerifier, clock: FakeClock):
    """Create a FastAPI test application with a fake verifier and clock."""

    application = create_app(settings, verifier=verifier, clock=clock)

    @application.get("/protected")
    async def protected() -> dict[str, str]:
        return {"detail": "ok"}

    return application


@pytest_asyncio.fixture
async def client(app) -> AsyncIterator[AsyncClient]:
    transport = ASGITransport(app=app, client=CLIENT_ADDRESS)
    async with AsyncClient(transport=transport, base_url="http://testserver") as http_client:
        yield http_client

