"""Shared constants and fakes for the gate test-suite."""
from __future__ import annotations

from http.cookies import Morsel, SimpleCookie

import httpx

HASH_KEY = bytes(range(64))
BLOCK_KEY = b"\x02" * 32
COOKIE_NAME = "reCAPTCHA"
CLIENT_ADDRESS = ("203.0.113.5", 54321)
USER_AGENT = "TestAgent/1.0"
START_TIME = 1_700_000_000.0


class FakeClock:
    """Controllable time source."""

    def __init__(self, now: float = START_TIME) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeVerifier:
    """Stands in for the external verification service."""

    def __init__(self, *, result: bool = True, error: Exception | None = None) -> None:
        self.result = result
        self.error = error
        self.calls: list[tuple[str | None, str | None]] = []

    async def verify(self, token: str | None, remote_ip: str | None = None) -> bool:
        self.calls.append((token, remote_ip))
        if self.error is not None:
            raise self.error
        return self.result


def set_cookie_morsel(response: httpx.Response, name: str = COOKIE_NAME) -> Morsel | None:
    """Return the parsed ``Set-Cookie`` entry for ``name`` or ``None``."""

    for header in response.headers.get_list("set-cookie"):
        parsed: SimpleCookie = SimpleCookie()
        parsed.load(header)
        if name in parsed:
            return parsed[name]
    return None


def cookie_header(value: str, name: str = COOKIE_NAME) -> dict[str, str]:
    return {"cookie": f"{name}={value}"}
