"""Client fingerprint derivation."""
from __future__ import annotations

from starlette.requests import HTTPConnection


def split_host_port(address: str | None) -> str:
    """Return the host portion of ``address``.

    ``"203.0.113.5:54321"`` and ``"[2001:db8::1]:443"`` lose their port. A bare
    host, including an unbracketed IPv6 address, is returned unchanged.
    """

    if not address:
        return ""
    cleaned = address.strip()
    if cleaned.startswith("["):
        end = cleaned.find("]")
        if end == -1:
            return cleaned
        return cleaned[1:end]
    if cleaned.count(":") == 1:
        host, _, port = cleaned.partition(":")
        if port.isdigit():
            return host
    return cleaned


def derive_fingerprint(address: str | None, user_agent: str | None) -> str:
    """Concatenate the peer host and the declared user agent.

    There is no separator between the two parts, so distinct pairs can collide
    (``"1.2.3.4" + "5x"`` and ``"1.2.3.45" + "x"``).
    """

    return split_host_port(address) + (user_agent or "")


def client_host(connection: HTTPConnection) -> str:
    """Return the transport peer host of ``connection`` without its port."""

    client = connection.client
    if client is None or not client.host:
        return ""
    return split_host_port(client.host)


def request_fingerprint(connection: HTTPConnection) -> str:
    """Fingerprint of the client behind ``connection``."""

    return derive_fingerprint(client_host(connection), connection.headers.get("user-agent"))


__all__ = ["client_host", "derive_fingerprint", "request_fingerprint", "split_host_port"]
