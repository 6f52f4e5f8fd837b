#!/usr/bin/env python3
"""Print fresh key material for the verification cookie."""

from __future__ import annotations

import argparse

from backend.gate.app.crypto import generate_key


def render_env(*, hash_key: bytes, block_key: bytes) -> str:
    """Return ``.env`` lines configuring the cookie keys."""

    return "\n".join(
        [
            f"RECAPTCHA_COOKIE__HASH_KEY_HEX={hash_key.hex()}",
            f"RECAPTCHA_COOKIE__BLOCK_KEY_HEX={block_key.hex()}",
        ]
    )


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Generate signing and encryption keys for the reCAPTCHA cookie"
    )
    parser.add_argument(
        "--hash-key-bytes",
        type=int,
        default=64,
        choices=range(32, 65),
        metavar="{32..64}",
        help="Length of the HMAC signing key in bytes (default: 64)",
    )
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> None:
    args = _parse_args(argv)
    print(render_env(hash_key=generate_key(args.hash_key_bytes), block_key=generate_key(32)))


if __name__ == "__main__":  # pragma: no cover - CLI entry point
    main()
