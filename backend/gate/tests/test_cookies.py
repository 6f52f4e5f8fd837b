from datetime import datetime, timedelta, timezone

import pytest

from backend.gate.app.config import RecaptchaCookieSettings
from backend.gate.app.cookies import FingerprintCookieCodec, MAX_COOKIE_VALUE_LENGTH
from backend.gate.app.errors import DecodingError, EncodingError

from support import BLOCK_KEY, COOKIE_NAME, HASH_KEY, START_TIME


def test_seal_open_round_trip(codec):
    cookie = codec.seal("203.0.113.5TestAgent/1.0")

    assert cookie.value != "203.0.113.5TestAgent/1.0"
    assert codec.open(cookie.value) == "203.0.113.5TestAgent/1.0"


@pytest.mark.parametrize("fingerprint", ["", "::1curl/8.0", "10.0.0.1Mozilla/5.0 (X11; Linux) ünïcødé"])
def test_round_trip_preserves_value(codec, fingerprint):
    assert codec.open(codec.seal(fingerprint).value) == fingerprint


def test_seal_uses_fresh_nonce(codec):
    first = codec.seal("fingerprint").value
    second = codec.seal("fingerprint").value

    assert first != second


def test_sealed_cookie_fields(codec):
    cookie = codec.seal("fingerprint")

    assert cookie.name == COOKIE_NAME
    assert cookie.path == "/"
    assert cookie.http_only is True
    assert cookie.max_age_seconds == 86_400
    issued = datetime.fromtimestamp(START_TIME, tz=timezone.utc)
    assert cookie.expires == issued + timedelta(hours=24)


def test_every_flipped_character_is_rejected(codec):
    value = codec.seal("203.0.113.5TestAgent/1.0").value

    for index in range(len(value)):
        flipped = chr(ord(value[index]) ^ 0x01)
        tampered = value[:index] + flipped + value[index + 1 :]
        with pytest.raises(DecodingError):
            codec.open(tampered)


def test_truncated_and_extended_values_are_rejected(codec):
    value = codec.seal("fingerprint").value

    with pytest.raises(DecodingError):
        codec.open(value[:-4])
    with pytest.raises(DecodingError):
        codec.open(value + "AAAA")


@pytest.mark.parametrize("value", ["", "not-a-token", "!!!!", "a" * (MAX_COOKIE_VALUE_LENGTH + 1)])
def test_malformed_values_are_rejected(codec, value):
    with pytest.raises(DecodingError):
        codec.open(value)


def test_wrong_keys_are_rejected(codec, clock):
    value = codec.seal("fingerprint").value
    other_hash = FingerprintCookieCodec(
        name=COOKIE_NAME, hash_key=b"\x09" * 64, block_key=BLOCK_KEY, clock=clock
    )
    other_block = FingerprintCookieCodec(
        name=COOKIE_NAME, hash_key=HASH_KEY, block_key=b"\x09" * 32, clock=clock
    )

    with pytest.raises(DecodingError):
        other_hash.open(value)
    with pytest.raises(DecodingError):
        other_block.open(value)


def test_same_keys_open_after_restart(codec, clock):
    value = codec.seal("fingerprint").value
    restarted = FingerprintCookieCodec(
        name=COOKIE_NAME, hash_key=HASH_KEY, block_key=BLOCK_KEY, clock=clock
    )

    assert restarted.open(value) == "fingerprint"


def test_token_is_bound_to_cookie_name(codec, clock):
    value = codec.seal("fingerprint").value
    renamed = FingerprintCookieCodec(
        name="other", hash_key=HASH_KEY, block_key=BLOCK_KEY, clock=clock
    )

    with pytest.raises(DecodingError):
        renamed.open(value)


def test_expired_cookie_is_rejected(codec, clock):
    value = codec.seal("fingerprint").value

    clock.advance(86_400)
    assert codec.open(value) == "fingerprint"

    clock.advance(1)
    with pytest.raises(DecodingError, match="expired"):
        codec.open(value)


def test_cookie_from_the_future_is_rejected(codec, clock):
    value = codec.seal("fingerprint").value

    clock.advance(-61)
    with pytest.raises(DecodingError, match="future"):
        codec.open(value)


def test_seal_reads_the_clock_once(codec, clock):
    reads: list[float] = []

    def ticking() -> float:
        reads.append(START_TIME + 0.6 * (len(reads) + 1))
        return reads[-1]

    ticking_codec = FingerprintCookieCodec(
        name=COOKIE_NAME, hash_key=HASH_KEY, block_key=BLOCK_KEY, clock=ticking
    )
    cookie = ticking_codec.seal("fingerprint")

    assert len(reads) == 1
    issued = datetime.fromtimestamp(START_TIME, tz=timezone.utc)
    assert cookie.expires == issued + timedelta(hours=24)

    clock.advance(86_400)
    assert codec.open(cookie.value) == "fingerprint"
    clock.advance(1)
    with pytest.raises(DecodingError, match="expired"):
        codec.open(cookie.value)


def test_token_signed_with_other_salt_is_rejected(codec, clock):
    renamed = FingerprintCookieCodec(
        name="other", hash_key=HASH_KEY, block_key=BLOCK_KEY, clock=clock
    )

    with pytest.raises(DecodingError, match="signature"):
        codec.open(renamed.seal("fingerprint").value)


def test_oversized_value_raises_encoding_error(codec):
    with pytest.raises(EncodingError):
        codec.seal("x" * MAX_COOKIE_VALUE_LENGTH)


def test_unencodable_value_raises_encoding_error(codec):
    with pytest.raises(EncodingError):
        codec.seal("\ud800")


def test_read_requires_cookie(codec, make_request):
    with pytest.raises(DecodingError, match="missing"):
        codec.read(make_request())


def test_read_opens_request_cookie(codec, make_request):
    value = codec.seal("fingerprint").value

    assert codec.read(make_request(cookies={COOKIE_NAME: value})) == "fingerprint"


@pytest.mark.parametrize(
    "kwargs",
    [
        {"name": ""},
        {"hash_key": b"short"},
        {"block_key": b"\x01" * 16},
        {"max_age_seconds": 0},
    ],
)
def test_invalid_codec_arguments(kwargs):
    arguments = {"name": COOKIE_NAME, "hash_key": HASH_KEY, "block_key": BLOCK_KEY}
    arguments.update(kwargs)
    with pytest.raises(ValueError):
        FingerprintCookieCodec(**arguments)


def test_from_settings_uses_configured_keys(codec, clock):
    config = RecaptchaCookieSettings(hash_key_hex=HASH_KEY.hex(), block_key_hex=BLOCK_KEY.hex())
    configured = FingerprintCookieCodec.from_settings(config, clock=clock)

    assert configured.open(codec.seal("fingerprint").value) == "fingerprint"


def test_from_settings_generates_keys_when_missing(codec, clock):
    generated = FingerprintCookieCodec.from_settings(RecaptchaCookieSettings(), clock=clock)

    assert generated.open(generated.seal("fingerprint").value) == "fingerprint"
    with pytest.raises(DecodingError):
        generated.open(codec.seal("fingerprint").value)
