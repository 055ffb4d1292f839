"""Tests for gauth.core.hotp and gauth.core.totp."""

import struct

import pytest
from cryptography.hazmat.primitives.hashes import SHA1
from cryptography.hazmat.primitives.twofactor.hotp import HOTP

from core.errors import InvalidSecretEncoding
from core.hotp import derive_code, moving_factor, verify_counter_based
from core.secret import decode_secret, generate_secret
from core.totp import (
    current_time_step,
    generate_totp,
    remaining_seconds,
    verify_time_based,
)


# ── RFC 4226 Appendix D test vectors ─────────────────────────────────────────
# Secret: "12345678901234567890" (base32 below)
RFC_SECRET = "GEZDGNBVGY3TQOJQGEZDGNBVGY3TQOJQ"
RFC_HOTP_EXPECTED = [
    "755224", "287082", "359152", "969429", "338314",
    "254676", "287922", "162583", "399871", "520489",
]


@pytest.mark.parametrize("counter,expected", enumerate(RFC_HOTP_EXPECTED))
def test_hotp_rfc4226_vectors(counter: int, expected: str) -> None:
    code = derive_code(RFC_SECRET, counter)
    assert code == expected, f"HOTP counter={counter}: got {code}, expected {expected}"


def test_rfc_secret_decodes_to_ascii_key() -> None:
    assert decode_secret(RFC_SECRET) == b"12345678901234567890"


def test_counter_one_scenario() -> None:
    assert derive_code("GEZDGNBVGY3TQOJQGEZDGNBVGY3TQOJQ", 1) == "287082"


# ── RFC 6238 TOTP test vectors (SHA-1, last six digits) ──────────────────────

_TOTP_VECTORS = [
    # (timestamp,  expected)
    (59,          "287082"),
    (1111111109,  "081804"),
    (1111111111,  "050471"),
    (1234567890,  "005924"),
    (2000000000,  "279037"),
    (20000000000, "353130"),
]


@pytest.mark.parametrize("ts,expected", _TOTP_VECTORS)
def test_totp_rfc6238_vectors(ts: int, expected: str) -> None:
    code = generate_totp(RFC_SECRET, now=ts)
    assert code == expected, f"TOTP ts={ts}: got {code}, expected {expected}"


# ── Derivation ────────────────────────────────────────────────────────────────

def test_derive_code_deterministic() -> None:
    secret = generate_secret()
    assert derive_code(secret, 123456) == derive_code(secret, 123456)


def test_derive_code_is_six_digits() -> None:
    secret = generate_secret()
    for counter in range(50):
        code = derive_code(secret, counter)
        assert len(code) == 6 and code.isdigit()


def test_derive_code_accepts_packed_factor() -> None:
    packed = struct.pack(">Q", 7)
    assert derive_code(RFC_SECRET, packed) == RFC_HOTP_EXPECTED[7]


def test_derive_code_rejects_short_packed_factor() -> None:
    with pytest.raises(ValueError):
        derive_code(RFC_SECRET, b"\x00\x01")


def test_derive_code_ignores_whitespace_in_secret() -> None:
    assert derive_code("AAAA BBBB", 42) == derive_code("AAAABBBB", 42)
    assert derive_code(" GEZD GNBV\tGY3T QOJQ GEZD GNBV GY3T QOJQ\n", 0) == "755224"


def test_derive_code_lowercase_secret() -> None:
    assert derive_code(RFC_SECRET.lower(), 3) == RFC_HOTP_EXPECTED[3]


@pytest.mark.parametrize("secret", ["GEZD!NBV", "GEZDGNB1", "", "   ", "A"])
def test_derive_code_invalid_secret_raises(secret: str) -> None:
    with pytest.raises(InvalidSecretEncoding):
        derive_code(secret, 0)


def test_invalid_secret_is_value_error() -> None:
    with pytest.raises(ValueError):
        derive_code("not base32", 0)


def test_matches_reference_hotp_implementation() -> None:
    """Cross-check against the cryptography package's HOTP."""
    for _ in range(5):
        secret = generate_secret(32)
        reference = HOTP(decode_secret(secret), 6, SHA1(), enforce_key_length=False)
        for counter in (0, 1, 2**31, 2**40 + 17, 2**64 - 1):
            assert derive_code(secret, counter) == reference.generate(counter).decode()


# ── Moving factor ─────────────────────────────────────────────────────────────

def test_moving_factor_is_eight_bytes_big_endian() -> None:
    assert moving_factor(1) == b"\x00\x00\x00\x00\x00\x00\x00\x01"
    assert moving_factor(0x0102030405060708) == bytes(range(1, 9))
    assert len(moving_factor(0)) == 8


@pytest.mark.parametrize("value", [-1, 2**64])
def test_moving_factor_out_of_range(value: int) -> None:
    with pytest.raises(ValueError):
        moving_factor(value)


# ── Time steps ────────────────────────────────────────────────────────────────

def test_current_time_step() -> None:
    assert current_time_step(0) == 0
    assert current_time_step(29) == 0
    assert current_time_step(30) == 1
    assert current_time_step(1111111109) == 37037036


def test_current_time_step_uses_clock() -> None:
    assert current_time_step() > 50_000_000


def test_remaining_seconds_range() -> None:
    rem = remaining_seconds()
    assert 0 < rem <= 30


def test_remaining_seconds_at_boundary() -> None:
    # At exactly t=0 (multiple of 30), remaining should be 30
    assert remaining_seconds(0) == 30

    # At t=29, remaining should be 1
    assert remaining_seconds(29) == 1
    assert remaining_seconds(31) == 29


# ── Verify TOTP ───────────────────────────────────────────────────────────────

def test_verify_time_based_current_step() -> None:
    secret = generate_secret()
    code = derive_code(secret, current_time_step())
    assert verify_time_based(secret, code, window=3) is not None


def test_verify_time_based_returns_matched_step() -> None:
    # now=159 → epoch 5
    assert verify_time_based(RFC_SECRET, "254676", window=3, now=159) == 5
    assert verify_time_based(RFC_SECRET, "338314", window=3, now=159) == 4
    assert verify_time_based(RFC_SECRET, "287922", window=3, now=159) == 6


def test_verify_time_based_outside_window() -> None:
    assert verify_time_based(RFC_SECRET, "969429", window=3, now=159) is None
    assert verify_time_based(RFC_SECRET, "162583", window=3, now=159) is None
    assert verify_time_based(RFC_SECRET, "520489", window=3, now=159) is None


def test_verify_time_based_even_window_favours_past() -> None:
    # window=4 → offsets -2..1
    assert verify_time_based(RFC_SECRET, "969429", window=4, now=159) == 3
    assert verify_time_based(RFC_SECRET, "287922", window=4, now=159) == 6
    assert verify_time_based(RFC_SECRET, "162583", window=4, now=159) is None


def test_verify_time_based_window_two() -> None:
    # window=2 → offsets -1..0
    assert verify_time_based(RFC_SECRET, "338314", window=2, now=159) == 4
    assert verify_time_based(RFC_SECRET, "287922", window=2, now=159) is None


def test_verify_time_based_window_one_is_current_step_only() -> None:
    assert verify_time_based(RFC_SECRET, "254676", window=1, now=159) == 5
    assert verify_time_based(RFC_SECRET, "338314", window=1, now=159) is None


def test_verify_time_based_skips_negative_steps() -> None:
    # epoch 0: offset -1 would be step -1
    assert verify_time_based(RFC_SECRET, "755224", window=3, now=10) == 0
    assert verify_time_based(RFC_SECRET, "287082", window=3, now=10) == 1


def test_verify_time_based_strips_code() -> None:
    assert verify_time_based(RFC_SECRET, " 254676\n", window=3, now=159) == 5


def test_verify_time_based_invalid_window() -> None:
    with pytest.raises(ValueError):
        verify_time_based(RFC_SECRET, "254676", window=0, now=159)


def test_verify_time_based_invalid_secret_is_not_not_found() -> None:
    with pytest.raises(InvalidSecretEncoding):
        verify_time_based("bad secret 1", "000000", window=3, now=159)


# ── Verify HOTP ───────────────────────────────────────────────────────────────

def test_verify_counter_based_next_counter() -> None:
    assert verify_counter_based(RFC_SECRET, "287082", counter=0, window=1) == 1


def test_verify_counter_based_look_ahead() -> None:
    # Token for counter=5 with counter at 0 → look-ahead to 5
    assert verify_counter_based(RFC_SECRET, "254676", counter=0, window=5) == 5
    assert verify_counter_based(RFC_SECRET, "254676", counter=0, window=4) is None


def test_verify_counter_based_rejects_replay() -> None:
    for counter, code in enumerate(RFC_HOTP_EXPECTED):
        assert verify_counter_based(RFC_SECRET, code, counter=counter, window=3) is None


def test_verify_counter_based_strips_code() -> None:
    assert verify_counter_based(RFC_SECRET, "\t287082 ", counter=0, window=1) == 1
    assert verify_counter_based(RFC_SECRET, "287 082", counter=0, window=1) is None


def test_verify_counter_based_invalid() -> None:
    assert verify_counter_based(RFC_SECRET, "000000", counter=0, window=5) is None


def test_verify_counter_based_invalid_window() -> None:
    with pytest.raises(ValueError):
        verify_counter_based(RFC_SECRET, "287082", counter=0, window=0)
