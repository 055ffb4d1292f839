"""
HOTP (HMAC-based One-Time Password) implementation following RFC 4226.

Only the SHA-1, 6-digit variant used by authenticator apps is supported.
"""

import hashlib
import hmac
import logging
import struct
from typing import Optional, Union

from core.secret import decode_secret

logger = logging.getLogger(__name__)

DIGITS = 6
MAX_MOVING_FACTOR = 2**64 - 1


def moving_factor(value: int) -> bytes:
    """
    Serialise a counter as the 8-byte big-endian HOTP message.

    Raises:
        ValueError: If ``value`` does not fit an unsigned 64-bit integer.
    """
    if not 0 <= value <= MAX_MOVING_FACTOR:
        raise ValueError(f"Moving factor out of range: {value}")
    return struct.pack(">Q", value)


def derive_code(secret: str, factor: Union[int, bytes]) -> str:
    """
    Derive the 6-digit code for ``secret`` at ``factor`` (RFC 4226 §5.3).

    Args:
        secret: Base32 secret (whitespace is ignored).
        factor: Counter / time step as an ``int``, or an already packed
                8-byte big-endian value.

    Returns:
        Zero-padded 6-digit OTP string.

    Raises:
        InvalidSecretEncoding: If ``secret`` is not valid base32.
        ValueError:            If ``factor`` is out of range or not 8 bytes.
    """
    if isinstance(factor, (bytes, bytearray)):
        if len(factor) != 8:
            raise ValueError(f"Moving factor must be 8 bytes, got {len(factor)}")
        msg = bytes(factor)
    else:
        msg = moving_factor(factor)

    key = decode_secret(secret)
    digest = hmac.new(key, msg, hashlib.sha1).digest()

    # Dynamic truncation
    offset = digest[-1] & 0x0F
    (code,) = struct.unpack(">I", digest[offset : offset + 4])
    code &= 0x7FFFFFFF
    return str(code % 10**DIGITS).zfill(DIGITS)


def codes_match(candidate: str, expected: str) -> bool:
    """Compare two codes in constant time."""
    return hmac.compare_digest(candidate.encode(), expected.encode())


def verify_counter_based(
    secret: str,
    code: str,
    counter: int,
    window: int,
) -> Optional[int]:
    """
    Look for ``code`` among the ``window`` counters following ``counter``.

    ``counter`` itself is never tried: it is the last accepted value, and
    accepting it again would allow a replay.

    Args:
        secret:  Base32 secret.
        code:    User-supplied code; surrounding whitespace is ignored,
                 otherwise the digits must match exactly.
        counter: Last accepted counter value.
        window:  Number of counters to search ahead (>= 1).

    Returns:
        The matching counter (to be stored as the new last accepted value),
        or None if no counter in the window matches.

    Raises:
        InvalidSecretEncoding: If ``secret`` is not valid base32.
        ValueError:            If ``window`` < 1.
    """
    if window < 1:
        raise ValueError("Verification window must be at least 1.")

    code = code.strip()
    matched: Optional[int] = None
    # Every counter is evaluated so the run time does not reveal the match.
    for value in range(counter + 1, counter + window + 1):
        if codes_match(code, derive_code(secret, value)) and matched is None:
            matched = value

    if matched is None:
        logger.debug("HOTP verification failed (counter=%d, window=%d)", counter, window)
    else:
        logger.debug("HOTP verification matched counter %d", matched)
    return matched
