"""
Shared-secret helpers: generation and base32 presentation.

Secrets are handled as base32 strings everywhere outside this module; only
:func:`decode_secret` turns them into the raw bytes used as the HMAC key.
"""

import base64
import binascii
import hashlib
import logging
import re
import secrets

from core.errors import InvalidSecretEncoding, RandomnessUnavailable

logger = logging.getLogger(__name__)

# ── Constants ────────────────────────────────────────────────────────────────

SECRET_LENGTH = 16      # base32 characters handed out by generate_secret()
ENTROPY_SIZE = 8192     # bytes read from the OS per block
HASH_ROUNDS = 6         # extra SHA-512 rounds over the first digest

_BASE32_RE = re.compile(r"[A-Z2-7]+=*")

# Unpadded base32 lengths that can occur (len % 8); 1, 3 and 6 cannot.
_VALID_REMAINDERS = (0, 2, 4, 5, 7)


# ── Generation ───────────────────────────────────────────────────────────────

def _random_block() -> bytes:
    """
    Return one 64-byte block of stretched randomness.

    ``ENTROPY_SIZE`` bytes from the OS CSPRNG are hashed with SHA-512 and the
    digest is re-hashed ``HASH_ROUNDS`` times.

    Raises:
        RandomnessUnavailable: If the OS entropy source cannot be read.
    """
    try:
        seed = secrets.token_bytes(ENTROPY_SIZE)
    except (NotImplementedError, OSError) as exc:
        logger.error("OS entropy source unavailable: %s", exc)
        raise RandomnessUnavailable(
            f"Cannot read the operating system entropy source: {exc}"
        ) from exc

    digest = hashlib.sha512(seed).digest()
    for _ in range(HASH_ROUNDS):
        digest = hashlib.sha512(digest).digest()
    return digest


def generate_secret(length: int = SECRET_LENGTH) -> str:
    """
    Generate a fresh base32 secret.

    Args:
        length: Number of base32 characters to return (default 16, i.e.
                80 bits).

    Returns:
        Uppercase base32 string without padding.

    Raises:
        ValueError:            If ``length`` is not positive.
        RandomnessUnavailable: If the OS entropy source cannot be read.
    """
    if length < 1:
        raise ValueError("Secret length must be at least 1.")

    text = ""
    while len(text) < length:
        text += encode_secret(_random_block())
    logger.debug("Generated %d-character secret", length)
    return text[:length]


# ── Base32 ────────────────────────────────────────────────────────────────────

def normalize_secret(secret: str) -> str:
    """
    Normalise a base32 secret: strip whitespace, uppercase, add padding.

    Lowercase input is accepted on purpose and folded to uppercase.

    Args:
        secret: Raw user-supplied secret string, e.g. ``"gezd gnbv"``.

    Returns:
        Uppercase base32 string padded to a multiple of 8 characters.

    Raises:
        InvalidSecretEncoding: If the string is empty, contains characters
            outside the base32 alphabet, or has an impossible length.
    """
    secret = "".join(secret.split()).upper()
    if not secret:
        raise InvalidSecretEncoding("Secret is empty.")
    if not _BASE32_RE.fullmatch(secret):
        raise InvalidSecretEncoding("Secret contains invalid base32 characters.")

    body = secret.rstrip("=")
    if len(body) % 8 not in _VALID_REMAINDERS:
        raise InvalidSecretEncoding(
            f"Secret has an invalid base32 length ({len(body)} characters)."
        )
    return body + "=" * ((8 - len(body) % 8) % 8)


def decode_secret(secret: str) -> bytes:
    """
    Decode a base32-encoded secret string to raw bytes.

    Args:
        secret: Base32 secret; whitespace anywhere in it is ignored.

    Returns:
        Raw key bytes.

    Raises:
        InvalidSecretEncoding: On anything that is not valid base32.
    """
    normalized = normalize_secret(secret)
    try:
        return base64.b32decode(normalized)
    except binascii.Error as exc:
        raise InvalidSecretEncoding(f"Invalid base32 secret: {exc}") from exc


def encode_secret(raw: bytes) -> str:
    """Encode raw bytes as a base32 string (no padding)."""
    return base64.b32encode(raw).decode("ascii").rstrip("=")
