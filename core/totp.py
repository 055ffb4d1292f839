"""
TOTP (Time-based One-Time Password) implementation following RFC 6238.

Produces codes identical to Google Authenticator. Every function takes an
optional ``now`` (Unix seconds) so callers and tests control the clock.
"""

import logging
import time
from typing import Optional

from core.hotp import codes_match, derive_code

logger = logging.getLogger(__name__)

TIME_STEP = 30          # RFC 6238 step, fixed by the protocol
DEFAULT_WINDOW = 3


def _now(now: Optional[int]) -> int:
    return int(now) if now is not None else int(time.time())


def current_time_step(now: Optional[int] = None) -> int:
    """Return the TOTP moving factor ``floor(now / 30)``."""
    return _now(now) // TIME_STEP


def remaining_seconds(now: Optional[int] = None) -> int:
    """Return seconds until the current TOTP step expires (1..30)."""
    return TIME_STEP - (_now(now) % TIME_STEP)


def generate_totp(secret: str, now: Optional[int] = None) -> str:
    """
    Generate the TOTP code for the current time step.

    Args:
        secret: Base32 secret.
        now:    Override Unix timestamp (uses time.time() if None).

    Returns:
        Zero-padded 6-digit OTP string.
    """
    return derive_code(secret, current_time_step(now))


def verify_time_based(
    secret: str,
    code: str,
    window: int = DEFAULT_WINDOW,
    now: Optional[int] = None,
) -> Optional[int]:
    """
    Validate a TOTP code against the steps around the current one.

    The probed offsets run from ``-(window // 2)`` to
    ``window - window // 2 - 1`` inclusive, so ``window`` steps are tried in
    total: 3 gives -1..1, 4 gives -2..1.

    Args:
        secret: Base32 secret.
        code:   User-supplied code; surrounding whitespace is ignored,
                otherwise the digits must match exactly.
        window: Number of time steps to probe (>= 1).
        now:    Override Unix timestamp.

    Returns:
        The matching time step, or None if no step in the window matches.

    Raises:
        InvalidSecretEncoding: If ``secret`` is not valid base32.
        ValueError:            If ``window`` < 1.
    """
    if window < 1:
        raise ValueError("Verification window must be at least 1.")

    epoch = current_time_step(now)
    code = code.strip()
    matched: Optional[int] = None

    for offset in range(-(window // 2), window - window // 2):
        step = epoch + offset
        if step < 0:
            continue
        if codes_match(code, derive_code(secret, step)) and matched is None:
            matched = step

    if matched is None:
        logger.debug("TOTP verification failed (epoch=%d, window=%d)", epoch, window)
    else:
        logger.debug("TOTP verification matched step %d (offset %d)", matched, matched - epoch)
    return matched
