"""
Build and parse otpauth:// provisioning URIs.

The builder emits the minimal form understood by Google Authenticator::

    otpauth://totp/alice@example.com?secret=JBSWY3DPEHPK3PXP

User and domain are inserted verbatim; callers that need reserved URI
characters in them must encode them first.

Reference: https://github.com/google/google-authenticator/wiki/Key-Uri-Format
"""

import urllib.parse
from dataclasses import dataclass

from core.secret import normalize_secret

BARCODE_BASE_URL = "https://www.google.com/chart?chs=200x200&chld=M|0&cht=qr&chl="


@dataclass
class OTPAuthURI:
    """Parsed representation of an otpauth:// URI."""

    otp_type: str   # "totp" or "hotp"
    user: str
    domain: str     # empty when the label has no "@"
    secret: str     # normalised base32 secret, padding stripped


def build_otpauth_uri(user: str, domain: str, secret: str) -> str:
    """Format ``otpauth://totp/{user}@{domain}?secret={secret}``."""
    return f"otpauth://totp/{user}@{domain}?secret={secret}"


def build_barcode_url(user: str, domain: str, secret: str) -> str:
    """
    Return a chart-service URL that renders the provisioning URI as a QR code.

    Nothing is fetched; the URL is meant to be opened by the user.
    """
    return BARCODE_BASE_URL + build_otpauth_uri(user, domain, secret)


def parse_otpauth_uri(uri: str) -> OTPAuthURI:
    """
    Parse and validate an ``otpauth://`` URI.

    Args:
        uri: Full otpauth URI string.

    Returns:
        Populated :class:`OTPAuthURI` dataclass.

    Raises:
        ValueError: If the URI is malformed or its secret is not base32
            (:class:`~core.errors.InvalidSecretEncoding` is a ValueError).
    """
    uri = uri.strip()

    parsed = urllib.parse.urlparse(uri)

    if parsed.scheme.lower() != "otpauth":
        raise ValueError(f"Expected 'otpauth' scheme, got '{parsed.scheme}'.")

    otp_type = parsed.netloc.lower()
    if otp_type not in ("totp", "hotp"):
        raise ValueError(f"Unknown OTP type '{otp_type}'. Expected totp or hotp.")

    label = urllib.parse.unquote(parsed.path.lstrip("/"))
    if not label:
        raise ValueError("Missing label in otpauth URI.")

    # "user@domain"; the domain never contains "@", the user might
    if "@" in label:
        user, domain = label.rsplit("@", 1)
    else:
        user, domain = label, ""

    params = dict(urllib.parse.parse_qsl(parsed.query))
    raw_secret = params.get("secret", "")
    if not raw_secret:
        raise ValueError("Missing 'secret' parameter in otpauth URI.")
    secret = normalize_secret(raw_secret).rstrip("=")

    return OTPAuthURI(otp_type=otp_type, user=user, domain=domain, secret=secret)
