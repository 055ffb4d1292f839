"""
Exception hierarchy for gauth.

A failed verification is not an error: the verifiers return ``None`` for
that. These exceptions cover the conditions where no answer can be given.
"""


class OTPError(Exception):
    """Base class for all gauth errors."""


class RandomnessUnavailable(OTPError, RuntimeError):
    """The operating system entropy source could not be read."""


class InvalidSecretEncoding(OTPError, ValueError):
    """
    A secret is not valid base32 and cannot be used as an HMAC key.

    Letter case is not an error: lowercase secrets are folded to uppercase
    before decoding, as authenticator apps accept them.
    """


class CredentialFileError(OTPError):
    """A credential file is missing or cannot be parsed."""
