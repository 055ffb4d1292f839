"""
Plain-text credential list.

Format
------
One section per account; section names are free-form identifiers::

    [github]
    secret = GEZD GNBV GY3T QOJQ
    user   = alice
    domain = github.com

Missing keys read as empty strings; a ``[DEFAULT]`` section supplies
fallback values (e.g. a shared ``domain``) and is not an account. Secrets are not validated here; a bad
secret is reported when its code is derived.
"""

import configparser
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import List, Union

from core.errors import CredentialFileError

logger = logging.getLogger(__name__)


# ── Data model ────────────────────────────────────────────────────────────────

@dataclass
class Credential:
    """One account from the credential file."""

    name: str       # section identifier
    secret: str     # base32, as written in the file
    user: str = ""
    domain: str = ""


# ── Loading ───────────────────────────────────────────────────────────────────

def _parser() -> configparser.ConfigParser:
    return configparser.ConfigParser(
        interpolation=None,
        delimiters=("=",),
        strict=False,
        allow_no_value=True,
    )


def parse_credentials(text: str, source: str = "<string>") -> List[Credential]:
    """
    Parse credential-file content.

    Args:
        text:   File content.
        source: Name used in error messages.

    Returns:
        Credentials sorted by section name.

    Raises:
        CredentialFileError: If the content is not sectioned key-value text.
    """
    # Indentation is insignificant; configparser would fold indented lines
    # into the previous value.
    text = "\n".join(line.strip() for line in text.splitlines())
    parser = _parser()
    try:
        parser.read_string(text, source=source)
    except configparser.Error as exc:
        raise CredentialFileError(f"can not parse: {source}: {exc}") from exc

    credentials = []
    for name in sorted(parser.sections()):
        section = parser[name]
        credentials.append(
            Credential(
                name=name,
                secret=section.get("secret") or "",
                user=section.get("user") or "",
                domain=section.get("domain") or "",
            )
        )
    logger.debug("Loaded %d credential(s) from %s", len(credentials), source)
    return credentials


def load_credentials(path: Union[str, Path]) -> List[Credential]:
    """
    Read a credential file.

    Args:
        path: File path; a leading ``~`` is expanded.

    Returns:
        Credentials sorted by section name.

    Raises:
        CredentialFileError: If the file cannot be read or parsed.
    """
    path = Path(path).expanduser()
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise CredentialFileError(f"can not read: {path}") from exc
    return parse_credentials(text, source=str(path))
