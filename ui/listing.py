"""
Code listing for a set of credentials.

:func:`listing_rows` computes what is shown, :func:`render_listing` turns it
into text and :func:`run_listing` prints it once or keeps refreshing it
until told to stop.
"""

import logging
import threading
import time
from typing import Callable, Iterable, List, NamedTuple, Optional, TextIO

from core.errors import InvalidSecretEncoding
from core.hotp import derive_code
from core.totp import current_time_step, remaining_seconds
from storage.credentials import Credential
from ui.table import DEFAULT_STYLE, tabulify

logger = logging.getLogger(__name__)

HEADER = ("User", "Domain", "Code", "Life Time")
ERROR_CODE = "ERROR"
REFRESH_INTERVAL = 1.0  # seconds


class ListingRow(NamedTuple):
    user: str
    domain: str
    code: str
    remaining: int   # seconds left in the current time step


def listing_rows(
    credentials: Iterable[Credential],
    now: Optional[int] = None,
) -> List[ListingRow]:
    """
    Compute the current code for every credential.

    All rows share one time step. A credential whose secret cannot be
    decoded gets :data:`ERROR_CODE` instead of a code.
    """
    now = int(now) if now is not None else int(time.time())
    step = current_time_step(now)
    life = remaining_seconds(now)

    rows = []
    for cred in credentials:
        try:
            code = derive_code(cred.secret, step)
        except InvalidSecretEncoding as exc:
            logger.warning("Cannot derive code for [%s]: %s", cred.name, exc)
            code = ERROR_CODE
        rows.append(ListingRow(cred.user, cred.domain, code, life))
    return rows


def render_listing(rows: Iterable[ListingRow], style: str = DEFAULT_STYLE) -> str:
    """Render listing rows under the standard header."""
    table = [list(HEADER)]
    for row in rows:
        table.append([row.user, row.domain, row.code, f"  {row.remaining} (s)"])
    return tabulify(table, style)


def run_listing(
    credentials: List[Credential],
    out: TextIO,
    style: str = DEFAULT_STYLE,
    continuous: bool = False,
    stop: Optional[threading.Event] = None,
    max_iterations: Optional[int] = None,
    interval: float = REFRESH_INTERVAL,
    clock: Callable[[], float] = time.time,
) -> int:
    """
    Print the listing table, optionally refreshing it until stopped.

    Args:
        credentials:    Accounts to list.
        out:            Stream to print to.
        style:          Table style (see :mod:`ui.table`).
        continuous:     Keep refreshing every ``interval`` seconds.
        stop:           Event that ends a continuous listing when set.
        max_iterations: Upper bound on the number of tables printed.
        interval:       Seconds between refreshes.
        clock:          Source of the current Unix time.

    Returns:
        Number of tables printed.
    """
    stop = stop or threading.Event()
    printed = 0

    while not stop.is_set():
        rows = listing_rows(credentials, now=int(clock()))
        print(render_listing(rows, style), file=out)
        printed += 1

        if not continuous:
            break
        if max_iterations is not None and printed >= max_iterations:
            break
        print("press Ctrl+C to break ...", file=out, flush=True)
        stop.wait(interval)

    logger.debug("Listing stopped after %d table(s)", printed)
    return printed
