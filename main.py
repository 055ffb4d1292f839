"""
gauth – entry point.

Usage
-----
    gauth -c [USER [DOMAIN]]          create a secret and its provisioning URLs
    gauth -v SECRET CODE              verify a TOTP code
    gauth -v SECRET CODE --counter N  verify an HOTP code issued after counter N
    gauth -d SECRET                   display the current TOTP code
    gauth -l FILE [--continue]        list codes for every account in FILE

Or, from a checkout:
    python main.py ...

SECRET may also be a full otpauth:// provisioning URI; its secret is used.

The table style of ``--list`` comes from the ``GOOGAUTH_STYLE`` environment
variable (0, 1 or 2; default 2).
"""

import argparse
import logging
import os
import sys
import threading
from typing import List, Mapping, Optional

from core.errors import OTPError
from core.hotp import derive_code, verify_counter_based
from core.secret import generate_secret
from core.totp import DEFAULT_WINDOW, generate_totp, verify_time_based
from provisioning.uri import build_barcode_url, build_otpauth_uri, parse_otpauth_uri
from storage.credentials import load_credentials
from ui.listing import run_listing
from ui.table import DEFAULT_STYLE, STYLES

logger = logging.getLogger("gauth")

STYLE_ENV = "GOOGAUTH_STYLE"


# ── Logging setup ─────────────────────────────────────────────────────────────

def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )
    # Keep entropy diagnostics out of verbose output
    logging.getLogger("core.secret").setLevel(logging.WARNING)


# ── Configuration ─────────────────────────────────────────────────────────────

def display_style(environ: Mapping[str, str]) -> str:
    """Return the table style selected by ``GOOGAUTH_STYLE``."""
    style = environ.get(STYLE_ENV, DEFAULT_STYLE).strip()
    if style not in STYLES:
        logger.warning(
            "Unknown %s=%r, using style %s", STYLE_ENV, style, DEFAULT_STYLE
        )
        return DEFAULT_STYLE
    return style


# ── Commands ──────────────────────────────────────────────────────────────────

def resolve_secret(value: str) -> str:
    """Return ``value``, or the secret carried by an otpauth:// URI."""
    if value.strip().lower().startswith("otpauth://"):
        return parse_otpauth_uri(value).secret
    return value


def cmd_create(names: List[str]) -> int:
    user = names[0] if len(names) > 0 else ""
    domain = names[1] if len(names) > 1 else ""
    secret = generate_secret()
    print("secret:", secret)
    print("url:", build_otpauth_uri(user, domain, secret))
    print("barcode:", build_barcode_url(user, domain, secret))
    return 0


def cmd_verify(secret: str, code: str, counter: Optional[int], window: int) -> int:
    secret = resolve_secret(secret)
    if counter is None:
        matched = verify_time_based(secret, code, window)
    else:
        matched = verify_counter_based(secret, code, counter, window)

    if matched is None:
        print("verification failed")
        return 1
    print("verification succeeded")
    return 0


def cmd_display(secret: str, counter: Optional[int]) -> int:
    secret = resolve_secret(secret)
    if counter is None:
        print(generate_totp(secret))
    else:
        print(derive_code(secret, counter))
    return 0


def cmd_list(filename: str, continuous: bool, style: str) -> int:
    credentials = load_credentials(filename)
    stop = threading.Event()
    try:
        run_listing(credentials, sys.stdout, style=style, continuous=continuous, stop=stop)
    except KeyboardInterrupt:
        stop.set()
        print()
    return 0


# ── Argparse builder ──────────────────────────────────────────────────────────

def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="gauth",
        description="Google Authenticator compatible TOTP/HOTP tool",
    )
    ops = p.add_mutually_exclusive_group()
    ops.add_argument(
        "-c", "--create", nargs="*", metavar="NAME",
        help="Create a new secret; optional USER and DOMAIN label the URLs",
    )
    ops.add_argument(
        "-v", "--verify", nargs=2, metavar=("SECRET", "CODE"),
        help="Verify CODE against SECRET (a secret or otpauth:// URI)",
    )
    ops.add_argument(
        "-d", "--display", metavar="SECRET",
        help="Print the current code for SECRET (a secret or otpauth:// URI)",
    )
    ops.add_argument("-l", "--list", metavar="FILE", help="List codes for every account in FILE")

    p.add_argument(
        "--continue", dest="cont", action="store_true",
        help="With --list, refresh every second until Ctrl+C",
    )
    p.add_argument(
        "--counter", type=int,
        help="Use HOTP: with --verify the last accepted counter, with --display the counter",
    )
    p.add_argument(
        "--window", type=int, default=DEFAULT_WINDOW,
        help=f"Verification window in steps (default {DEFAULT_WINDOW})",
    )
    p.add_argument("--verbose", action="store_true", help="Debug logging on stderr")
    return p


# ── Main ──────────────────────────────────────────────────────────────────────

def main(argv: Optional[List[str]] = None, environ: Optional[Mapping[str, str]] = None) -> int:
    parser = build_parser()
    argv = sys.argv[1:] if argv is None else argv
    if not argv:
        parser.print_help()
        return 0

    args = parser.parse_args(argv)
    _configure_logging(args.verbose)

    if args.create is not None and len(args.create) > 2:
        parser.error("--create takes at most USER and DOMAIN")
    if args.window < 1:
        parser.error("--window must be at least 1")
    if args.counter is not None and args.counter < 0:
        parser.error("--counter must be non-negative")

    try:
        if args.create is not None:
            return cmd_create(args.create)
        if args.verify is not None:
            secret, code = args.verify
            return cmd_verify(secret, code, args.counter, args.window)
        if args.display is not None:
            return cmd_display(args.display, args.counter)
        if args.list is not None:
            style = display_style(os.environ if environ is None else environ)
            return cmd_list(args.list, args.cont, style)
    except (OTPError, ValueError) as exc:
        logger.debug("Command failed", exc_info=True)
        print(f"error: {exc}", file=sys.stderr)
        return 1

    parser.print_help()
    return 0


if __name__ == "__main__":
    sys.exit(main())
