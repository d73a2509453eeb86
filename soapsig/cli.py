#!/usr/bin/env python3
"""soapsig command-line tool.

Verifies legacy SOAP message signatures and inspects the canonical form
they are computed over.

Usage:
    soapsig verify message.xml --key producer.pem
    soapsig canonicalize message.xml --output body.c14n
    soapsig signature message.xml

Exit Codes:
    0 - Signature valid / command succeeded
    1 - Signature invalid
    2 - Message, key or signature could not be processed
    3 - Invalid arguments
"""

import argparse
import json
import sys
from pathlib import Path

from pydantic import ValidationError

from soapsig.config import get_settings
from soapsig.core.canonicalizer import canonicalize_body
from soapsig.core.envelope import extract_signature_value
from soapsig.core.keys import load_public_key_file
from soapsig.core.logging import correlation_context, get_logger, setup_logging
from soapsig.core.startup import initialize
from soapsig.core.verifier import verify_message
from soapsig.errors import SoapSignatureError

logger = get_logger(__name__)

EXIT_OK = 0
EXIT_INVALID = 1
EXIT_ERROR = 2
EXIT_USAGE = 3


class Colors:
    """ANSI color codes for terminal output, empty when disabled."""

    CODES = {
        "RED": "\033[91m",
        "GREEN": "\033[92m",
        "YELLOW": "\033[93m",
        "BOLD": "\033[1m",
        "RESET": "\033[0m",
    }

    def __init__(self, enabled: bool = True):
        self.enabled = enabled
        for name, code in self.CODES.items():
            setattr(self, name, code if enabled else "")

    def colored(self, text: str, color: str) -> str:
        return f"{color}{text}{self.RESET}"


def read_message(source: str) -> bytes:
    if source == "-":
        return sys.stdin.buffer.read()
    return Path(source).read_bytes()


def report_error(exc: SoapSignatureError, args) -> int:
    if args.json:
        print(json.dumps({
            "error": type(exc).__name__,
            "stage": exc.stage,
            "path": exc.path,
            "message": str(exc),
        }))
    else:
        print(args.colors.colored(f"ERROR [{exc.stage}] {exc}", args.colors.RED), file=sys.stderr)
    return EXIT_ERROR


def cmd_verify(args) -> int:
    key_file = args.key or get_settings().public_key_file
    if not key_file:
        print("A public key is required: pass --key or set SOAPSIG_PUBLIC_KEY_FILE", file=sys.stderr)
        return EXIT_USAGE
    if not Path(key_file).is_file():
        print(f"Public key file not found: {key_file}", file=sys.stderr)
        return EXIT_USAGE

    try:
        public_key = load_public_key_file(key_file)
        report = verify_message(read_message(args.message), public_key)
    except SoapSignatureError as exc:
        return report_error(exc, args)

    colors = args.colors
    if args.json:
        print(json.dumps(report.to_dict()))
    elif report.valid:
        print(colors.colored("VALID", colors.GREEN + colors.BOLD))
    else:
        print(colors.colored("INVALID", colors.RED + colors.BOLD))

    return EXIT_OK if report.valid else EXIT_INVALID


def cmd_canonicalize(args) -> int:
    try:
        canonical = canonicalize_body(read_message(args.message))
    except SoapSignatureError as exc:
        return report_error(exc, args)

    if args.output:
        Path(args.output).write_bytes(canonical)
    else:
        sys.stdout.buffer.write(canonical)
        sys.stdout.buffer.flush()
    return EXIT_OK


def cmd_signature(args) -> int:
    try:
        value = extract_signature_value(read_message(args.message))
    except SoapSignatureError as exc:
        return report_error(exc, args)

    if args.json:
        print(json.dumps({"signature": value}))
    else:
        print(value)
    return EXIT_OK


def create_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="soapsig",
        description="Verify signatures on legacy SOAP messages",
    )
    parser.add_argument("--no-color", action="store_true", help="Disable colored output")
    parser.add_argument("--json", action="store_true", help="Print machine-readable JSON")
    parser.add_argument(
        "--log-level",
        type=str.upper,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Override SOAPSIG_LOG_LEVEL",
    )

    subparsers = parser.add_subparsers(dest="command")

    verify_parser = subparsers.add_parser("verify", help="Verify the message signature")
    verify_parser.add_argument("message", help="Message file, or - for stdin")
    verify_parser.add_argument("--key", "-k", help="PEM public key file")

    canon_parser = subparsers.add_parser("canonicalize", help="Print the canonical Body bytes")
    canon_parser.add_argument("message", help="Message file, or - for stdin")
    canon_parser.add_argument("--output", "-o", help="Write to a file instead of stdout")

    sig_parser = subparsers.add_parser("signature", help="Print the header signature value")
    sig_parser.add_argument("message", help="Message file, or - for stdin")

    return parser


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    parser = create_parser()
    args = parser.parse_args(argv)

    args.colors = Colors(enabled=not args.no_color and sys.stdout.isatty())

    if not args.command:
        parser.print_help()
        return EXIT_OK

    try:
        settings = get_settings()
    except ValidationError as exc:
        print(f"Invalid SOAPSIG_* settings: {exc}", file=sys.stderr)
        return EXIT_USAGE

    setup_logging(
        json_output=settings.log_json,
        level=args.log_level or settings.log_level,
        use_color=not args.no_color,
    )
    initialize()

    try:
        with correlation_context():
            if args.command == "verify":
                return cmd_verify(args)
            elif args.command == "canonicalize":
                return cmd_canonicalize(args)
            elif args.command == "signature":
                return cmd_signature(args)
    except OSError as exc:
        logger.error("Cannot read input", error=str(exc))
        print(f"Cannot read input: {exc}", file=sys.stderr)
        return EXIT_USAGE

    parser.print_help()
    return EXIT_USAGE


if __name__ == "__main__":
    sys.exit(main())
