"""
gost2file command line.

Usage:
    gost2file encrypt <input_file>   -> writes <input_file>.gost2
    gost2file decrypt <input_file>   -> strips .gost2 if present, else appends .dec

The short modes ``c`` and ``d`` are accepted too.
The password is always read interactively and never echoed.

Exit codes:
    0  success (decrypt also succeeds when authentication FAILED)
    1  usage error, missing input, or output cannot be created
    2  operation failed; partial output has been removed
"""

from __future__ import annotations

import argparse
import getpass
import sys
from pathlib import Path

import structlog

from gost2file import __version__
from gost2file.config import Settings, load_settings
from gost2file.entropy import default_iv_source
from gost2file.errors import ContainerOpenError, Gost2Error
from gost2file.files import decrypt_file, decrypted_name, encrypt_file, encrypted_name
from gost2file.logs import configure_logging

log = structlog.get_logger()

EXIT_OK = 0
EXIT_USAGE = 1
EXIT_FAILURE = 2

# Longer passwords are truncated to this many UTF-8 bytes.
PASSWORD_MAX_BYTES = 255

MODES = {
    "encrypt": "encrypt",
    "c": "encrypt",
    "decrypt": "decrypt",
    "d": "decrypt",
}


class _Parser(argparse.ArgumentParser):
    """ArgumentParser that exits with status 1 on usage errors."""

    def error(self, message: str) -> None:  # type: ignore[override]
        self.print_usage(sys.stderr)
        self.exit(EXIT_USAGE, f"{self.prog}: error: {message}\n")


def build_parser() -> argparse.ArgumentParser:
    parser = _Parser(
        prog="gost2file",
        description="GOST2-128 file encryptor/decryptor (CBC + SHA-256 trailer).",
    )
    parser.add_argument("mode", choices=sorted(MODES), help="encrypt|decrypt (or c|d)")
    parser.add_argument("input_file", type=Path, help="file to process")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def read_password(prompt: str = "Enter password: ") -> bytearray:
    """Prompt without echo and return the password as a wipeable buffer."""
    password = bytearray(getpass.getpass(prompt).encode("utf-8"))
    if len(password) > PASSWORD_MAX_BYTES:
        log.warning("password_truncated", max_bytes=PASSWORD_MAX_BYTES)
        del password[PASSWORD_MAX_BYTES:]
    return password


def run(mode: str, input_file: Path, settings: Settings) -> int:
    """Execute one encrypt/decrypt and return the exit code."""
    if not input_file.is_file():
        print(f"Error: cannot open input '{input_file}': no such file", file=sys.stderr)
        return EXIT_USAGE

    output = encrypted_name(input_file) if mode == "encrypt" else decrypted_name(input_file)
    password = read_password()

    try:
        if mode == "encrypt":
            encrypt_file(
                input_file,
                password,
                output,
                iv_source=default_iv_source(allow_weak=settings.allow_weak_iv),
                chunk_size=settings.chunk_size,
            )
            print(f"Encryption completed. Output: {output}")
        else:
            _, result = decrypt_file(input_file, password, output, chunk_size=settings.chunk_size)
            print(f"Decryption completed. Output: {output}")
            print(f"Authentication {'OK' if result.authenticated else 'FAILED'}")
    except ContainerOpenError as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_USAGE
    except (Gost2Error, OSError, RuntimeError) as e:
        print(f"Error: {e}", file=sys.stderr)
        print("Operation failed due to an error.", file=sys.stderr)
        return EXIT_FAILURE

    return EXIT_OK


def main(argv: list[str] | None = None) -> int:
    """Entry point."""
    args = build_parser().parse_args(argv)

    try:
        settings = load_settings()
    except (RuntimeError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_USAGE

    configure_logging(settings.log_level)
    log.debug("cli_started", mode=MODES[args.mode], input=str(args.input_file))

    try:
        return run(MODES[args.mode], args.input_file, settings)
    except (KeyboardInterrupt, EOFError):
        print(file=sys.stderr)
        return EXIT_USAGE


if __name__ == "__main__":
    sys.exit(main())
