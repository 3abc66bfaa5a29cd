"""
File-level encrypt/decrypt.

Wraps StreamCodec with the parts of the utility that live
outside the cipher: output naming, opening files, key derivation with
password wiping, and removal of partial output when an operation fails.
"""

from __future__ import annotations

import contextlib
import os
from collections.abc import Iterator
from pathlib import Path
from typing import BinaryIO

import structlog

from gost2file.codec import (
    ContainerLayout,
    DecryptResult,
    EncryptResult,
    StreamCodec,
    read_layout,
)
from gost2file.config import DEFAULT_CHUNK_SIZE
from gost2file.entropy import IVSource
from gost2file.errors import ContainerOpenError
from gost2file.integrity import IntegrityFactory, Sha256IntegrityHash
from gost2file.keyhash import KeySchedule
from gost2file.sensitive import scrubbed, wipe

log = structlog.get_logger()

SUFFIX = ".gost2"
DECRYPTED_SUFFIX = ".dec"

PathLike = str | os.PathLike


# =============================================================================
# Output Naming
# =============================================================================


def encrypted_name(path: PathLike) -> Path:
    """``notes.txt`` -> ``notes.txt.gost2``."""
    return Path(os.fspath(path) + SUFFIX)


def decrypted_name(path: PathLike) -> Path:
    """Strip ``.gost2`` if present, otherwise append ``.dec``."""
    name = os.fspath(path)
    if name.endswith(SUFFIX) and len(name) > len(SUFFIX):
        return Path(name[: -len(SUFFIX)])
    return Path(name + DECRYPTED_SUFFIX)


# =============================================================================
# Helpers
# =============================================================================


def _open_input(path: Path) -> BinaryIO:
    try:
        return open(path, "rb")
    except OSError as e:
        raise ContainerOpenError(f"Cannot open input '{path}': {e.strerror or e}") from e


def _open_output(path: Path) -> BinaryIO:
    try:
        return open(path, "wb")
    except OSError as e:
        raise ContainerOpenError(f"Cannot create output '{path}': {e.strerror or e}") from e


@contextlib.contextmanager
def _removing_on_failure(path: Path) -> Iterator[None]:
    """Delete ``path`` if the body raises, then re-raise."""
    try:
        yield
    except BaseException:
        with contextlib.suppress(FileNotFoundError):
            path.unlink()
            log.info("partial_output_removed", path=str(path))
        raise


@contextlib.contextmanager
def _password_guard(password: bytes | bytearray) -> Iterator[None]:
    """Wipe a bytearray password on exits that happen before derivation."""
    try:
        yield
    finally:
        if isinstance(password, bytearray):
            wipe(password)


def _schedule_for(password: bytes | bytearray) -> KeySchedule:
    """Derive a schedule; a bytearray password is wiped as soon as it is used."""
    if isinstance(password, bytearray):
        with scrubbed(password) as pw:
            return KeySchedule.from_password(pw)
    return KeySchedule.from_password(password)


def inspect_container(source: PathLike | BinaryIO) -> ContainerLayout:
    """Validate a container's size and alignment and read its IV and trailer.

    Raises:
        FormatError: If the container is too small or misaligned.
        ContainerOpenError: If a path cannot be opened.
    """
    if hasattr(source, "read"):
        return read_layout(source)
    with _open_input(Path(source)) as f:
        return read_layout(f)


# =============================================================================
# File Operations
# =============================================================================


def encrypt_file(
    input_path: PathLike,
    password: bytes | bytearray,
    output_path: PathLike | None = None,
    *,
    iv_source: IVSource | None = None,
    integrity_factory: IntegrityFactory = Sha256IntegrityHash,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
) -> tuple[Path, EncryptResult]:
    """Encrypt ``input_path`` into a container.

    Args:
        input_path: Plaintext file.
        password: Raw password bytes. A ``bytearray`` is wiped right after
            key derivation.
        output_path: Destination; defaults to ``input_path + ".gost2"``.

    Returns:
        Tuple of (output path, EncryptResult).
    """
    input_path = Path(input_path)
    output_path = Path(output_path) if output_path is not None else encrypted_name(input_path)

    with _password_guard(password), _open_input(input_path) as fin:
        with _schedule_for(password) as schedule:
            codec = StreamCodec(
                schedule,
                iv_source=iv_source,
                integrity_factory=integrity_factory,
                chunk_size=chunk_size,
            )
            fout = _open_output(output_path)
            with _removing_on_failure(output_path):
                with fout:
                    result = codec.encrypt(fin, fout)

    log.info("file_encrypted", input=str(input_path), output=str(output_path))
    return output_path, result


def decrypt_file(
    input_path: PathLike,
    password: bytes | bytearray,
    output_path: PathLike | None = None,
    *,
    integrity_factory: IntegrityFactory = Sha256IntegrityHash,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
) -> tuple[Path, DecryptResult]:
    """Decrypt a container file.

    The container is validated before the key is derived, so malformed
    input is rejected before key derivation and before any output file
    exists. Authentication failure is reported in the result, not raised.

    Returns:
        Tuple of (output path, DecryptResult).
    """
    input_path = Path(input_path)
    output_path = Path(output_path) if output_path is not None else decrypted_name(input_path)

    with _password_guard(password), _open_input(input_path) as fin:
        read_layout(fin)
        fin.seek(0)

        with _schedule_for(password) as schedule:
            codec = StreamCodec(
                schedule,
                integrity_factory=integrity_factory,
                chunk_size=chunk_size,
            )
            fout = _open_output(output_path)
            with _removing_on_failure(output_path):
                with fout:
                    result = codec.decrypt(fin, fout)

    log.info(
        "file_decrypted",
        input=str(input_path),
        output=str(output_path),
        authenticated=result.authenticated,
    )
    return output_path, result
