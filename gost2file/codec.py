"""
GOST2-128 Stream Codec

CBC chaining over GOST2-128 with chunked buffering, unconditional
padding, and a SHA-256 trailer over the ciphertext.

Container layout:
    [16 bytes IV (clear)] [ciphertext, multiple of 16] [32 bytes SHA-256 of ciphertext]

Encryption never holds more than one chunk plus a 15-byte carry in
memory. Decryption withholds only the final block, because only that
block carries padding.

State machine per invocation:
    INIT -> STREAMING -> FINALIZING -> DONE
    any failure -> ERROR
"""

from __future__ import annotations

import enum
import io
import struct
from collections.abc import Sequence
from dataclasses import dataclass
from typing import BinaryIO

import structlog

from gost2file.cipher import BLOCK_SIZE, SUBKEY_COUNT, decrypt_block, encrypt_block
from gost2file.config import DEFAULT_CHUNK_SIZE, validate_chunk_size
from gost2file.entropy import IV_SIZE, IVSource, default_iv_source
from gost2file.errors import FormatError, PaddingError, StreamIOError
from gost2file.integrity import TAG_SIZE, IntegrityFactory, Sha256IntegrityHash, tags_match
from gost2file.keyhash import KeySchedule
from gost2file.padding import pad, unpad
from gost2file.sensitive import wipe

log = structlog.get_logger()

# =============================================================================
# Format Constants
# =============================================================================

MIN_CONTAINER_SIZE = IV_SIZE + TAG_SIZE
CONTAINER_OVERHEAD = IV_SIZE + TAG_SIZE

_BLOCK_FORMAT = ">QQ"


class CodecState(enum.Enum):
    INIT = "init"
    STREAMING = "streaming"
    FINALIZING = "finalizing"
    DONE = "done"
    ERROR = "error"


# =============================================================================
# Data Classes
# =============================================================================


@dataclass(frozen=True)
class ContainerLayout:
    """Parsed view of an encrypted container (no key needed)."""

    iv: bytes
    ciphertext_length: int
    tag: bytes
    total_length: int


@dataclass(frozen=True)
class EncryptResult:
    """Outcome of one encryption."""

    iv: bytes
    plaintext_length: int
    ciphertext_length: int
    tag: bytes

    @property
    def total_length(self) -> int:
        return CONTAINER_OVERHEAD + self.ciphertext_length


@dataclass(frozen=True)
class DecryptResult:
    """Outcome of one decryption.

    ``authenticated`` is False when the stored trailer does not match the
    ciphertext. The plaintext has been written regardless.
    """

    iv: bytes
    plaintext_length: int
    ciphertext_length: int
    stored_tag: bytes
    computed_tag: bytes
    authenticated: bool


# =============================================================================
# Layout Validation
# =============================================================================


def ciphertext_length_for(total_length: int) -> int:
    """Validate a container length and return its ciphertext length.

    Raises:
        FormatError: If the container is under 48 bytes or the region
            between IV and tag is not a positive multiple of 16.
    """
    if total_length < MIN_CONTAINER_SIZE:
        raise FormatError(f"Input too small: {total_length} < {MIN_CONTAINER_SIZE} bytes")

    ciphertext_length = total_length - CONTAINER_OVERHEAD
    if ciphertext_length <= 0 or ciphertext_length % BLOCK_SIZE != 0:
        raise FormatError(
            f"Invalid ciphertext size: {ciphertext_length} is not a positive multiple of {BLOCK_SIZE}"
        )
    return ciphertext_length


def expected_ciphertext_length(plaintext_length: int) -> int:
    """Ciphertext length for a plaintext, padding included."""
    return (plaintext_length // BLOCK_SIZE + 1) * BLOCK_SIZE


def read_layout(source: BinaryIO) -> ContainerLayout:
    """Read IV and trailer from a seekable source.

    The container starts at the source's current position. On return the
    source is positioned at the first ciphertext byte.
    """
    if not source.seekable():
        raise StreamIOError("Container source must be seekable")

    start = source.tell()
    end = source.seek(0, io.SEEK_END)
    total_length = end - start
    ciphertext_length = ciphertext_length_for(total_length)

    source.seek(start)
    iv = _read_exact(source, IV_SIZE)
    source.seek(end - TAG_SIZE)
    tag = _read_exact(source, TAG_SIZE)
    source.seek(start + IV_SIZE)

    return ContainerLayout(
        iv=iv,
        ciphertext_length=ciphertext_length,
        tag=tag,
        total_length=total_length,
    )


def parse_container(data: bytes) -> ContainerLayout:
    """In-memory variant of ``read_layout``."""
    ciphertext_length = ciphertext_length_for(len(data))
    return ContainerLayout(
        iv=bytes(data[:IV_SIZE]),
        ciphertext_length=ciphertext_length,
        tag=bytes(data[-TAG_SIZE:]),
        total_length=len(data),
    )


# =============================================================================
# I/O Helpers
# =============================================================================


def _read_exact(source: BinaryIO, n: int) -> bytes:
    """Read exactly ``n`` bytes or raise StreamIOError."""
    parts: list[bytes] = []
    got = 0
    while got < n:
        part = source.read(n - got)
        if not part:
            raise StreamIOError(f"Short read: expected {n} bytes, got {got}")
        parts.append(part)
        got += len(part)
    return b"".join(parts)


def _write_all(sink: BinaryIO, data: bytes) -> None:
    """Write every byte of ``data``, looping over partial writes.

    A ``None`` return is taken as a complete write (buffered sinks that do
    not report counts). A zero-byte write is an aborted write.
    """
    view = memoryview(data)
    while view:
        n = sink.write(view)
        if n is None:
            return
        if n <= 0:
            raise StreamIOError(f"Short write: {len(view)} bytes not written")
        view = view[n:]


# =============================================================================
# CBC Chaining
# =============================================================================


class _CbcEncryptor:
    """prev starts as the IV and becomes each produced ciphertext block."""

    def __init__(self, subkeys: Sequence[int], iv: bytes) -> None:
        self._subkeys = subkeys
        self._prev = struct.unpack(_BLOCK_FORMAT, iv)

    def process(self, data: bytes | bytearray) -> bytes:
        out = bytearray(len(data))
        subkeys = self._subkeys
        pa, pb = self._prev
        offset = 0
        for a, b in struct.iter_unpack(_BLOCK_FORMAT, data):
            pa, pb = encrypt_block(a ^ pa, b ^ pb, subkeys)
            struct.pack_into(_BLOCK_FORMAT, out, offset, pa, pb)
            offset += BLOCK_SIZE
        self._prev = (pa, pb)
        return bytes(out)


class _CbcDecryptor:
    """prev starts as the IV and becomes each consumed ciphertext block."""

    def __init__(self, subkeys: Sequence[int], iv: bytes) -> None:
        self._subkeys = subkeys
        self._prev = struct.unpack(_BLOCK_FORMAT, iv)

    def process(self, data: bytes | bytearray) -> bytearray:
        out = bytearray(len(data))
        subkeys = self._subkeys
        pa, pb = self._prev
        offset = 0
        for ca, cb in struct.iter_unpack(_BLOCK_FORMAT, data):
            a, b = decrypt_block(ca, cb, subkeys)
            struct.pack_into(_BLOCK_FORMAT, out, offset, a ^ pa, b ^ pb)
            pa, pb = ca, cb
            offset += BLOCK_SIZE
        self._prev = (pa, pb)
        return out


# =============================================================================
# StreamCodec
# =============================================================================


class StreamCodec:
    """Streaming encrypt/decrypt of whole containers.

    Args:
        schedule: KeySchedule (or any 64-word sequence) for this invocation.
            The codec never wipes it; the owner does.
        iv_source: Zero-argument callable returning 16 bytes. Defaults to
            the ranked system source.
        integrity_factory: Builds a fresh trailer hash per invocation.
        chunk_size: Read size; positive multiple of 16.
    """

    def __init__(
        self,
        schedule: KeySchedule | Sequence[int],
        *,
        iv_source: IVSource | None = None,
        integrity_factory: IntegrityFactory = Sha256IntegrityHash,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
    ) -> None:
        self._schedule = schedule
        self.iv_source = iv_source if iv_source is not None else default_iv_source()
        self.integrity_factory = integrity_factory
        self.chunk_size = validate_chunk_size(chunk_size)
        self.state = CodecState.INIT

    def _subkeys(self) -> Sequence[int]:
        schedule = self._schedule
        subkeys = schedule.words if isinstance(schedule, KeySchedule) else schedule
        if len(subkeys) != SUBKEY_COUNT:
            raise ValueError(f"Key schedule must have {SUBKEY_COUNT} subkeys, got {len(subkeys)}")
        return subkeys

    def _transition(self, state: CodecState) -> None:
        log.debug("codec_state", previous=self.state.value, current=state.value)
        self.state = state

    # -------------------------------------------------------------------------
    # Encrypt
    # -------------------------------------------------------------------------

    def encrypt(self, source: BinaryIO, sink: BinaryIO) -> EncryptResult:
        """Encrypt ``source`` into a complete container written to ``sink``."""
        self.state = CodecState.INIT
        try:
            return self._encrypt(source, sink)
        except Exception:
            self._transition(CodecState.ERROR)
            raise

    def _encrypt(self, source: BinaryIO, sink: BinaryIO) -> EncryptResult:
        subkeys = self._subkeys()

        iv = self.iv_source()
        if len(iv) != IV_SIZE:
            raise ValueError(f"IV source returned {len(iv)} bytes, expected {IV_SIZE}")
        iv = bytes(iv)

        _write_all(sink, iv)
        chain = _CbcEncryptor(subkeys, iv)
        integrity = self.integrity_factory()
        log.debug("encrypt_started", chunk_size=self.chunk_size)

        self._transition(CodecState.STREAMING)
        carry = bytearray()
        plaintext_length = 0
        ciphertext_length = 0
        chunks = 0
        try:
            while True:
                chunk = source.read(self.chunk_size)
                if chunk is None:
                    raise StreamIOError("Source returned no data (non-blocking stream?)")
                if not chunk:
                    break

                chunks += 1
                plaintext_length += len(chunk)
                carry += chunk
                whole = len(carry) - len(carry) % BLOCK_SIZE
                if not whole:
                    continue

                ciphertext = chain.process(carry[:whole])
                del carry[:whole]
                _write_all(sink, ciphertext)
                integrity.update(ciphertext)
                ciphertext_length += len(ciphertext)

            self._transition(CodecState.FINALIZING)
            ciphertext = chain.process(pad(carry))
        finally:
            wipe(carry)

        _write_all(sink, ciphertext)
        integrity.update(ciphertext)
        ciphertext_length += len(ciphertext)

        tag = integrity.finalize()
        _write_all(sink, tag)

        self._transition(CodecState.DONE)
        log.info(
            "encrypt_finished",
            plaintext_length=plaintext_length,
            ciphertext_length=ciphertext_length,
            chunks=chunks,
        )
        return EncryptResult(
            iv=iv,
            plaintext_length=plaintext_length,
            ciphertext_length=ciphertext_length,
            tag=tag,
        )

    # -------------------------------------------------------------------------
    # Decrypt
    # -------------------------------------------------------------------------

    def decrypt(self, source: BinaryIO, sink: BinaryIO) -> DecryptResult:
        """Decrypt a container from seekable ``source`` into ``sink``.

        Raises:
            FormatError: Before any output, if the container is malformed.
            PaddingError: If the final block's padding is invalid. Earlier
                plaintext may already be in ``sink``.
            StreamIOError: On short reads or aborted writes.
        """
        self.state = CodecState.INIT
        try:
            return self._decrypt(source, sink)
        except Exception:
            self._transition(CodecState.ERROR)
            raise

    def _decrypt(self, source: BinaryIO, sink: BinaryIO) -> DecryptResult:
        subkeys = self._subkeys()
        layout = read_layout(source)

        chain = _CbcDecryptor(subkeys, layout.iv)
        integrity = self.integrity_factory()
        log.debug(
            "decrypt_started",
            ciphertext_length=layout.ciphertext_length,
            chunk_size=self.chunk_size,
        )

        self._transition(CodecState.STREAMING)
        remaining = layout.ciphertext_length
        written = 0
        last_block = bytearray()
        chunks = 0
        while remaining:
            n = min(self.chunk_size, remaining)
            chunk = _read_exact(source, n)
            integrity.update(chunk)
            plaintext = chain.process(chunk)
            remaining -= n
            chunks += 1

            if remaining:
                _write_all(sink, plaintext)
                written += n
            else:
                # Final chunk: everything but the last block goes out now.
                _write_all(sink, plaintext[:-BLOCK_SIZE])
                written += n - BLOCK_SIZE
                last_block = plaintext[-BLOCK_SIZE:]

        self._transition(CodecState.FINALIZING)
        try:
            tail = unpad(last_block)
        except PaddingError as e:
            raise PaddingError(str(e), bytes_written=written) from None
        finally:
            wipe(last_block)
        _write_all(sink, tail)
        written += len(tail)

        computed_tag = integrity.finalize()
        authenticated = tags_match(computed_tag, layout.tag)

        self._transition(CodecState.DONE)
        if authenticated:
            log.info(
                "decrypt_finished", plaintext_length=written, chunks=chunks, authenticated=True
            )
        else:
            log.warning("authentication_failed", plaintext_length=written, chunks=chunks)

        return DecryptResult(
            iv=layout.iv,
            plaintext_length=written,
            ciphertext_length=layout.ciphertext_length,
            stored_tag=layout.tag,
            computed_tag=computed_tag,
            authenticated=authenticated,
        )


# =============================================================================
# In-Memory Helpers
# =============================================================================


def encrypt_bytes(
    plaintext: bytes,
    schedule: KeySchedule | Sequence[int],
    *,
    iv_source: IVSource | None = None,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
) -> bytes:
    """Encrypt ``plaintext`` and return the whole container."""
    sink = io.BytesIO()
    codec = StreamCodec(schedule, iv_source=iv_source, chunk_size=chunk_size)
    codec.encrypt(io.BytesIO(plaintext), sink)
    return sink.getvalue()


def decrypt_bytes(
    container: bytes,
    schedule: KeySchedule | Sequence[int],
    *,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
) -> tuple[bytes, DecryptResult]:
    """Decrypt a whole container held in memory."""
    sink = io.BytesIO()
    codec = StreamCodec(schedule, chunk_size=chunk_size)
    result = codec.decrypt(io.BytesIO(container), sink)
    return sink.getvalue(), result


# =============================================================================
# Gost2Codec Class (Main Interface)
# =============================================================================


class Gost2Codec:
    """Facade over the GOST2-128 file codec.

    Exposes format constants and every public operation as a static
    method, so callers and tests can use one object.
    """

    BLOCK_SIZE = BLOCK_SIZE
    IV_SIZE = IV_SIZE
    TAG_SIZE = TAG_SIZE
    MIN_CONTAINER_SIZE = MIN_CONTAINER_SIZE
    CONTAINER_OVERHEAD = CONTAINER_OVERHEAD
    SUBKEY_COUNT = SUBKEY_COUNT

    # Key derivation
    @staticmethod
    def derive_schedule(password: bytes | bytearray) -> KeySchedule:
        """Derive the 64-subkey schedule for a password."""
        return KeySchedule.from_password(password)

    # Streaming
    @staticmethod
    def encrypt_stream(
        source: BinaryIO,
        sink: BinaryIO,
        schedule: KeySchedule | Sequence[int],
        **options,
    ) -> EncryptResult:
        """Encrypt a stream into a container."""
        return StreamCodec(schedule, **options).encrypt(source, sink)

    @staticmethod
    def decrypt_stream(
        source: BinaryIO,
        sink: BinaryIO,
        schedule: KeySchedule | Sequence[int],
        **options,
    ) -> DecryptResult:
        """Decrypt a container stream."""
        return StreamCodec(schedule, **options).decrypt(source, sink)

    # In-memory
    @staticmethod
    def encrypt(
        plaintext: bytes,
        schedule: KeySchedule | Sequence[int],
        *,
        iv_source: IVSource | None = None,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
    ) -> bytes:
        """Encrypt bytes into a container."""
        return encrypt_bytes(plaintext, schedule, iv_source=iv_source, chunk_size=chunk_size)

    @staticmethod
    def decrypt(
        container: bytes,
        schedule: KeySchedule | Sequence[int],
        *,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
    ) -> tuple[bytes, DecryptResult]:
        """Decrypt a container held in memory."""
        return decrypt_bytes(container, schedule, chunk_size=chunk_size)

    # Layout
    @staticmethod
    def parse_container(data: bytes) -> ContainerLayout:
        """Validate and split an in-memory container."""
        return parse_container(data)

    @staticmethod
    def expected_ciphertext_length(plaintext_length: int) -> int:
        """Ciphertext length for a plaintext length."""
        return expected_ciphertext_length(plaintext_length)
