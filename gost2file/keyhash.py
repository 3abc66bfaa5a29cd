"""
GOST2-128 Key Derivation

Derives the 4096-bit key schedule (64 x 64-bit subkeys) from a password
using an MD2-style iterative hash with a 512-byte window.

Hash state (one context per derivation):
- accumulator: last checksum byte written (0..255)
- cursor: position inside the current 512-byte window
- checksum: 512-byte running checksum
- work: 1536 bytes = state (0..511) | input window (512..1023) | mixed (1024..1535)

The finalize step is a double pass: length padding of the open window,
then the whole checksum array fed back through ``update``. Changing that
order changes every derived key and breaks every existing container.
"""

from __future__ import annotations

import struct
from collections.abc import Iterable, Iterator

import structlog

from gost2file.sensitive import wipe
from gost2file.tables import SBOX

log = structlog.get_logger()

# =============================================================================
# Constants
# =============================================================================

WINDOW_SIZE = 512
WORK_SIZE = WINDOW_SIZE * 3
COMPRESSION_ROUNDS = WINDOW_SIZE + 2

DIGEST_SIZE = WINDOW_SIZE
SUBKEY_COUNT = 64
SUBKEY_SIZE = 8

_SUBKEY_FORMAT = f">{SUBKEY_COUNT}Q"
_WORD_MASK = (1 << 64) - 1


# =============================================================================
# Hash Context
# =============================================================================


class KeyDerivationHash:
    """Per-derivation hash context.

    Usage:
        ctx = KeyDerivationHash()
        ctx.update(b"part one")
        ctx.update(b"part two")
        digest = ctx.finalize()  # 512-byte bytearray
    """

    def __init__(self) -> None:
        self._accumulator = 0
        self._cursor = 0
        self._checksum = bytearray(WINDOW_SIZE)
        self._work = bytearray(WORK_SIZE)
        self._finalized = False

    @property
    def finalized(self) -> bool:
        return self._finalized

    def update(self, data: bytes | bytearray | memoryview) -> None:
        """Absorb ``data``, compressing each time the window fills."""
        if self._finalized:
            raise ValueError("Hash context already finalized")

        work = self._work
        checksum = self._checksum
        accumulator = self._accumulator
        cursor = self._cursor

        for byte in data:
            work[WINDOW_SIZE + cursor] = byte
            work[2 * WINDOW_SIZE + cursor] = byte ^ work[cursor]
            checksum[cursor] ^= SBOX[byte ^ accumulator]
            accumulator = checksum[cursor]
            cursor += 1
            if cursor == WINDOW_SIZE:
                self._compress()
                cursor = 0

        self._accumulator = accumulator
        self._cursor = cursor

    def _compress(self) -> None:
        """Diffuse the full work buffer: 514 chained substitution passes."""
        work = self._work
        t = 0
        for rnd in range(COMPRESSION_ROUNDS):
            for j in range(WORK_SIZE):
                t = work[j] ^ SBOX[t]
                work[j] = t
            t = (t + rnd) & 0xFF

    def finalize(self) -> bytearray:
        """Pad, self-hash the checksum, and return the 512-byte digest.

        The open window is padded with ``n`` bytes of value ``n mod 256``
        where ``n = 512 - cursor`` (a full window of zeros when the cursor
        is at 0). The checksum array is snapshotted before it is fed back,
        which matches reading it in place since each byte is read before
        its own update.
        """
        if self._finalized:
            raise ValueError("Hash context already finalized")

        remaining = WINDOW_SIZE - self._cursor
        self.update(bytes([remaining & 0xFF]) * remaining)
        self.update(bytes(self._checksum))
        self._finalized = True

        return bytearray(self._work[:DIGEST_SIZE])

    def wipe(self) -> None:
        """Zero all internal buffers. The context is unusable afterwards."""
        wipe(self._checksum)
        wipe(self._work)
        self._accumulator = 0
        self._cursor = 0
        self._finalized = True


# =============================================================================
# Subkey Derivation
# =============================================================================


def expand_digest(digest: bytes | bytearray) -> list[int]:
    """Slice a 512-byte digest into 64 big-endian unsigned 64-bit subkeys."""
    if len(digest) != DIGEST_SIZE:
        raise ValueError(f"Digest must be {DIGEST_SIZE} bytes, got {len(digest)}")
    return list(struct.unpack(_SUBKEY_FORMAT, digest))


def derive_subkeys(password: bytes | bytearray | memoryview) -> list[int]:
    """Derive the 64 subkeys for ``password``.

    Pure function: no salt, no nonce. The caller owns ``password`` and is
    responsible for wiping it.
    """
    ctx = KeyDerivationHash()
    try:
        ctx.update(password)
        digest = ctx.finalize()
        try:
            return expand_digest(digest)
        finally:
            wipe(digest)
    finally:
        ctx.wipe()


# =============================================================================
# Key Schedule
# =============================================================================


class KeySchedule:
    """The 64 subkeys for one codec invocation.

    Read-only after construction. Used as a context manager the schedule
    is wiped on exit, including on exceptions:

        with KeySchedule.from_password(pw) as schedule:
            codec = StreamCodec(schedule)
            ...
    """

    __slots__ = ("_words", "_wiped")

    def __init__(self, words: Iterable[int]) -> None:
        words = list(words)
        if len(words) != SUBKEY_COUNT:
            raise ValueError(f"Key schedule needs {SUBKEY_COUNT} subkeys, got {len(words)}")
        for word in words:
            if not 0 <= word <= _WORD_MASK:
                raise ValueError("Subkeys must be unsigned 64-bit integers")
        self._words = words
        self._wiped = False

    @classmethod
    def from_password(cls, password: bytes | bytearray | memoryview) -> KeySchedule:
        """Run the key-derivation hash over ``password``."""
        schedule = cls(derive_subkeys(password))
        log.debug("key_schedule_derived", subkeys=SUBKEY_COUNT)
        return schedule

    @property
    def words(self) -> list[int]:
        """Subkeys in forward order. Callers must not mutate the list."""
        if self._wiped:
            raise ValueError("Key schedule has been wiped")
        return self._words

    @property
    def wiped(self) -> bool:
        return self._wiped

    def wipe(self) -> None:
        for i in range(len(self._words)):
            self._words[i] = 0
        self._wiped = True

    def __enter__(self) -> KeySchedule:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.wipe()

    def __len__(self) -> int:
        return SUBKEY_COUNT

    def __getitem__(self, index: int) -> int:
        return self.words[index]

    def __iter__(self) -> Iterator[int]:
        return iter(self.words)

    def __repr__(self) -> str:
        state = "wiped" if self._wiped else f"{SUBKEY_COUNT} subkeys"
        return f"KeySchedule(<{state}>)"
