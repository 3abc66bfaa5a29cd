"""Unconditional block padding: every message gains 1..16 bytes."""

from __future__ import annotations

from gost2file.cipher import BLOCK_SIZE
from gost2file.errors import PaddingError


def pad_length(data_length: int) -> int:
    """Pad bytes to append after ``data_length`` bytes (always 1..16)."""
    return BLOCK_SIZE - (data_length % BLOCK_SIZE)


def pad(remainder: bytes | bytearray) -> bytes:
    """Append pad bytes, each equal to the pad length.

    Block-aligned input still gets a full block of 16 x 0x10.
    """
    n = pad_length(len(remainder))
    return bytes(remainder) + bytes([n]) * n


def unpad(block: bytes | bytearray) -> bytes:
    """Strip and validate the padding of a final 16-byte block.

    Raises:
        PaddingError: If the last byte is outside 1..16 or the pad bytes
            do not all equal it.
    """
    if len(block) != BLOCK_SIZE:
        raise PaddingError(f"Final block must be {BLOCK_SIZE} bytes, got {len(block)}")

    n = block[-1]
    if n < 1 or n > BLOCK_SIZE:
        raise PaddingError(f"Invalid pad value: {n}")
    if any(b != n for b in block[BLOCK_SIZE - n :]):
        raise PaddingError(f"Pad bytes do not all equal {n}")

    return bytes(block[: BLOCK_SIZE - n])
