"""
GOST2-128 Block Cipher

128-bit block, 64 x 64-bit subkeys, 32 Feistel-style rounds.

Round function f(x), x a 64-bit word:
    y = x >> 32, z = x & 0xFFFFFFFF
    bytes of y (high to low) through K87, K65, K43, K21
    bytes of z (high to low) through K175, K153, K131, K109
    result = rotl64((y << 32) | z, 11)

All arithmetic is unsigned modulo 2^64. Blocks travel on the wire as two
big-endian 64-bit words, and every block transform returns its halves
swapped: (a, b) -> (b', a').
"""

from __future__ import annotations

import struct
from collections.abc import Sequence

from gost2file.tables import BYTE_TABLES

# =============================================================================
# Constants
# =============================================================================

BLOCK_SIZE = 16
ROUNDS = 32
ROTATION = 11
SUBKEY_COUNT = 2 * ROUNDS

WORD_MASK = (1 << 64) - 1

_BLOCK_FORMAT = ">QQ"


def rotl64(x: int, n: int) -> int:
    """Rotate a 64-bit word left by ``n`` bits."""
    return ((x << n) | (x >> (64 - n))) & WORD_MASK


# Rotation distributes over OR of disjoint bit fields, so each byte
# position gets its own table with the substitution already shifted into
# place and rotated. Entry order matches BYTE_TABLES: most significant first.
_ROUND_TABLES = tuple(
    tuple(rotl64(table[i] << (56 - 8 * position), ROTATION) for i in range(256))
    for position, table in enumerate(BYTE_TABLES)
)


# =============================================================================
# Round Function
# =============================================================================


def round_function(x: int) -> int:
    """The nonlinear/diffusion primitive f(x)."""
    t0, t1, t2, t3, t4, t5, t6, t7 = _ROUND_TABLES
    return (
        t0[x >> 56]
        | t1[(x >> 48) & 0xFF]
        | t2[(x >> 40) & 0xFF]
        | t3[(x >> 32) & 0xFF]
        | t4[(x >> 24) & 0xFF]
        | t5[(x >> 16) & 0xFF]
        | t6[(x >> 8) & 0xFF]
        | t7[x & 0xFF]
    )


def _check_schedule(subkeys: Sequence[int]) -> None:
    if len(subkeys) != SUBKEY_COUNT:
        raise ValueError(f"Key schedule must have {SUBKEY_COUNT} subkeys, got {len(subkeys)}")


# =============================================================================
# Block Transforms (word level)
# =============================================================================


def encrypt_block(a: int, b: int, subkeys: Sequence[int]) -> tuple[int, int]:
    """Encrypt one block given as two 64-bit halves.

    Round i: b ^= f(a + k[2i]); a ^= f(b + k[2i+1]). Output is (b, a).
    """
    _check_schedule(subkeys)
    f = round_function
    k = 0
    for _ in range(ROUNDS):
        b ^= f((a + subkeys[k]) & WORD_MASK)
        a ^= f((b + subkeys[k + 1]) & WORD_MASK)
        k += 2
    return b, a


def decrypt_block(a: int, b: int, subkeys: Sequence[int]) -> tuple[int, int]:
    """Invert ``encrypt_block``: subkeys consumed 63 down to 0."""
    _check_schedule(subkeys)
    f = round_function
    k = SUBKEY_COUNT - 1
    for _ in range(ROUNDS):
        b ^= f((a + subkeys[k]) & WORD_MASK)
        a ^= f((b + subkeys[k - 1]) & WORD_MASK)
        k -= 2
    return b, a


# =============================================================================
# Block Transforms (byte level)
# =============================================================================


def block_to_words(block: bytes | bytearray) -> tuple[int, int]:
    """Split a 16-byte block into two big-endian 64-bit words."""
    if len(block) != BLOCK_SIZE:
        raise ValueError(f"Block must be {BLOCK_SIZE} bytes, got {len(block)}")
    return struct.unpack(_BLOCK_FORMAT, block)


def words_to_block(a: int, b: int) -> bytes:
    """Join two 64-bit words into a 16-byte big-endian block."""
    return struct.pack(_BLOCK_FORMAT, a, b)


def encrypt_block_bytes(block: bytes | bytearray, subkeys: Sequence[int]) -> bytes:
    """Encrypt a single 16-byte block."""
    return words_to_block(*encrypt_block(*block_to_words(block), subkeys))


def decrypt_block_bytes(block: bytes | bytearray, subkeys: Sequence[int]) -> bytes:
    """Decrypt a single 16-byte block."""
    return words_to_block(*decrypt_block(*block_to_words(block), subkeys))
