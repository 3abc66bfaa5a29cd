"""
GOST2-128 Substitution Tables

Constant data shared by the key-derivation hash and the block cipher:

- SBOX: the 256-entry permutation driving the key-derivation hash
- K1..K16: sixteen 4-bit permutations (nibble tables)
- K21..K175: eight 256-entry byte tables, each built from two nibble
  tables (high nibble from the even table, low nibble from the odd one)

Everything here is computed once at import and exposed as immutable
``bytes``. Nothing in this module is ever mutated.
"""

from __future__ import annotations

# =============================================================================
# Key-derivation hash substitution table
# =============================================================================

SBOX = bytes(
    [
        13, 199, 11, 67, 237, 193, 164, 77, 115, 184, 141, 222, 73, 38, 147, 36,
        150, 87, 21, 104, 12, 61, 156, 101, 111, 145, 119, 22, 207, 35, 198, 37,
        171, 167, 80, 30, 219, 28, 213, 121, 86, 29, 214, 242, 6, 4, 89, 162,
        110, 175, 19, 157, 3, 88, 234, 94, 144, 118, 159, 239, 100, 17, 182, 173,
        238, 68, 16, 79, 132, 54, 163, 52, 9, 58, 57, 55, 229, 192, 170, 226,
        56, 231, 187, 158, 70, 224, 233, 245, 26, 47, 32, 44, 247, 8, 251, 20,
        197, 185, 109, 153, 204, 218, 93, 178, 212, 137, 84, 174, 24, 120, 130, 149,
        72, 180, 181, 208, 255, 189, 152, 18, 143, 176, 60, 249, 27, 227, 128, 139,
        243, 253, 59, 123, 172, 108, 211, 96, 138, 10, 215, 42, 225, 40, 81, 65,
        90, 25, 98, 126, 154, 64, 124, 116, 122, 5, 1, 168, 83, 190, 131, 191,
        244, 240, 235, 177, 155, 228, 125, 66, 43, 201, 248, 220, 129, 188, 230, 62,
        75, 71, 78, 34, 31, 216, 254, 136, 91, 114, 106, 46, 217, 196, 92, 151,
        209, 133, 51, 236, 33, 252, 127, 179, 69, 7, 183, 105, 146, 97, 39, 15,
        205, 112, 200, 166, 223, 45, 48, 246, 186, 41, 148, 140, 107, 76, 85, 95,
        194, 142, 50, 49, 134, 23, 135, 169, 221, 210, 203, 63, 165, 82, 161, 202,
        53, 14, 206, 232, 103, 102, 195, 117, 250, 99, 0, 74, 160, 241, 2, 113,
    ]
)

# =============================================================================
# Nibble tables
# =============================================================================

K1 = bytes([0x4, 0xA, 0x9, 0x2, 0xD, 0x8, 0x0, 0xE, 0x6, 0xB, 0x1, 0xC, 0x7, 0xF, 0x5, 0x3])
K2 = bytes([0xE, 0xB, 0x4, 0xC, 0x6, 0xD, 0xF, 0xA, 0x2, 0x3, 0x8, 0x1, 0x0, 0x7, 0x5, 0x9])
K3 = bytes([0x5, 0x8, 0x1, 0xD, 0xA, 0x3, 0x4, 0x2, 0xE, 0xF, 0xC, 0x7, 0x6, 0x0, 0x9, 0xB])
K4 = bytes([0x7, 0xD, 0xA, 0x1, 0x0, 0x8, 0x9, 0xF, 0xE, 0x4, 0x6, 0xC, 0xB, 0x2, 0x5, 0x3])
K5 = bytes([0x6, 0xC, 0x7, 0x1, 0x5, 0xF, 0xD, 0x8, 0x4, 0xA, 0x9, 0xE, 0x0, 0x3, 0xB, 0x2])
K6 = bytes([0x4, 0xB, 0xA, 0x0, 0x7, 0x2, 0x1, 0xD, 0x3, 0x6, 0x8, 0x5, 0x9, 0xC, 0xF, 0xE])
K7 = bytes([0xD, 0xB, 0x4, 0x1, 0x3, 0xF, 0x5, 0x9, 0x0, 0xA, 0xE, 0x7, 0x6, 0x8, 0x2, 0xC])
K8 = bytes([0x1, 0xF, 0xD, 0x0, 0x5, 0x7, 0xA, 0x4, 0x9, 0x2, 0x3, 0xE, 0x6, 0xB, 0x8, 0xC])

K9 = bytes([0xC, 0x4, 0x6, 0x2, 0xA, 0x5, 0xB, 0x9, 0xE, 0x8, 0xD, 0x7, 0x0, 0x3, 0xF, 0x1])
K10 = bytes([0x6, 0x8, 0x2, 0x3, 0x9, 0xA, 0x5, 0xC, 0x1, 0xE, 0x4, 0x7, 0xB, 0xD, 0x0, 0xF])
K11 = bytes([0xB, 0x3, 0x5, 0x8, 0x2, 0xF, 0xA, 0xD, 0xE, 0x1, 0x7, 0x4, 0xC, 0x9, 0x6, 0x0])
K12 = bytes([0xC, 0x8, 0x2, 0x1, 0xD, 0x4, 0xF, 0x6, 0x7, 0x0, 0xA, 0x5, 0x3, 0xE, 0x9, 0xB])
K13 = bytes([0x7, 0xF, 0x5, 0xA, 0x8, 0x1, 0x6, 0xD, 0x0, 0x9, 0x3, 0xE, 0xB, 0x4, 0x2, 0xC])
K14 = bytes([0x5, 0xD, 0xF, 0x6, 0x9, 0x2, 0xC, 0xA, 0xB, 0x7, 0x8, 0x1, 0x4, 0x3, 0xE, 0x0])
K15 = bytes([0x8, 0xE, 0x2, 0x5, 0x6, 0x9, 0x1, 0xC, 0xF, 0x4, 0xB, 0x0, 0xD, 0xA, 0x3, 0x7])
K16 = bytes([0x1, 0x7, 0xE, 0xD, 0x0, 0x5, 0x8, 0x3, 0x4, 0xF, 0xA, 0x6, 0x9, 0xC, 0xB, 0x2])

NIBBLE_TABLES = (K1, K2, K3, K4, K5, K6, K7, K8, K9, K10, K11, K12, K13, K14, K15, K16)


# =============================================================================
# Byte tables
# =============================================================================


def combine_nibble_tables(high: bytes, low: bytes) -> bytes:
    """Build a 256-entry byte table from two nibble tables.

    Entry ``i`` is ``high[i >> 4] << 4 | low[i & 15]``.
    """
    if len(high) != 16 or len(low) != 16:
        raise ValueError("Nibble tables must have 16 entries")
    return bytes((high[i >> 4] << 4) | low[i & 15] for i in range(256))


K21 = combine_nibble_tables(K2, K1)
K43 = combine_nibble_tables(K4, K3)
K65 = combine_nibble_tables(K6, K5)
K87 = combine_nibble_tables(K8, K7)
K109 = combine_nibble_tables(K10, K9)
K131 = combine_nibble_tables(K12, K11)
K153 = combine_nibble_tables(K14, K13)
K175 = combine_nibble_tables(K16, K15)

# Substitution order for the high word (y) and the low word (z) of the
# round function, most significant byte first.
HIGH_WORD_TABLES = (K87, K65, K43, K21)
LOW_WORD_TABLES = (K175, K153, K131, K109)

BYTE_TABLES = HIGH_WORD_TABLES + LOW_WORD_TABLES
