"""
Substitution table tests.

The tables are constants of the file format: any change breaks every
existing container, so these tests pin their shape and a few entries.
"""

from __future__ import annotations

import pytest

from gost2file import tables
from gost2file.tables import (
    BYTE_TABLES,
    HIGH_WORD_TABLES,
    K21,
    K65,
    K87,
    K109,
    K175,
    LOW_WORD_TABLES,
    NIBBLE_TABLES,
    SBOX,
    combine_nibble_tables,
)


class TestSbox:
    """The key-derivation substitution table."""

    def test_length(self) -> None:
        assert len(SBOX) == 256

    def test_is_permutation(self) -> None:
        assert sorted(SBOX) == list(range(256))

    def test_first_and_last_entries(self) -> None:
        assert SBOX[0] == 13
        assert SBOX[1] == 199
        assert SBOX[15] == 36

    def test_immutable(self) -> None:
        with pytest.raises(TypeError):
            SBOX[0] = 0  # type: ignore[index]


class TestNibbleTables:
    """K1..K16."""

    def test_sixteen_tables(self) -> None:
        assert len(NIBBLE_TABLES) == 16

    @pytest.mark.parametrize("index", range(16))
    def test_each_is_a_4bit_permutation(self, index: int) -> None:
        assert sorted(NIBBLE_TABLES[index]) == list(range(16))

    def test_k1_values(self) -> None:
        assert list(tables.K1) == [
            0x4, 0xA, 0x9, 0x2, 0xD, 0x8, 0x0, 0xE,
            0x6, 0xB, 0x1, 0xC, 0x7, 0xF, 0x5, 0x3,
        ]


class TestByteTables:
    """K21..K175, each combining two nibble tables."""

    def test_entry_zero(self) -> None:
        # High nibble from the even table, low nibble from the odd one.
        assert K87[0] == 0x1D
        assert K65[0] == 0x46
        assert K21[0] == 0xE4
        assert K175[0] == 0x18
        assert K109[0] == 0x6C

    @pytest.mark.parametrize("table", BYTE_TABLES)
    def test_each_is_a_byte_permutation(self, table: bytes) -> None:
        assert sorted(table) == list(range(256))

    def test_combination_rule(self) -> None:
        for i in range(256):
            assert K21[i] == (tables.K2[i >> 4] << 4) | tables.K1[i & 15]

    def test_word_ordering(self) -> None:
        assert HIGH_WORD_TABLES == (K87, tables.K65, tables.K43, K21)
        assert LOW_WORD_TABLES == (K175, tables.K153, tables.K131, K109)
        assert BYTE_TABLES == HIGH_WORD_TABLES + LOW_WORD_TABLES

    def test_combine_rejects_wrong_size(self) -> None:
        with pytest.raises(ValueError, match="16 entries"):
            combine_nibble_tables(bytes(15), bytes(16))
