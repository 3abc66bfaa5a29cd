"""
Integrity trailer hashing.

The trailer is a plain SHA-256 over the ciphertext region. It detects
corruption; it does not authenticate the sender, since anyone can
recompute it over modified ciphertext.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Protocol

from cryptography.hazmat.primitives import constant_time, hashes

TAG_SIZE = 32


class IntegrityHash(Protocol):
    """Streaming hash with init (construction), update and finalize."""

    def update(self, data: bytes) -> None: ...

    def finalize(self) -> bytes: ...


IntegrityFactory = Callable[[], IntegrityHash]


class Sha256IntegrityHash:
    """SHA-256 from ``cryptography`` behind the IntegrityHash interface."""

    digest_size = TAG_SIZE

    def __init__(self) -> None:
        self._ctx = hashes.Hash(hashes.SHA256())

    def update(self, data: bytes) -> None:
        self._ctx.update(bytes(data))

    def finalize(self) -> bytes:
        return self._ctx.finalize()


def tags_match(computed: bytes | bytearray, stored: bytes | bytearray) -> bool:
    """Constant-time comparison of two trailers."""
    return constant_time.bytes_eq(bytes(computed), bytes(stored))
