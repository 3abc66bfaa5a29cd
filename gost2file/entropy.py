"""
IV sources.

An IV source is a zero-argument callable returning exactly 16 bytes.
Sources are ranked: the OS CSPRNG first (``secrets``, which reads the
same kernel source as ``os.urandom``), then a time-seeded PRNG as a last
resort that exists only for availability. The last one is predictable
and gives no confidentiality guarantee.
"""

from __future__ import annotations

import random
import secrets
import time
from collections.abc import Callable, Sequence

import structlog

from gost2file.cipher import BLOCK_SIZE

log = structlog.get_logger()

IV_SIZE = BLOCK_SIZE

IVSource = Callable[[], bytes]


def system_iv() -> bytes:
    """Preferred source: the ``secrets`` CSPRNG."""
    return secrets.token_bytes(IV_SIZE)


def time_seeded_iv() -> bytes:
    """LAST RESORT: PRNG seeded from the wall clock. Not for confidentiality."""
    log.warning(
        "weak_iv_source",
        source="time_seeded",
        msg="IV is predictable; output is not suitable for confidentiality",
    )
    rng = random.Random(int(time.time()))
    return bytes(rng.getrandbits(8) for _ in range(IV_SIZE))


class RankedIVSource:
    """Try each provider in order until one yields an IV.

    A provider is skipped when it raises ``OSError`` or
    ``NotImplementedError``, or returns the wrong number of bytes.
    """

    def __init__(self, providers: Sequence[IVSource]) -> None:
        if not providers:
            raise ValueError("RankedIVSource needs at least one provider")
        self.providers = tuple(providers)

    def __call__(self) -> bytes:
        for provider in self.providers:
            name = getattr(provider, "__name__", type(provider).__name__)
            try:
                iv = provider()
            except (OSError, NotImplementedError) as e:
                log.warning("iv_source_failed", source=name, error=str(e))
                continue
            if len(iv) != IV_SIZE:
                log.warning("iv_source_bad_length", source=name, length=len(iv))
                continue
            return bytes(iv)
        raise RuntimeError("No IV source available")


def default_iv_source(*, allow_weak: bool = True) -> RankedIVSource:
    """The standard ranking; ``allow_weak=False`` drops the time-seeded fallback."""
    providers: list[IVSource] = [system_iv]
    if allow_weak:
        providers.append(time_seeded_iv)
    return RankedIVSource(providers)


class FixedIV:
    """Deterministic IV source for tests and vector generation."""

    def __init__(self, iv: bytes) -> None:
        if len(iv) != IV_SIZE:
            raise ValueError(f"IV must be {IV_SIZE} bytes, got {len(iv)}")
        self.iv = bytes(iv)
        self.calls = 0

    def __call__(self) -> bytes:
        self.calls += 1
        return self.iv
