"""
Scoped handling of sensitive buffers.

Passwords and key material live in ``bytearray`` objects so they can be
overwritten in place once they are no longer needed.
"""

from __future__ import annotations

import contextlib
from collections.abc import Iterator


def wipe(buffer: bytearray) -> None:
    """Overwrite every byte of ``buffer`` with zero, keeping its length."""
    buffer[:] = bytes(len(buffer))


@contextlib.contextmanager
def scrubbed(buffer: bytearray) -> Iterator[bytearray]:
    """Yield ``buffer`` and wipe it on every exit path.

    Example:
        with scrubbed(bytearray(password)) as pw:
            schedule = KeySchedule.from_password(pw)
    """
    if not isinstance(buffer, bytearray):
        raise TypeError(f"Sensitive buffer must be a bytearray, got {type(buffer).__name__}")
    try:
        yield buffer
    finally:
        wipe(buffer)
