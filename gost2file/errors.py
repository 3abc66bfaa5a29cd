"""Exceptions raised by the GOST2-128 file codec."""

from __future__ import annotations


class Gost2Error(Exception):
    """Base class for codec failures."""


class FormatError(Gost2Error, ValueError):
    """Container is too small or its ciphertext region is misaligned."""


class PaddingError(Gost2Error, ValueError):
    """Final block carries invalid padding.

    Plaintext preceding the final block may already have been written to
    the sink; ``bytes_written`` records how much.
    """

    def __init__(self, message: str, *, bytes_written: int = 0) -> None:
        super().__init__(message)
        self.bytes_written = bytes_written


class StreamIOError(Gost2Error, OSError):
    """A source returned fewer bytes than required or a sink accepted fewer."""


class ContainerOpenError(Gost2Error, OSError):
    """Input could not be opened or output could not be created."""
