"""
Runtime configuration from the environment.

Variables:
    GOST2_LOG_LEVEL: structlog level name (default: warning)
    GOST2_CHUNK_SIZE: read size in bytes, positive multiple of 16 (default: 65536)
    GOST2_ALLOW_WEAK_IV: permit the time-seeded IV fallback (default: 1)
"""

from __future__ import annotations

import os
from dataclasses import dataclass

import structlog

from gost2file.cipher import BLOCK_SIZE

DEFAULT_LOG_LEVEL = "warning"
DEFAULT_CHUNK_SIZE = 64 * 1024
DEFAULT_ALLOW_WEAK_IV = True

_TRUE_VALUES = ("1", "true", "yes", "on")
_FALSE_VALUES = ("0", "false", "no", "off")


def require_env(name: str, default: str | None = None) -> str:
    """Get an environment variable or fail with a clear error.

    Args:
        name: Environment variable name.
        default: Default value if not set (None means required).

    Returns:
        The environment variable value.

    Raises:
        RuntimeError: If the variable is not set and no default.
    """
    value = os.environ.get(name, default)
    if value is None:
        raise RuntimeError(f"Required environment variable {name} is not set.")
    return value


def env_flag(name: str, default: bool) -> bool:
    """Read a boolean flag such as ``1``/``0`` or ``yes``/``no``."""
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    value = raw.strip().lower()
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    raise ValueError(f"{name} must be a boolean flag, got {raw!r}")


def validate_chunk_size(chunk_size: int) -> int:
    """Chunk sizes must keep decrypt reads block-aligned."""
    if chunk_size <= 0 or chunk_size % BLOCK_SIZE != 0:
        raise ValueError(
            f"Chunk size must be a positive multiple of {BLOCK_SIZE}, got {chunk_size}"
        )
    return chunk_size


@dataclass(frozen=True)
class Settings:
    """Validated runtime settings."""

    log_level: str = DEFAULT_LOG_LEVEL
    chunk_size: int = DEFAULT_CHUNK_SIZE
    allow_weak_iv: bool = DEFAULT_ALLOW_WEAK_IV

    def __post_init__(self) -> None:
        if self.log_level.lower() not in structlog.stdlib.NAME_TO_LEVEL:
            raise ValueError(f"Unknown log level: {self.log_level!r}")
        validate_chunk_size(self.chunk_size)


def load_settings() -> Settings:
    """Build Settings from GOST2_* environment variables."""
    raw_chunk = require_env("GOST2_CHUNK_SIZE", str(DEFAULT_CHUNK_SIZE))
    try:
        chunk_size = int(raw_chunk)
    except ValueError:
        raise ValueError(f"GOST2_CHUNK_SIZE must be an integer, got {raw_chunk!r}") from None

    return Settings(
        log_level=require_env("GOST2_LOG_LEVEL", DEFAULT_LOG_LEVEL).lower(),
        chunk_size=chunk_size,
        allow_weak_iv=env_flag("GOST2_ALLOW_WEAK_IV", DEFAULT_ALLOW_WEAK_IV),
    )
