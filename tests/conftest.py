"""
Pytest configuration and fixtures for the gost2file test suite.

This module provides:
- Deterministic key material (cheap synthetic subkeys and one real
  password-derived schedule per session)
- Fixed IV sources for reproducible containers
- Markers for slow and adversarial tests

Key derivation runs two full compressions of a 1536-byte buffer in pure
Python, so password-derived schedules are session-scoped and shared.
Tests that only need *a* valid schedule use the synthetic one.
"""

from __future__ import annotations

import os
from collections.abc import Iterator

import pytest
import structlog

from gost2file.entropy import FixedIV
from gost2file.keyhash import derive_subkeys, expand_digest
from lib.vectors import VECTORS_DIR, deterministic_bytes

# Configure structlog for tests
structlog.configure(
    processors=[
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.add_log_level,
        structlog.dev.ConsoleRenderer(),
    ],
)
log = structlog.get_logger()

TEST_PASSWORD = b"correct horse battery staple"
WRONG_PASSWORD = b"correct horse battery stable"


# =============================================================================
# Session-scoped fixtures (shared across all tests)
# =============================================================================


@pytest.fixture(scope="session")
def synthetic_subkeys() -> list[int]:
    """64 subkeys sliced from deterministic bytes; no key derivation cost.

    These are well-known test keys that should NEVER be used in production.
    """
    return expand_digest(deterministic_bytes("gost2-subkeys", 512))


@pytest.fixture(scope="session")
def other_synthetic_subkeys() -> list[int]:
    """A second, unrelated synthetic schedule."""
    return expand_digest(deterministic_bytes("gost2-subkeys-other", 512))


@pytest.fixture(scope="session")
def password_subkeys() -> list[int]:
    """Subkeys derived from TEST_PASSWORD (computed once per session)."""
    return derive_subkeys(TEST_PASSWORD)


@pytest.fixture(scope="session")
def wrong_password_subkeys() -> list[int]:
    """Subkeys derived from WRONG_PASSWORD (computed once per session)."""
    return derive_subkeys(WRONG_PASSWORD)


# =============================================================================
# Function-scoped fixtures (fresh for each test)
# =============================================================================


@pytest.fixture
def restore_structlog() -> Iterator[None]:
    """Undo the ``configure_logging`` call a CLI test makes."""
    config = structlog.get_config()
    yield
    structlog.configure(**config)


@pytest.fixture
def fixed_iv() -> FixedIV:
    """IV source that always returns the same 16 bytes."""
    return FixedIV(deterministic_bytes("gost2-iv", 16))


@pytest.fixture
def clean_env(monkeypatch: pytest.MonkeyPatch) -> pytest.MonkeyPatch:
    """Remove every GOST2_* variable so settings start from defaults."""
    for name in list(os.environ):
        if name.startswith("GOST2_"):
            monkeypatch.delenv(name)
    return monkeypatch


# =============================================================================
# Pytest hooks and configuration
# =============================================================================


def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )
    config.addinivalue_line("markers", "adversarial: tampering and misuse tests")
    config.addinivalue_line("markers", "vectors: known-answer tests from tests/vectors")


def pytest_report_header(config):
    """Add information to the pytest header."""
    lines = ["GOST2-128 File Codec Test Suite"]
    vector_files = sorted(VECTORS_DIR.glob("*.json5")) if VECTORS_DIR.is_dir() else []
    if vector_files:
        lines.append(f"  Vectors: {', '.join(p.name for p in vector_files)}")
    else:
        lines.append("  Vectors: none (run: python specs/generate_vectors.py)")
    return lines
