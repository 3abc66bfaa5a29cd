"""
gost2file: GOST2-128 password-keyed file encryption.

CBC over the GOST2-128 block cipher, keyed by an MD2-style 4096-bit
password hash, with a SHA-256 integrity trailer over the ciphertext.

Logging goes through structlog; see ``gost2file.logs.configure_logging``.
"""

from __future__ import annotations

__version__ = "1.0.0"

from gost2file.codec import (  # noqa: E402
    CodecState,
    ContainerLayout,
    DecryptResult,
    EncryptResult,
    Gost2Codec,
    StreamCodec,
    decrypt_bytes,
    encrypt_bytes,
)
from gost2file.errors import (  # noqa: E402
    ContainerOpenError,
    FormatError,
    Gost2Error,
    PaddingError,
    StreamIOError,
)
from gost2file.files import decrypt_file, encrypt_file, inspect_container  # noqa: E402
from gost2file.keyhash import KeyDerivationHash, KeySchedule, derive_subkeys  # noqa: E402

__all__ = [
    "CodecState",
    "ContainerLayout",
    "ContainerOpenError",
    "DecryptResult",
    "EncryptResult",
    "FormatError",
    "Gost2Codec",
    "Gost2Error",
    "KeyDerivationHash",
    "KeySchedule",
    "PaddingError",
    "StreamCodec",
    "StreamIOError",
    "__version__",
    "decrypt_bytes",
    "decrypt_file",
    "derive_subkeys",
    "encrypt_bytes",
    "encrypt_file",
    "inspect_container",
]
