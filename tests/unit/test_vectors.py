"""
Known-answer tests against generated vectors.

Vectors live in tests/vectors/ and are produced by
specs/generate_vectors.py and committed; a missing file fails the test.
"""

from __future__ import annotations

import hashlib
from pathlib import Path

import pytest

from gost2file.cipher import decrypt_block_bytes, encrypt_block_bytes, round_function
from gost2file.codec import decrypt_bytes, encrypt_bytes, parse_container
from gost2file.entropy import FixedIV
from gost2file.files import decrypt_file
from gost2file.keyhash import KeyDerivationHash, expand_digest
from lib.vectors import VECTORS_DIR, deterministic_bytes, find_vector, load_vectors

pytestmark = pytest.mark.vectors


@pytest.fixture(scope="module")
def cipher_vectors() -> dict:
    return load_vectors("cipher_vectors.json5")


@pytest.fixture(scope="module")
def kdf_vectors() -> dict:
    return load_vectors("kdf_vectors.json5")


@pytest.fixture(scope="module")
def container_vectors() -> dict:
    return load_vectors("container_vectors.json5")


class TestCipherVectors:
    def test_round_function(self, cipher_vectors: dict) -> None:
        for vector in cipher_vectors["round_function"]:
            assert round_function(int(vector["input"], 16)) == int(vector["output"], 16)

    def test_synthetic_subkeys_match_seed(self, cipher_vectors: dict) -> None:
        subkeys = expand_digest(deterministic_bytes("vector-subkeys", 512))
        assert [f"{k:016x}" for k in subkeys] == cipher_vectors["synthetic_subkeys"]

    @pytest.mark.parametrize(
        "name",
        [
            "zero_key_zero_block",
            "zero_key_counting_block",
            "synthetic_key_zero_block",
            "synthetic_key_ascii_block",
            "synthetic_key_random_block",
        ],
    )
    def test_block(self, cipher_vectors: dict, name: str) -> None:
        vector = find_vector(cipher_vectors, name)
        if vector["subkeys"] == "zero":
            subkeys = [0] * 64
        else:
            subkeys = [int(k, 16) for k in cipher_vectors["synthetic_subkeys"]]
        plaintext = bytes.fromhex(vector["plaintext"])
        ciphertext = bytes.fromhex(vector["ciphertext"])

        assert encrypt_block_bytes(plaintext, subkeys) == ciphertext
        assert decrypt_block_bytes(ciphertext, subkeys) == plaintext


@pytest.mark.slow
class TestKdfVectors:
    @pytest.mark.parametrize(
        "name",
        ["empty", "single_byte", "ascii", "passphrase", "max_cli_length", "spans_two_windows"],
    )
    def test_derivation(self, kdf_vectors: dict, name: str) -> None:
        vector = find_vector(kdf_vectors, name)
        ctx = KeyDerivationHash()
        ctx.update(bytes.fromhex(vector["password"]))
        digest = ctx.finalize()

        assert hashlib.sha256(digest).hexdigest() == vector["digest_sha256"]
        assert [f"{k:016x}" for k in expand_digest(digest)] == vector["subkeys"]


class TestContainerVectors:
    @pytest.fixture(scope="class")
    def subkeys(self, container_vectors: dict, password_subkeys: list[int]) -> list[int]:
        assert bytes.fromhex(container_vectors["password"]) == b"correct horse battery staple"
        return password_subkeys

    @pytest.mark.parametrize("length", [0, 1, 15, 16, 17, 100])
    def test_encrypt(self, container_vectors: dict, subkeys: list[int], length: int) -> None:
        vector = find_vector(container_vectors, f"plaintext_{length}_bytes")
        iv = bytes.fromhex(container_vectors["iv"])
        container = encrypt_bytes(
            bytes.fromhex(vector["plaintext"]), subkeys, iv_source=FixedIV(iv)
        )
        assert container.hex() == vector["container"]
        assert len(container) == vector["container_length"]

    @pytest.mark.parametrize("length", [0, 1, 15, 16, 17, 100])
    def test_decrypt(self, container_vectors: dict, subkeys: list[int], length: int) -> None:
        vector = find_vector(container_vectors, f"plaintext_{length}_bytes")
        container = bytes.fromhex(vector["container"])
        plaintext, result = decrypt_bytes(container, subkeys)
        assert plaintext.hex() == vector["plaintext"]
        assert result.authenticated
        assert parse_container(container).iv.hex() == container_vectors["iv"]


@pytest.mark.slow
class TestReferenceContainer:
    """interop_70001.gost2 was written by the C gost2-128-cbc utility.

    The plaintext spans its 64 KiB read boundary with an unaligned tail.
    """

    PLAINTEXT_SEED = "interop-plaintext"
    PLAINTEXT_LENGTH = 70001

    def test_decrypt_file(self, tmp_path: Path) -> None:
        out, result = decrypt_file(
            VECTORS_DIR / "interop_70001.gost2",
            b"correct horse battery staple",
            tmp_path / "interop.bin",
        )
        assert result.authenticated
        assert result.plaintext_length == self.PLAINTEXT_LENGTH
        assert out.read_bytes() == deterministic_bytes(self.PLAINTEXT_SEED, self.PLAINTEXT_LENGTH)

    def test_encrypt_matches_byte_for_byte(self, password_subkeys: list[int]) -> None:
        reference = (VECTORS_DIR / "interop_70001.gost2").read_bytes()
        assert parse_container(reference).iv == deterministic_bytes("interop-iv", 16)

        container = encrypt_bytes(
            deterministic_bytes(self.PLAINTEXT_SEED, self.PLAINTEXT_LENGTH),
            password_subkeys,
            iv_source=FixedIV(deterministic_bytes("interop-iv", 16)),
        )
        assert container == reference
