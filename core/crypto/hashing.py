"""
Hashing Utilities
Leaf hashing and parent combination for Merkle commitments.

This module provides:
- Hasher: a fixed hash function bound to leaf/parent hashing rules
- DEFAULT_HASHER (SHA-256) and module-level hash_leaf / combine shortcuts
- Hex encoding/decoding with 0x prefix

Commitment Rules (Hard Contracts):
1. Leaf digest:   H(0x00 || record)
2. Parent digest: H(0x01 || left || right)
3. Both operands of a parent hash must be exactly digest_size bytes,
   so the concatenation is unambiguous and left/right cannot be swapped
   without changing the result.

Security/Determinism Notes:
- Records are hashed exactly as given; no implicit encoding of str
- A Hasher never changes its algorithm after construction
"""
from __future__ import annotations

import hashlib
from dataclasses import dataclass, field
from typing import Union

from core.schemas.errors import UnsupportedHashAlgorithmError


BytesLike = Union[bytes, bytearray, memoryview]

# Domain separation tags
LEAF_PREFIX: bytes = b"\x00"
NODE_PREFIX: bytes = b"\x01"

DEFAULT_ALGORITHM = "sha256"

# Supported fixed-output algorithms and their stable wire codes.
ALGORITHM_CODES: dict[str, int] = {
    "sha256": 0,
    "sha3_256": 1,
    "blake2b": 2,
    "blake2s": 3,
    "sha512": 4,
    "sha224": 5,
    "sha384": 6,
    "sha3_512": 7,
}

ALGORITHMS_BY_CODE: dict[int, str] = {code: name for name, code in ALGORITHM_CODES.items()}


def _as_bytes(data: BytesLike, what: str) -> bytes:
    if isinstance(data, bytes):
        return data
    if isinstance(data, (bytearray, memoryview)):
        return bytes(data)
    raise TypeError(f"{what} must be bytes-like, got {type(data).__name__}")


@dataclass(frozen=True)
class Hasher:
    """
    A fixed, collision-resistant hash function plus the Merkle hashing rules.

    The same Hasher must be used to build a tree and to verify its proofs.

    Attributes:
        algorithm: hashlib algorithm name (see ALGORITHM_CODES)
        digest_size: output size in bytes, derived from the algorithm

    Example:
        >>> h = Hasher("sha256")
        >>> len(h.hash_leaf(b"record"))
        32
    """
    algorithm: str = DEFAULT_ALGORITHM
    digest_size: int = field(init=False)

    def __post_init__(self) -> None:
        name = self.algorithm.lower().replace("-", "_")
        if name not in ALGORITHM_CODES:
            raise UnsupportedHashAlgorithmError(self.algorithm)
        object.__setattr__(self, "algorithm", name)
        object.__setattr__(self, "digest_size", hashlib.new(name).digest_size)

    @property
    def code(self) -> int:
        """One-byte wire code identifying the algorithm."""
        return ALGORITHM_CODES[self.algorithm]

    @classmethod
    def from_code(cls, code: int) -> "Hasher":
        """Look up a Hasher by its wire code."""
        try:
            return cls(ALGORITHMS_BY_CODE[code])
        except KeyError:
            raise UnsupportedHashAlgorithmError(f"code:{code}") from None

    def digest(self, data: BytesLike) -> bytes:
        """Raw hash of data, with no domain tag."""
        return hashlib.new(self.algorithm, _as_bytes(data, "data")).digest()

    def hash_leaf(self, record: BytesLike) -> bytes:
        """
        Compute the leaf digest of a record: H(0x00 || record).

        Pure function of the record bytes.

        Raises:
            TypeError: If record is not bytes-like
        """
        h = hashlib.new(self.algorithm)
        h.update(LEAF_PREFIX)
        h.update(_as_bytes(record, "record"))
        return h.digest()

    def combine(self, left: BytesLike, right: BytesLike) -> bytes:
        """
        Compute the parent digest of two child digests: H(0x01 || left || right).

        Order sensitive: combine(a, b) != combine(b, a) unless a == b.

        Raises:
            TypeError: If either operand is not bytes-like
            ValueError: If either operand is not digest_size bytes long
        """
        left_b = _as_bytes(left, "left digest")
        right_b = _as_bytes(right, "right digest")
        if len(left_b) != self.digest_size or len(right_b) != self.digest_size:
            raise ValueError(
                f"Child digests must be {self.digest_size} bytes for {self.algorithm}, "
                f"got {len(left_b)} and {len(right_b)}"
            )
        h = hashlib.new(self.algorithm)
        h.update(NODE_PREFIX)
        h.update(left_b)
        h.update(right_b)
        return h.digest()


DEFAULT_HASHER = Hasher(DEFAULT_ALGORITHM)


def sha256(data: bytes) -> bytes:
    """
    Compute SHA-256 hash of raw bytes.

    Example:
        >>> sha256(b"hello").hex()
        '2cf24dba5fb0a30e26e83b2ac5b9e29e1b161e5c1fa7425e73043362938b9824'
    """
    return hashlib.sha256(data).digest()


def hash_leaf(record: BytesLike) -> bytes:
    """Leaf digest of record under DEFAULT_HASHER."""
    return DEFAULT_HASHER.hash_leaf(record)


def combine(left: BytesLike, right: BytesLike) -> bytes:
    """Parent digest of left and right under DEFAULT_HASHER."""
    return DEFAULT_HASHER.combine(left, right)


def to_hex(data: bytes) -> str:
    """
    Convert bytes to hexadecimal string with 0x prefix.

    Example:
        >>> to_hex(bytes.fromhex("deadbeef"))
        '0xdeadbeef'
    """
    return "0x" + data.hex()


def from_hex(hex_string: str) -> bytes:
    """
    Convert hexadecimal string (with 0x prefix) to bytes.

    Raises:
        ValueError: If string doesn't start with 0x, has odd length,
                   or contains invalid hex characters
    """
    if not hex_string.startswith("0x"):
        raise ValueError(
            f"Hex string must start with '0x' prefix, got: {hex_string[:10]}..."
        )

    hex_content = hex_string[2:]
    if len(hex_content) % 2 != 0:
        raise ValueError(
            f"Hex string must have even length after 0x prefix, "
            f"got length {len(hex_content)}"
        )

    try:
        return bytes.fromhex(hex_content)
    except ValueError as e:
        raise ValueError(f"Invalid hex characters in string: {e}") from e


__all__ = [
    "ALGORITHM_CODES",
    "DEFAULT_ALGORITHM",
    "DEFAULT_HASHER",
    "Hasher",
    "LEAF_PREFIX",
    "NODE_PREFIX",
    "combine",
    "from_hex",
    "hash_leaf",
    "sha256",
    "to_hex",
]
