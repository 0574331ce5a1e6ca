"""
Core cryptographic utilities.

Provides the Leaf Hasher and parent combination used by core.merkle.
"""
from .hashing import (
    ALGORITHM_CODES,
    DEFAULT_ALGORITHM,
    DEFAULT_HASHER,
    Hasher,
    combine,
    from_hex,
    hash_leaf,
    sha256,
    to_hex,
)

__all__ = [
    "ALGORITHM_CODES",
    "DEFAULT_ALGORITHM",
    "DEFAULT_HASHER",
    "Hasher",
    "combine",
    "from_hex",
    "hash_leaf",
    "sha256",
    "to_hex",
]
