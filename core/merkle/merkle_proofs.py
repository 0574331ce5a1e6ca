"""
Merkle Proofs
Inclusion proof generation, verification and serialization.

This module provides:
- ProofStep / MerkleProof: self-contained proof values (no tree reference)
- generate_proof: derive a proof for a leaf index from a built MerkleTree
- verify_proof: recompute the root from a proof and compare
- MerkleProof.to_bytes / from_bytes: compact binary wire format
- MerkleProof.to_dict / from_dict: hex JSON form
- MerkleProver / MerkleVerifier: class-based convenience wrappers

Binary layout (big-endian), field order leaf -> steps -> root:

    magic "MKP" | version u8 | algorithm code u8 | digest size u8 | leaf index u32
    leaf digest
    step count u16
    per step: side u8 (1 = sibling on left, 0 = right) | sibling digest
    root flag u8 (1 = present, 0 = absent) | root digest if present

A leaf index of 0xFFFFFFFF means "unknown".
"""
from __future__ import annotations

import logging
import struct
from dataclasses import dataclass, field
from typing import Any, Optional, Sequence

from core.crypto.hashing import (
    ALGORITHMS_BY_CODE,
    DEFAULT_ALGORITHM,
    DEFAULT_HASHER,
    Hasher,
    from_hex,
    to_hex,
)
from core.merkle.merkle_tree import MerkleTree, build_tree_from_records
from core.schemas.errors import (
    IndexOutOfRange,
    ProofDecodeError,
    UnsupportedHashAlgorithmError,
)


logger = logging.getLogger(__name__)

PROOF_MAGIC = b"MKP"
PROOF_VERSION = 1
UNKNOWN_INDEX = 0xFFFFFFFF

_HEADER = struct.Struct("!3sBBBI")
_COUNT = struct.Struct("!H")
_FLAG = struct.Struct("!B")


@dataclass(frozen=True)
class ProofStep:
    """
    One level of an inclusion proof.

    Attributes:
        sibling: Digest of the node paired with the current node
        sibling_is_left: True if the sibling is the left operand of combine
    """
    sibling: bytes
    sibling_is_left: bool


@dataclass(frozen=True)
class MerkleProof:
    """
    An inclusion proof for a single leaf.

    Attributes:
        leaf: The leaf digest being proven
        steps: One ProofStep per layer, from the leaf layer up to (not
               including) the root
        root: The root digest this proof was generated against, if known
        index: The 0-based leaf index (informational, not used to verify)
        algorithm: Name of the hash algorithm the proof was built with
    """
    leaf: bytes
    steps: tuple[ProofStep, ...] = field(default_factory=tuple)
    root: Optional[bytes] = None
    index: Optional[int] = None
    algorithm: str = DEFAULT_ALGORITHM

    def __post_init__(self) -> None:
        object.__setattr__(self, "steps", tuple(self.steps))
        if self.index is not None and self.index < 0:
            raise ValueError(f"Leaf index must be non-negative, got {self.index}")

    @property
    def siblings(self) -> list[bytes]:
        return [step.sibling for step in self.steps]

    @property
    def directions(self) -> list[bool]:
        return [step.sibling_is_left for step in self.steps]

    def __len__(self) -> int:
        return len(self.steps)

    # -------------------------------------------------------------------------
    # Binary codec
    # -------------------------------------------------------------------------

    def to_bytes(self) -> bytes:
        """
        Serialize the proof to the binary wire format.

        Raises:
            UnsupportedHashAlgorithmError: If algorithm has no wire code
            ValueError: If digests are inconsistent in size or there are
                        more steps than the format can hold
        """
        hasher = Hasher(self.algorithm)
        size = hasher.digest_size
        digests = [self.leaf, *self.siblings] + ([self.root] if self.root is not None else [])
        if any(len(d) != size for d in digests):
            raise ValueError(f"All proof digests must be {size} bytes for {hasher.algorithm}")
        if self.index is not None and self.index >= UNKNOWN_INDEX:
            raise ValueError(f"Leaf index too large for the wire format: {self.index}")
        if len(self.steps) > 0xFFFF:
            raise ValueError(f"Too many proof steps: {len(self.steps)}")

        index = UNKNOWN_INDEX if self.index is None else self.index
        parts = [
            _HEADER.pack(PROOF_MAGIC, PROOF_VERSION, hasher.code, size, index),
            bytes(self.leaf),
            _COUNT.pack(len(self.steps)),
        ]
        for step in self.steps:
            parts.append(_FLAG.pack(1 if step.sibling_is_left else 0))
            parts.append(bytes(step.sibling))
        if self.root is None:
            parts.append(_FLAG.pack(0))
        else:
            parts.append(_FLAG.pack(1))
            parts.append(bytes(self.root))
        return b"".join(parts)

    @classmethod
    def from_bytes(cls, data: bytes) -> "MerkleProof":
        """
        Parse a proof from the binary wire format.

        Raises:
            ProofDecodeError: If the bytes are truncated, carry trailing
                              data, or hold invalid header/flag values
        """
        if not isinstance(data, (bytes, bytearray, memoryview)):
            raise ProofDecodeError(f"Proof must be bytes-like, got {type(data).__name__}")
        reader = _Reader(bytes(data))
        magic, version, code, size, index = reader.unpack(_HEADER)
        if magic != PROOF_MAGIC:
            raise ProofDecodeError(f"Bad proof magic: {magic!r}")
        if version != PROOF_VERSION:
            raise ProofDecodeError(
                f"Unsupported proof version: {version}",
                details={"version": version},
            )
        try:
            hasher = Hasher.from_code(code)
        except UnsupportedHashAlgorithmError as e:
            raise ProofDecodeError(f"Unknown algorithm code: {code}", details={"code": code}) from e
        if size != hasher.digest_size:
            raise ProofDecodeError(
                f"Digest size {size} does not match {hasher.algorithm} ({hasher.digest_size})",
            )

        leaf = reader.take(size)
        (count,) = reader.unpack(_COUNT)
        steps = []
        for _ in range(count):
            side = reader.flag("side")
            steps.append(ProofStep(sibling=reader.take(size), sibling_is_left=side))
        root = reader.take(size) if reader.flag("root") else None

        if not reader.at_end():
            raise ProofDecodeError(f"{reader.remaining()} trailing bytes after proof")

        return cls(
            leaf=leaf,
            steps=tuple(steps),
            root=root,
            index=None if index == UNKNOWN_INDEX else index,
            algorithm=hasher.algorithm,
        )

    # -------------------------------------------------------------------------
    # Dict / JSON codec
    # -------------------------------------------------------------------------

    def to_dict(self) -> dict[str, Any]:
        return {
            "algorithm": self.algorithm,
            "index": self.index,
            "leaf": to_hex(self.leaf),
            "steps": [
                {"sibling": to_hex(s.sibling), "side": "left" if s.sibling_is_left else "right"}
                for s in self.steps
            ],
            "root": to_hex(self.root) if self.root is not None else None,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "MerkleProof":
        """
        Parse a proof from its to_dict() form.

        Raises:
            ProofDecodeError: If fields are missing or malformed
        """
        try:
            steps = []
            for raw in data["steps"]:
                side = raw["side"]
                if side not in ("left", "right"):
                    raise ValueError(f"side must be 'left' or 'right', got {side!r}")
                steps.append(ProofStep(sibling=from_hex(raw["sibling"]), sibling_is_left=side == "left"))
            root = data.get("root")
            algorithm = data.get("algorithm", DEFAULT_ALGORITHM)
            if algorithm not in ALGORITHMS_BY_CODE.values():
                raise ValueError(f"unknown algorithm {algorithm!r}")
            index = data.get("index")
            if index is not None and (isinstance(index, bool) or not isinstance(index, int)):
                raise ValueError(f"index must be an integer, got {index!r}")
            if index is not None and index >= UNKNOWN_INDEX:
                raise ValueError(f"index too large: {index}")
            proof = cls(
                leaf=from_hex(data["leaf"]),
                steps=tuple(steps),
                root=from_hex(root) if root is not None else None,
                index=index,
                algorithm=algorithm,
            )
        except (KeyError, TypeError, ValueError) as e:
            raise ProofDecodeError(f"Invalid proof dict: {e}") from e

        size = Hasher(proof.algorithm).digest_size
        digests = [proof.leaf, *proof.siblings] + ([proof.root] if proof.root is not None else [])
        if any(len(d) != size for d in digests):
            raise ProofDecodeError(
                f"All proof digests must be {size} bytes for {proof.algorithm}",
                details={"digest_size": size},
            )
        return proof


class _Reader:
    """Bounds-checked cursor over proof bytes."""

    def __init__(self, data: bytes) -> None:
        self._data = data
        self._pos = 0

    def take(self, n: int) -> bytes:
        end = self._pos + n
        if end > len(self._data):
            raise ProofDecodeError(
                f"Truncated proof: need {n} bytes at offset {self._pos}, have {len(self._data) - self._pos}"
            )
        chunk = self._data[self._pos:end]
        self._pos = end
        return chunk

    def unpack(self, fmt: struct.Struct) -> tuple[Any, ...]:
        return fmt.unpack(self.take(fmt.size))

    def flag(self, name: str) -> bool:
        (value,) = self.unpack(_FLAG)
        if value not in (0, 1):
            raise ProofDecodeError(f"Invalid {name} flag: {value}")
        return value == 1

    def remaining(self) -> int:
        return len(self._data) - self._pos

    def at_end(self) -> bool:
        return self._pos == len(self._data)


def generate_proof(tree: MerkleTree, leaf_index: int) -> MerkleProof:
    """
    Generate an inclusion proof for the leaf at leaf_index.

    Algorithm:
    1. Start at the target leaf index in layer 0
    2. At each layer below the root:
       - The sibling is at index XOR 1; past the end of an odd layer the
         node is its own sibling (duplicate-last rule)
       - The sibling is on the left iff the current index is odd
       - Move up: index = index // 2

    Args:
        tree: A built MerkleTree
        leaf_index: 0-based index of the leaf to prove

    Returns:
        MerkleProof with height - 1 steps

    Raises:
        IndexOutOfRange: If leaf_index is outside [0, leaf_count)
    """
    if leaf_index < 0 or leaf_index >= tree.leaf_count:
        raise IndexOutOfRange(
            f"Leaf index {leaf_index} out of range for {tree.leaf_count} leaves",
            index=leaf_index,
            bound=tree.leaf_count,
        )

    steps: list[ProofStep] = []
    index = leaf_index
    for n in range(tree.height - 1):
        layer = tree.layer(n)
        sibling_index = index ^ 1
        if sibling_index >= len(layer):
            sibling_index = index
        steps.append(ProofStep(sibling=layer[sibling_index], sibling_is_left=index % 2 == 1))
        index //= 2

    logger.debug(f"Generated proof for leaf {leaf_index}: {len(steps)} steps")
    return MerkleProof(
        leaf=tree.leaf_digest(leaf_index),
        steps=tuple(steps),
        root=tree.root,
        index=leaf_index,
        algorithm=tree.hasher.algorithm,
    )


def compute_root_from_proof(proof: MerkleProof, hasher: Optional[Hasher] = None) -> bytes:
    """
    Fold a proof's steps over its leaf digest and return the resulting root.

    Raises:
        TypeError / ValueError: On malformed digests
    """
    hasher = hasher or Hasher(proof.algorithm)
    current = proof.leaf
    for step in proof.steps:
        if step.sibling_is_left:
            current = hasher.combine(step.sibling, current)
        else:
            current = hasher.combine(current, step.sibling)
    return current


def verify_proof(
    proof: MerkleProof,
    claimed_root: bytes,
    hasher: Optional[Hasher] = None,
) -> bool:
    """
    Verify a Merkle inclusion proof against a claimed root.

    The root recomputed from the proof must equal claimed_root and, when the
    proof carries its own root, that one as well. This guards against a
    proof generated for a different root than the caller intends.

    Never raises: malformed proofs or roots verify as False.

    Args:
        proof: The proof to verify
        claimed_root: The root the caller trusts
        hasher: Hash function to use (defaults to the proof's algorithm).
                A hasher for a different algorithm than the proof's fails.

    Returns:
        True if the proof is valid for claimed_root
    """
    try:
        if hasher is None:
            hasher = Hasher(proof.algorithm)
        elif hasher != Hasher(proof.algorithm):
            logger.debug(f"Algorithm mismatch: proof {proof.algorithm}, hasher {hasher.algorithm}")
            return False

        if not isinstance(claimed_root, (bytes, bytearray, memoryview)):
            return False

        computed = compute_root_from_proof(proof, hasher)
        if computed != bytes(claimed_root):
            return False
        if proof.root is not None and computed != bytes(proof.root):
            return False
        return True
    except (AttributeError, TypeError, ValueError) as e:
        logger.debug(f"Proof verification failed on malformed input: {e}")
        return False


class MerkleProver:
    """
    Convenience class for generating Merkle proofs.

    Example:
        >>> proof = MerkleProver.prove_records([b"a", b"b", b"c"], index=1)
        >>> MerkleVerifier.verify(proof)
        True
    """

    @staticmethod
    def prove(tree: MerkleTree, index: int) -> MerkleProof:
        """Generate a proof for the leaf at index in an already-built tree."""
        return generate_proof(tree, index)

    @staticmethod
    def prove_records(
        records: Sequence[bytes],
        index: int,
        hasher: Hasher = DEFAULT_HASHER,
    ) -> MerkleProof:
        """
        Build a tree from records and prove the record at index.

        Raises:
            EmptyInputError: If records is empty
            IndexOutOfRange: If index is out of range
        """
        return generate_proof(build_tree_from_records(records, hasher), index)

    @staticmethod
    def compute_root(records: Sequence[bytes], hasher: Hasher = DEFAULT_HASHER) -> bytes:
        return build_tree_from_records(records, hasher).root


class MerkleVerifier:
    """Convenience class for verifying Merkle proofs."""

    @staticmethod
    def verify(proof: MerkleProof, root: Optional[bytes] = None) -> bool:
        """
        Verify a proof against root, or against its own root when root is None.

        A proof with no root of its own and no root given never verifies.
        """
        claimed = root if root is not None else proof.root
        if claimed is None:
            return False
        return verify_proof(proof, claimed)

    @staticmethod
    def verify_record_in_root(record: bytes, proof: MerkleProof, root: bytes) -> bool:
        """
        Verify that a raw record is the leaf a proof commits to under root.

        The record is hashed with the proof's algorithm and must match the
        proof's leaf digest before the path is checked.
        """
        try:
            hasher = Hasher(proof.algorithm)
            if hasher.hash_leaf(record) != proof.leaf:
                return False
        except (TypeError, ValueError):
            return False
        return verify_proof(proof, root, hasher)


__all__ = [
    "PROOF_MAGIC",
    "PROOF_VERSION",
    "ProofStep",
    "MerkleProof",
    "generate_proof",
    "compute_root_from_proof",
    "verify_proof",
    "MerkleProver",
    "MerkleVerifier",
]
