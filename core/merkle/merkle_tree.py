"""
Merkle Tree Implementation
Deterministic, build-once Merkle tree construction and read-only storage.

This module provides:
- MerkleNode: a digest plus the index of its parent in the next layer
- MerkleTree: immutable store of every layer, queried by (layer, index)
- build_tree: fold leaf digests bottom-up into a MerkleTree
- build_tree_from_records: hash records into leaves, then build_tree
- compute_tree_height: height of a tree for a given leaf count

Canonical Commitment Rules (Hard Contracts):
1. Leaf hashing: Hasher.hash_leaf(record) = H(0x00 || record)
2. Parent hashing: Hasher.combine(left, right) = H(0x01 || left || right)
3. Odd-node policy: the last node of an odd-length layer is paired with
   a duplicate of itself. Proof generation applies the same rule.
4. Empty input: EmptyInputError (an empty dataset has no root)
5. Single leaf: height 1, root = leaf, no combination performed

Storage Notes:
- Nodes never reference each other. Layers are tuples owned by the tree
  and parent links are plain indices into the next layer.
- Once build_tree returns, nothing mutates the tree, so it can be shared
  between threads for read-only queries without locking.
- This module never sorts leaves - it trusts input order.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Iterable, Optional, Sequence

from core.crypto.hashing import DEFAULT_HASHER, Hasher, to_hex
from core.schemas.errors import EmptyInputError, IndexOutOfRange


logger = logging.getLogger(__name__)

ODD_NODE_POLICY = "duplicate-last"


@dataclass(frozen=True)
class MerkleNode:
    """
    A single node of a Merkle tree.

    Attributes:
        digest: The node's digest
        parent: Index of the parent node in the next layer (None for the root)
    """
    digest: bytes
    parent: Optional[int] = None

    @property
    def is_root(self) -> bool:
        return self.parent is None


class MerkleTree:
    """
    Immutable Merkle tree: every layer from the leaves (layer 0) to the root.

    Build with build_tree() or build_tree_from_records(); the constructor
    only stores already-linked layers.

    Example:
        >>> tree = build_tree_from_records([b"a", b"b", b"c"])
        >>> tree.height
        3
        >>> tree.layer(1) == (tree.node(1, 0).digest, tree.node(1, 1).digest)
        True
    """

    __slots__ = ("_layers", "_hasher")

    def __init__(self, layers: Sequence[Sequence[MerkleNode]], hasher: Hasher = DEFAULT_HASHER) -> None:
        if not layers or not layers[0]:
            raise EmptyInputError()
        if len(layers[-1]) != 1:
            raise ValueError(f"Top layer must hold exactly one node, got {len(layers[-1])}")
        self._layers: tuple[tuple[MerkleNode, ...], ...] = tuple(tuple(layer) for layer in layers)
        self._hasher = hasher

    @property
    def hasher(self) -> Hasher:
        """The Hasher the tree was built with."""
        return self._hasher

    @property
    def root(self) -> bytes:
        """Root digest summarizing the whole tree."""
        return self._layers[-1][0].digest

    @property
    def root_node(self) -> MerkleNode:
        return self._layers[-1][0]

    @property
    def height(self) -> int:
        """Number of layers, leaves included."""
        return len(self._layers)

    @property
    def leaf_count(self) -> int:
        return len(self._layers[0])

    def leaf_digest(self, index: int) -> bytes:
        """
        Get the digest of the leaf at index.

        Raises:
            IndexOutOfRange: If index is negative or >= leaf_count
        """
        if index < 0 or index >= self.leaf_count:
            raise IndexOutOfRange(
                f"Leaf index {index} out of range for {self.leaf_count} leaves",
                index=index,
                bound=self.leaf_count,
            )
        return self._layers[0][index].digest

    def leaf_digests(self) -> tuple[bytes, ...]:
        return self.layer(0)

    def layer(self, n: int) -> tuple[bytes, ...]:
        """
        Get the digests of layer n, in order (0 = leaves, height - 1 = root).

        Raises:
            IndexOutOfRange: If n is outside [0, height)
        """
        if n < 0 or n >= self.height:
            raise IndexOutOfRange(
                f"Layer {n} out of range for tree of height {self.height}",
                index=n,
                bound=self.height,
            )
        return tuple(node.digest for node in self._layers[n])

    def node(self, layer: int, index: int) -> MerkleNode:
        """
        Get the node at (layer, index).

        Raises:
            IndexOutOfRange: If either coordinate is outside the tree
        """
        if layer < 0 or layer >= self.height:
            raise IndexOutOfRange(
                f"Layer {layer} out of range for tree of height {self.height}",
                index=layer,
                bound=self.height,
            )
        nodes = self._layers[layer]
        if index < 0 or index >= len(nodes):
            raise IndexOutOfRange(
                f"Node index {index} out of range for layer {layer} of {len(nodes)} nodes",
                index=index,
                bound=len(nodes),
            )
        return nodes[index]

    def parent_index(self, layer: int, index: int) -> Optional[int]:
        """Index of the parent of (layer, index) in layer + 1, or None for the root."""
        return self.node(layer, index).parent

    def to_dict(self, include_layers: bool = False) -> dict[str, Any]:
        """Hex summary of the tree (root, height, leaf count, optionally layers)."""
        data: dict[str, Any] = {
            "algorithm": self._hasher.algorithm,
            "root": to_hex(self.root),
            "height": self.height,
            "leaf_count": self.leaf_count,
        }
        if include_layers:
            data["layers"] = [
                [to_hex(node.digest) for node in layer] for layer in self._layers
            ]
        return data

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, MerkleTree):
            return NotImplemented
        return self._hasher == other._hasher and self._layers == other._layers

    def __hash__(self) -> int:
        return hash((self._hasher, self.root, self.leaf_count))

    def __repr__(self) -> str:
        return (
            f"MerkleTree(algorithm={self._hasher.algorithm!r}, "
            f"leaf_count={self.leaf_count}, height={self.height}, root={to_hex(self.root)})"
        )


def build_tree(leaf_digests: Iterable[bytes], hasher: Hasher = DEFAULT_HASHER) -> MerkleTree:
    """
    Build a Merkle tree from a sequence of leaf digests.

    Algorithm:
    1. Layer 0 is the leaf digests, in input order
    2. While the current layer has more than one node:
       - If odd, pair the last node with a duplicate of itself
       - Combine each (left, right) pair into a parent digest
       - Link both children to the parent at index // 2
    3. The single node left is the root

    Example: [a, b, c] -> [combine(a,b), combine(c,c)] -> [root]

    Args:
        leaf_digests: Leaf digests, each hasher.digest_size bytes.
                      Order matters and is preserved.
        hasher: Hash function used for combination

    Returns:
        The built, immutable MerkleTree

    Raises:
        EmptyInputError: If leaf_digests is empty
        ValueError: If a leaf digest has the wrong size
    """
    current: list[bytes] = []
    for i, digest in enumerate(leaf_digests):
        if not isinstance(digest, (bytes, bytearray, memoryview)):
            raise TypeError(f"Leaf digest {i} must be bytes-like, got {type(digest).__name__}")
        current.append(bytes(digest))
    if not current:
        raise EmptyInputError()

    for i, digest in enumerate(current):
        if len(digest) != hasher.digest_size:
            raise ValueError(
                f"Leaf digest {i} is {len(digest)} bytes, expected {hasher.digest_size} for {hasher.algorithm}"
            )

    layers: list[list[MerkleNode]] = []

    while len(current) > 1:
        if len(current) % 2 == 1:
            logger.debug(f"Layer {len(layers)}: duplicating last of {len(current)} nodes")

        next_level: list[bytes] = []
        for i in range(0, len(current), 2):
            left = current[i]
            right = current[i + 1] if i + 1 < len(current) else left
            next_level.append(hasher.combine(left, right))

        layers.append([MerkleNode(digest=d, parent=i // 2) for i, d in enumerate(current)])
        current = next_level

    layers.append([MerkleNode(digest=current[0], parent=None)])

    tree = MerkleTree(layers, hasher)
    logger.debug(f"Built Merkle tree: {tree.leaf_count} leaves, height {tree.height}")
    return tree


def build_tree_from_records(records: Iterable[bytes], hasher: Hasher = DEFAULT_HASHER) -> MerkleTree:
    """
    Hash each record into a leaf digest and build the tree.

    Raises:
        EmptyInputError: If records is empty
        TypeError: If a record is not bytes-like
    """
    return build_tree([hasher.hash_leaf(record) for record in records], hasher)


def compute_tree_height(leaf_count: int) -> int:
    """
    Compute the height of a Merkle tree with the given number of leaves.

    Height counts layers from leaves to root inclusive, i.e.
    ceil(log2(leaf_count)) + 1. A single leaf has height 1, two leaves
    height 2, three or four leaves height 3.

    Returns:
        Tree height (0 for an empty tree)
    """
    if leaf_count < 0:
        raise ValueError(f"Leaf count must be non-negative, got {leaf_count}")
    if leaf_count == 0:
        return 0
    return (leaf_count - 1).bit_length() + 1


__all__ = [
    "ODD_NODE_POLICY",
    "MerkleNode",
    "MerkleTree",
    "build_tree",
    "build_tree_from_records",
    "compute_tree_height",
]
