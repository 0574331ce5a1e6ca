"""
Merkle Tree and Inclusion Proofs
Deterministic build-once Merkle tree construction + proof generation/verification.

This package provides:
- MerkleTree / MerkleNode: immutable per-layer tree storage
- build_tree: fold leaf digests into a tree
- build_tree_from_records: hash records into leaves, then build
- generate_proof / verify_proof: inclusion proofs
- MerkleProof / ProofStep: serializable proof values
- MerkleProver / MerkleVerifier: convenience wrappers

Canonical Commitment Rules:
1. Leaf hashing: H(0x00 || record)
2. Parent hashing: H(0x01 || left || right)
3. Padding: Duplicate last node if odd number at any layer
4. Empty input: EmptyInputError
5. Single leaf: root = leaf

Usage:
    from core.merkle import build_tree_from_records, generate_proof, verify_proof

    tree = build_tree_from_records(["Bob→Alice:12".encode(), ...])
    proof = generate_proof(tree, 2)
    assert verify_proof(proof, tree.root)

    wire = proof.to_bytes()
    assert verify_proof(MerkleProof.from_bytes(wire), tree.root)
"""
from .merkle_tree import (
    ODD_NODE_POLICY,
    MerkleNode,
    MerkleTree,
    build_tree,
    build_tree_from_records,
    compute_tree_height,
)

from .merkle_proofs import (
    MerkleProof,
    MerkleProver,
    MerkleVerifier,
    ProofStep,
    compute_root_from_proof,
    generate_proof,
    verify_proof,
)


__all__ = [
    # Tree store
    "ODD_NODE_POLICY",
    "MerkleNode",
    "MerkleTree",
    "build_tree",
    "build_tree_from_records",
    "compute_tree_height",
    # Proofs
    "MerkleProof",
    "ProofStep",
    "generate_proof",
    "compute_root_from_proof",
    "verify_proof",
    # Convenience classes
    "MerkleProver",
    "MerkleVerifier",
]
