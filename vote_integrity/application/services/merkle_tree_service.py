"""Merkle tree builder and verifier service (Merkle Engine).

Builds one append-only binary hash tree per election over all vote hashes
and produces inclusion proofs that anyone can check against the published
root, with no access to the secret key or the database.

Tree Structure:
- Leaves are vote hashes ordered by (timestamp, vote_hash)
- Parent hash is SHA-256(left + right) over the hex strings; order matters
- An odd node at the end of a level is carried up unchanged. Duplicating it
  instead would let whoever controls the odd leaf produce a different tree
  that still validates some proofs.

Usage:
    service = MerkleTreeService()
    state = service.build(UnbuiltTree(), order_vote_hashes(records))
    proof = service.prove_inclusion(state.tree, receipt_hash)
    is_valid = verify_merkle_proof(proof)
"""

from __future__ import annotations

import hashlib
from collections.abc import Iterable, Sequence
from datetime import datetime
from typing import Protocol

from vote_integrity.application.services.base import LoggingMixin
from vote_integrity.domain.errors.merkle import (
    EmptyTreeError,
    InvalidLeafHashError,
    TreeAlreadyBuiltError,
)
from vote_integrity.domain.models.merkle import (
    BatchVerificationResult,
    BuiltTree,
    MerkleProof,
    MerkleTree,
    MerkleTreeState,
    MerkleTreeStats,
    ProofVerification,
    SiblingPosition,
    UnbuiltTree,
)
from vote_integrity.domain.services.canonical import is_sha256_hex


def hash_pair(left: str, right: str) -> str:
    """Compute parent hash from two child hashes.

    Unlike a sorted-pair tree, hash_pair(a, b) != hash_pair(b, a): the
    proof records which side each sibling is on.

    Args:
        left: Left child hash (64-char hex).
        right: Right child hash (64-char hex).

    Returns:
        Parent hash (64-char lowercase hex).
    """
    return hashlib.sha256((left + right).encode("utf-8")).hexdigest()


class TimestampedHash(Protocol):
    """Anything carrying a vote hash and its cast time (e.g. VoteRecord)."""

    @property
    def timestamp(self) -> datetime: ...

    @property
    def vote_hash(self) -> str: ...


def order_vote_hashes(records: Iterable[TimestampedHash]) -> list[str]:
    """Return vote hashes in leaf order: timestamp ascending, then hash."""
    ordered = sorted(records, key=lambda r: (r.timestamp, r.vote_hash))
    return [r.vote_hash for r in ordered]


def verify_merkle_proof(proof: MerkleProof) -> bool:
    """Verify a Merkle proof without any engine state.

    Starting from the leaf, combine with each sibling according to its
    position and compare the result to the root. Root hashes are public,
    so plain equality is used.

    Malformed proofs (mismatched lengths, unknown positions, missing
    siblings) verify as False rather than raising.
    """
    if len(proof.sibling_path) != len(proof.path_directions):
        return False
    if not isinstance(proof.leaf, str) or not isinstance(proof.root, str):
        return False

    current = proof.leaf
    for sibling, direction in zip(proof.sibling_path, proof.path_directions):
        try:
            position = SiblingPosition(direction)
        except ValueError:
            return False

        if position is SiblingPosition.NONE:
            if sibling is not None:
                return False
            continue

        if not isinstance(sibling, str):
            return False
        if position is SiblingPosition.LEFT:
            current = hash_pair(sibling, current)
        else:
            current = hash_pair(current, sibling)

    return current == proof.root


class MerkleTreeService(LoggingMixin):
    """Service for building and verifying election Merkle trees.

    Stateless: the tree lifecycle (UnbuiltTree -> BuiltTree) is a value
    owned by the caller and passed in, so the one-way transition does not
    depend on hidden server-side state. Proof generation and verification
    only read the tree and are safe to run in parallel.

    Example:
        For 4 leaves [A, B, C, D]:

                    Root
                   /    \\
               H(A,B)   H(C,D)
               /  \\     /  \\
              A    B   C    D

        Proof for C: [(D, right), (H(A,B), left)]
    """

    def __init__(self) -> None:
        """Initialize the Merkle tree service."""
        self._init_logger(component="integrity")

    def build_tree(self, leaf_hashes: Sequence[str]) -> MerkleTree:
        """Build a Merkle tree from ordered leaf hashes.

        Args:
            leaf_hashes: Vote hashes in leaf order.

        Returns:
            The built tree; tree.levels[0] are the leaves.

        Raises:
            EmptyTreeError: If leaf_hashes is empty.
            InvalidLeafHashError: If a leaf is not 64-char lowercase hex.
        """
        if not leaf_hashes:
            raise EmptyTreeError()

        for index, leaf in enumerate(leaf_hashes):
            if not is_sha256_hex(leaf):
                raise InvalidLeafHashError(index, leaf)

        current = tuple(leaf_hashes)
        levels: list[tuple[str, ...]] = [current]

        while len(current) > 1:
            next_level = [
                hash_pair(current[i], current[i + 1])
                for i in range(0, len(current) - 1, 2)
            ]
            if len(current) % 2 == 1:
                # Carry the unpaired node up unchanged
                next_level.append(current[-1])
            current = tuple(next_level)
            levels.append(current)

        tree = MerkleTree(levels=tuple(levels))
        self._log_operation("build_tree", leaf_count=tree.leaf_count).info(
            "merkle_tree_built",
            depth=tree.depth,
            root_prefix=tree.root[:8],
        )
        return tree

    def build(self, state: MerkleTreeState, leaf_hashes: Sequence[str]) -> BuiltTree:
        """Move an election's tree state from UnbuiltTree to BuiltTree.

        Args:
            state: Current tree state of the election.
            leaf_hashes: Vote hashes in leaf order.

        Raises:
            TreeAlreadyBuiltError: If state is already BuiltTree.
            EmptyTreeError: If leaf_hashes is empty.
        """
        if isinstance(state, BuiltTree):
            self._log_operation("build").warning(
                "merkle_tree_rebuild_rejected",
                root_prefix=state.tree.root[:8],
            )
            raise TreeAlreadyBuiltError(state.tree.root)
        if not isinstance(state, UnbuiltTree):
            raise TypeError(f"Unsupported tree state: {type(state).__name__}")

        return BuiltTree(tree=self.build_tree(leaf_hashes))

    def prove_inclusion(self, tree: MerkleTree, leaf_hash: str) -> MerkleProof | None:
        """Generate an inclusion proof for a leaf.

        Args:
            tree: A built tree.
            leaf_hash: The vote hash to prove.

        Returns:
            The proof, or None if the hash is not a leaf of the tree. Not
            found is an expected answer to public requests, not an error.
        """
        index = tree.index_of(leaf_hash)
        if index is None:
            self._log_operation("prove_inclusion").info(
                "merkle_proof_leaf_not_found",
                hash_prefix=str(leaf_hash)[:8],
            )
            return None

        siblings: list[str | None] = []
        directions: list[SiblingPosition] = []

        for level in tree.levels[:-1]:
            if index % 2 == 1:
                siblings.append(level[index - 1])
                directions.append(SiblingPosition.LEFT)
            elif index + 1 < len(level):
                siblings.append(level[index + 1])
                directions.append(SiblingPosition.RIGHT)
            else:
                siblings.append(None)
                directions.append(SiblingPosition.NONE)
            index //= 2

        return MerkleProof(
            leaf=leaf_hash,
            sibling_path=tuple(siblings),
            path_directions=tuple(directions),
            root=tree.root,
        )

    def verify_proof(self, proof: MerkleProof) -> bool:
        """Verify a Merkle proof. See verify_merkle_proof."""
        return verify_merkle_proof(proof)

    def batch_prove(
        self,
        tree: MerkleTree,
        leaf_hashes: Iterable[str],
    ) -> list[MerkleProof | None]:
        """Generate proofs for several hashes against one tree.

        Returns:
            One entry per requested hash, None where the hash is absent.
        """
        return [self.prove_inclusion(tree, leaf_hash) for leaf_hash in leaf_hashes]

    def batch_verify(self, proofs: Iterable[MerkleProof]) -> BatchVerificationResult:
        """Verify several proofs and count the outcomes."""
        results = tuple(
            ProofVerification(proof=proof, valid=verify_merkle_proof(proof))
            for proof in proofs
        )
        verified = sum(1 for r in results if r.valid)

        return BatchVerificationResult(
            total=len(results),
            verified=verified,
            failed=len(results) - verified,
            results=results,
        )

    def tree_stats(
        self,
        leaf_hashes: Sequence[str],
        stored_root: str | None = None,
    ) -> MerkleTreeStats:
        """Re-derive the tree from its leaves and compare to a stored root.

        This is the only legitimate reason to rebuild a tree: checking a
        published root, never replacing it. A mismatch is reported through
        root_matches and logged, never corrected.

        Args:
            leaf_hashes: Vote hashes in leaf order.
            stored_root: Previously published root, if any.

        Raises:
            EmptyTreeError: If leaf_hashes is empty.
        """
        tree = self.build_tree(leaf_hashes)
        root_matches = None if stored_root is None else tree.root == stored_root

        if root_matches is False:
            self._log_operation("tree_stats", leaf_count=tree.leaf_count).warning(
                "merkle_root_mismatch",
                root_prefix=tree.root[:8],
                stored_root_prefix=stored_root[:8] if stored_root else "",
            )

        return MerkleTreeStats(
            root=tree.root,
            depth=tree.depth,
            leaf_count=tree.leaf_count,
            layers=len(tree.levels),
            stored_root=stored_root,
            root_matches=root_matches,
        )
