"""Merkle tree domain models.

Structure:
- Leaves are vote hashes ordered by (timestamp, vote_hash)
- Parent = SHA-256(left_hex + right_hex), order-sensitive
- An odd node at the end of a level is carried up unchanged (no padding)

Example:
    For 5 leaves [A, B, C, D, E]:

                        Root
                      /      \\
                 H(AB,CD)      E      <- E carried up twice
                 /     \\
             H(A,B)   H(C,D)    E
             /  \\     /  \\
            A    B   C    D    E

    Proof for E: [(none), (none), (H(AB,CD), left)]

Tree lifecycle is explicit: a caller holds UnbuiltTree until the election
closes, then BuiltTree forever. There is no BuiltTree -> BuiltTree move.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Union

from vote_integrity.domain.models.integrity import IntegrityStatus


class SiblingPosition(str, Enum):
    """Where the sibling sits relative to the running hash at one proof step.

    Values:
        LEFT: parent = H(sibling, current)
        RIGHT: parent = H(current, sibling)
        NONE: node was carried up; current passes through unchanged
    """

    LEFT = "left"
    RIGHT = "right"
    NONE = "none"


@dataclass(frozen=True)
class MerkleTree:
    """An immutable, fully built Merkle tree.

    Attributes:
        levels: levels[0] are the leaves, levels[-1] == (root,).
    """

    levels: tuple[tuple[str, ...], ...]
    _positions: dict[str, int] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        positions: dict[str, int] = {}
        for index, leaf in enumerate(self.levels[0]):
            # First occurrence wins for duplicate leaves
            positions.setdefault(leaf, index)
        object.__setattr__(self, "_positions", positions)

    @property
    def root(self) -> str:
        return self.levels[-1][0]

    @property
    def leaves(self) -> tuple[str, ...]:
        return self.levels[0]

    @property
    def leaf_count(self) -> int:
        return len(self.levels[0])

    @property
    def depth(self) -> int:
        """Number of levels built above the leaves (equals proof length)."""
        return len(self.levels) - 1

    def index_of(self, leaf_hash: str) -> int | None:
        """Return the leaf position of a hash, or None if absent."""
        return self._positions.get(leaf_hash)


@dataclass(frozen=True)
class MerkleProof:
    """Inclusion proof for a single leaf.

    A value object with no identity: recomputed on demand, never stored.
    Contains nothing secret and can be checked by anyone.

    Attributes:
        leaf: The vote hash being proven.
        sibling_path: Sibling hash per level from leaf to root (None where
            the node was carried up).
        path_directions: Sibling position per level.
        root: The Merkle root the proof resolves to.
    """

    leaf: str
    sibling_path: tuple[str | None, ...]
    path_directions: tuple[SiblingPosition, ...]
    root: str


@dataclass(frozen=True)
class UnbuiltTree:
    """Tree state before the election's Merkle tree is generated."""

    @property
    def is_built(self) -> bool:
        return False


@dataclass(frozen=True)
class BuiltTree:
    """Tree state after generation. Final.

    Attributes:
        tree: The built tree.
    """

    tree: MerkleTree

    @property
    def is_built(self) -> bool:
        return True


MerkleTreeState = Union[UnbuiltTree, BuiltTree]


@dataclass(frozen=True)
class MerkleTreeStats:
    """Statistics from re-deriving a tree, used as an integrity self-check.

    Attributes:
        root: Freshly derived root.
        depth: Levels above the leaves.
        leaf_count: Number of leaves.
        layers: Total number of levels including leaves.
        stored_root: Root previously published, if supplied.
        root_matches: Whether the derived root equals stored_root
            (None when no stored root was supplied).
    """

    root: str
    depth: int
    leaf_count: int
    layers: int
    stored_root: str | None = None
    root_matches: bool | None = None

    @property
    def integrity_status(self) -> IntegrityStatus | None:
        if self.root_matches is None:
            return None
        if self.root_matches:
            return IntegrityStatus.VERIFIED
        return IntegrityStatus.TAMPER_SUSPECTED


@dataclass(frozen=True)
class ProofVerification:
    """Outcome for one proof inside a batch verification."""

    proof: MerkleProof
    valid: bool


@dataclass(frozen=True)
class BatchVerificationResult:
    """Aggregate outcome of verifying several proofs.

    Attributes:
        total: Number of proofs checked.
        verified: Number that resolved to their root.
        failed: Number that did not.
        results: Per-proof outcomes in input order.
    """

    total: int
    verified: int
    failed: int
    results: tuple[ProofVerification, ...]
