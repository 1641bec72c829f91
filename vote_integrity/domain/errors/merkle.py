"""Merkle tree errors.

Not-found is deliberately absent here: a proof requested for an unknown
hash is an expected outcome of public verification and is returned as None.
"""

from vote_integrity.domain.errors.structural import StructuralViolationError
from vote_integrity.domain.exceptions import VoteIntegrityError


class EmptyTreeError(StructuralViolationError):
    """Raised when a Merkle tree is built over zero leaves."""

    def __init__(self, message: str = "Cannot build Merkle tree with no vote hashes") -> None:
        """Initialize with the default empty-tree message."""
        super().__init__(message)


class InvalidLeafHashError(StructuralViolationError):
    """Raised when a leaf is not a 64-character lowercase hex digest.

    Attributes:
        index: Position of the offending leaf.
    """

    def __init__(self, index: int, value: str) -> None:
        """Initialize the error.

        Args:
            index: Position of the offending leaf.
            value: The rejected leaf value.
        """
        self.index = index
        super().__init__(
            f"Leaf {index} must be a 64-character lowercase hex string, got: {value!r}"
        )


class TreeAlreadyBuiltError(VoteIntegrityError):
    """Raised on an attempt to rebuild an election's Merkle tree.

    A built tree is final. Rebuilding is only legitimate as a verification
    step (see MerkleTreeService.tree_stats), never as a replacement.

    Attributes:
        root: Root of the existing tree.
    """

    def __init__(self, root: str) -> None:
        """Initialize the error.

        Args:
            root: Root of the existing tree.
        """
        self.root = root
        super().__init__(
            f"Merkle tree already built (root {root[:8]}...); "
            "cannot regenerate to maintain integrity"
        )
