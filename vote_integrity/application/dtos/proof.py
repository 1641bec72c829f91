"""Merkle proof transport DTO.

Pydantic model used to hand an inclusion proof to an external verifier and
to read one back. The document carries nothing secret: a leaf, the sibling
path, the side of each sibling and the published root.

JSON shape:
    {
        "proof_type": "merkle",
        "election_id": "e-2025",
        "leaf": "<64 hex>",
        "root": "<64 hex>",
        "sibling_path": ["<64 hex>", null, ...],
        "path_directions": ["right", "none", ...]
    }
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator

from vote_integrity.domain.models.merkle import MerkleProof, SiblingPosition

_HEX64 = r"^[a-f0-9]{64}$"


class MerkleProofDocument(BaseModel):
    """Serializable Merkle inclusion proof.

    Attributes:
        proof_type: Always "merkle".
        election_id: Election the root belongs to, when known.
        leaf: Vote hash being proven.
        root: Merkle root the proof resolves to.
        sibling_path: Sibling hash per level, null where the node was
            carried up.
        path_directions: Sibling position per level.
    """

    model_config = ConfigDict(frozen=True)

    proof_type: Literal["merkle"] = Field(default="merkle", description="Type of proof")
    election_id: str | None = Field(default=None, description="Election identifier")
    leaf: str = Field(description="Vote hash being proven", pattern=_HEX64)
    root: str = Field(description="Published Merkle root", pattern=_HEX64)
    sibling_path: list[str | None] = Field(
        default_factory=list,
        description="Sibling hashes from leaf to root",
    )
    path_directions: list[Literal["left", "right", "none"]] = Field(
        default_factory=list,
        description="Side of each sibling relative to the running hash",
    )

    @model_validator(mode="after")
    def check_path_shape(self) -> MerkleProofDocument:
        """Reject paths whose siblings and directions disagree."""
        if len(self.sibling_path) != len(self.path_directions):
            raise ValueError("sibling_path and path_directions must have the same length")
        for level, (sibling, direction) in enumerate(
            zip(self.sibling_path, self.path_directions)
        ):
            if direction == "none":
                if sibling is not None:
                    raise ValueError(f"level {level}: carried-up step must have no sibling")
            elif sibling is None or len(sibling) != 64 or sibling.strip("0123456789abcdef"):
                raise ValueError(f"level {level}: sibling must be a 64-char lowercase hex hash")
        return self

    @classmethod
    def from_domain(
        cls, proof: MerkleProof, election_id: str | None = None
    ) -> MerkleProofDocument:
        return cls(
            election_id=election_id,
            leaf=proof.leaf,
            root=proof.root,
            sibling_path=list(proof.sibling_path),
            path_directions=[d.value for d in proof.path_directions],
        )

    def to_domain(self) -> MerkleProof:
        return MerkleProof(
            leaf=self.leaf,
            sibling_path=tuple(self.sibling_path),
            path_directions=tuple(SiblingPosition(d) for d in self.path_directions),
            root=self.root,
        )

    def to_json(self, indent: int | None = None) -> str:
        return self.model_dump_json(indent=indent)

    @classmethod
    def from_json(cls, data: str | bytes) -> MerkleProofDocument:
        """Parse a proof document.

        Raises:
            pydantic.ValidationError: If the document is malformed.
        """
        return cls.model_validate_json(data)
