"""Application DTOs for transporting engine outputs across process boundaries."""

from vote_integrity.application.dtos.proof import MerkleProofDocument

__all__: list[str] = ["MerkleProofDocument"]
