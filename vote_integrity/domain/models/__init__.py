"""Domain models for the vote integrity engine.

Pure, immutable value objects. No I/O.
"""

from vote_integrity.domain.models.ballot import Ballot, BallotKind, Candidate
from vote_integrity.domain.models.integrity import IntegrityCheck, IntegrityStatus
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
from vote_integrity.domain.models.results import (
    BallotResult,
    ElectionResults,
    QuorumDecision,
    QuorumSettings,
    RankedChoiceDetails,
    ResultsSummary,
)
from vote_integrity.domain.models.tally import (
    CandidateResult,
    CandidateScore,
    MultiSeatResult,
    RankedChoiceResult,
    ReferendumResult,
    RoundResult,
    RunoffOutcome,
    percentage,
)
from vote_integrity.domain.models.vote import (
    Abstain,
    No,
    Ranked,
    VotePayload,
    VoteRecord,
    Yes,
    payload_from_wire,
)

__all__: list[str] = [
    "Abstain",
    "Ballot",
    "BallotKind",
    "BallotResult",
    "BatchVerificationResult",
    "BuiltTree",
    "Candidate",
    "CandidateResult",
    "CandidateScore",
    "ElectionResults",
    "IntegrityCheck",
    "IntegrityStatus",
    "MerkleProof",
    "MerkleTree",
    "MerkleTreeState",
    "MerkleTreeStats",
    "MultiSeatResult",
    "No",
    "ProofVerification",
    "QuorumDecision",
    "QuorumSettings",
    "Ranked",
    "RankedChoiceDetails",
    "RankedChoiceResult",
    "ReferendumResult",
    "ResultsSummary",
    "RoundResult",
    "RunoffOutcome",
    "SiblingPosition",
    "UnbuiltTree",
    "VotePayload",
    "VoteRecord",
    "Yes",
    "payload_from_wire",
    "percentage",
]
