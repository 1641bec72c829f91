"""Application services.

Available services:
- VoteHashService: HMAC vote hashes and tamper checks (Hash Engine)
- MerkleTreeService: Merkle tree build, inclusion proofs and self-check
- RankedChoiceService: Instant runoff and multi-seat scoring
- ReferendumTallyService: YES / NO and APPROVE / OPPOSE counting
- ResultsAggregatorService: Quorum and per-election results
"""

from vote_integrity.application.services.base import LoggingMixin
from vote_integrity.application.services.merkle_tree_service import (
    MerkleTreeService,
    hash_pair,
    order_vote_hashes,
    verify_merkle_proof,
)
from vote_integrity.application.services.ranked_choice_service import (
    RankedChoiceService,
    describe_round,
)
from vote_integrity.application.services.referendum_tally_service import (
    ReferendumTallyService,
)
from vote_integrity.application.services.results_aggregator_service import (
    ResultsAggregatorService,
    decide_quorum,
    summarize,
)
from vote_integrity.application.services.vote_hash_service import (
    HASH_DELIMITER,
    VoteHashService,
    build_hash_input,
    serialize_payload,
)

__all__: list[str] = [
    "HASH_DELIMITER",
    "LoggingMixin",
    "MerkleTreeService",
    "RankedChoiceService",
    "ReferendumTallyService",
    "ResultsAggregatorService",
    "VoteHashService",
    "build_hash_input",
    "decide_quorum",
    "describe_round",
    "hash_pair",
    "order_vote_hashes",
    "serialize_payload",
    "summarize",
    "verify_merkle_proof",
]
