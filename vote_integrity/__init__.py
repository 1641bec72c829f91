"""
Vote Integrity - tallying and integrity engine for student elections

Turns cast ballots into winner and quorum determinations, and produces
cryptographic evidence that every vote was counted unmodified:
- HMAC-keyed vote hashes returned to voters as receipts
- An append-only Merkle tree over all vote hashes of an election
- Inclusion proofs that anyone can check against the published root

The engine is pure: it never touches storage, network, or identity.
"""

__version__ = "0.1.0"
__all__ = ["__version__"]
