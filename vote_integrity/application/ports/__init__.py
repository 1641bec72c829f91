"""Application ports (abstract interfaces) for the vote integrity engine."""

from vote_integrity.application.ports.vote_hasher import VoteHasherProtocol

__all__: list[str] = ["VoteHasherProtocol"]
