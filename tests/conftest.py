"""
Pytest configuration and shared fixtures for vote integrity tests.

Testing Standards:
- Unit tests go in tests/unit/<layer>/
- Integration tests go in tests/integration/
- Tests never depend on a real VOTE_HASH_SECRET from the environment
"""

from datetime import datetime, timezone

import pytest
import structlog

from vote_integrity.domain.models.ballot import Ballot, BallotKind, Candidate

TEST_SECRET = "test-secret-do-not-use-in-production"


@pytest.fixture(autouse=True)
def reset_structlog():
    """Undo any structlog configuration a test (e.g. the CLI) installed."""
    yield
    structlog.reset_defaults()


@pytest.fixture
def project_version() -> str:
    """Provide the current project version for tests."""
    from vote_integrity import __version__

    return __version__


@pytest.fixture
def secret_key() -> str:
    return TEST_SECRET


@pytest.fixture
def cast_at() -> datetime:
    """A fixed cast timestamp with sub-millisecond precision."""
    return datetime(2025, 10, 22, 14, 3, 7, 120456, tzinfo=timezone.utc)


@pytest.fixture
def leaf_hashes() -> list[str]:
    """Seven distinct, valid leaf hashes (odd count exercises carry-up)."""
    return [c * 64 for c in "1234567"]


@pytest.fixture
def two_candidate_ballot() -> Ballot:
    return Ballot(
        id="president",
        kind=BallotKind.SINGLE_SEAT,
        candidates=(Candidate("A", "Ada"), Candidate("B", "Bo")),
        title="President",
    )


@pytest.fixture
def three_candidate_ballot() -> Ballot:
    return Ballot(
        id="chair",
        kind=BallotKind.SINGLE_SEAT,
        candidates=(Candidate("A", "Ada"), Candidate("B", "Bo"), Candidate("C", "Cy")),
        title="Chair",
    )


@pytest.fixture
def board_ballot() -> Ballot:
    return Ballot(
        id="board",
        kind=BallotKind.MULTI_SEAT,
        candidates=(Candidate("A", "Ada"), Candidate("B", "Bo"), Candidate("C", "Cy")),
        seats_available=2,
        title="Board of Directors",
    )


@pytest.fixture
def referendum_ballot() -> Ballot:
    return Ballot(id="fee", kind=BallotKind.REFERENDUM, title="Activity fee increase")


@pytest.fixture
def approval_ballot() -> Ballot:
    return Ballot(
        id="treasurer",
        kind=BallotKind.SINGLE_SEAT,
        candidates=(Candidate("T", "Tam"),),
        title="Treasurer",
    )
