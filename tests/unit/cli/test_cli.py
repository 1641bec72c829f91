"""Tests for the vote-integrity CLI.

Commands: build-root, prove, verify-proof, check-root, tally.
"""

import json
from pathlib import Path

import pytest
from typer.testing import CliRunner

from vote_integrity.application.services.merkle_tree_service import MerkleTreeService
from vote_integrity.cli import app

runner = CliRunner()


def invoke(*args: str):
    # Keep diagnostics off the captured output
    return runner.invoke(app, ["--log-level", "CRITICAL", *args])


@pytest.fixture
def votes_file(tmp_path: Path, leaf_hashes: list[str]) -> Path:
    path = tmp_path / "votes.json"
    path.write_text(json.dumps(leaf_hashes))
    return path


@pytest.fixture
def expected_root(leaf_hashes: list[str]) -> str:
    return MerkleTreeService().build_tree(leaf_hashes).root


@pytest.fixture
def election_file(tmp_path: Path) -> Path:
    election = {
        "election_id": "e-2025",
        "total_eligible_voters": 10,
        "total_voted": 4,
        "ballots": [
            {
                "id": "president",
                "kind": "SINGLE_SEAT",
                "title": "President",
                "candidates": [{"id": "A", "name": "Ada"}, {"id": "B", "name": "Bo"}],
                "votes": [
                    {"type": "RANKED", "rankings": ["A", "B"]},
                    {"type": "RANKED", "rankings": ["A"]},
                    {"type": "RANKED", "rankings": ["B", "A"]},
                ],
            },
            {
                "id": "fee",
                "kind": "REFERENDUM",
                "title": "Activity fee",
                "votes": [{"type": "YES"}, {"type": "NO"}, {"type": "ABSTAIN"}, {"type": "NO"}],
            },
        ],
    }
    path = tmp_path / "election.json"
    path.write_text(json.dumps(election))
    return path


class TestCLIVersion:
    """Tests for the version flag."""

    def test_cli_version_command(self) -> None:
        result = runner.invoke(app, ["--version"])

        assert result.exit_code == 0
        assert "vote-integrity version" in result.stdout
        assert "0.1.0" in result.stdout

    def test_cli_version_short_flag(self) -> None:
        result = runner.invoke(app, ["-v"])

        assert result.exit_code == 0
        assert "vote-integrity version" in result.stdout


class TestCLIBuildRoot:
    """Tests for build-root command."""

    def test_text_output(self, votes_file: Path, expected_root: str) -> None:
        result = invoke("build-root", str(votes_file))

        assert result.exit_code == 0
        assert expected_root in result.stdout
        assert "7 leaves, depth 3" in result.stdout

    def test_json_output(self, votes_file: Path, expected_root: str) -> None:
        result = invoke("build-root", str(votes_file), "--format", "json")

        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert data == {"root": expected_root, "leaf_count": 7, "depth": 3, "layers": 4}

    def test_timestamped_votes_are_ordered(
        self, tmp_path: Path, leaf_hashes: list[str], expected_root: str
    ) -> None:
        """Exported records are sorted by (timestamp, vote_hash) before hashing."""
        records = [
            {"vote_hash": h, "timestamp": f"2025-10-22T14:03:{i:02d}Z"}
            for i, h in enumerate(leaf_hashes)
        ]
        path = tmp_path / "records.json"
        path.write_text(json.dumps(list(reversed(records))))

        result = invoke("build-root", str(path), "-o", "json")

        assert result.exit_code == 0
        assert json.loads(result.stdout)["root"] == expected_root

    def test_empty_vote_set_fails(self, tmp_path: Path) -> None:
        path = tmp_path / "empty.json"
        path.write_text("[]")

        result = invoke("build-root", str(path))

        assert result.exit_code == 1

    def test_missing_file_fails(self, tmp_path: Path) -> None:
        result = invoke("build-root", str(tmp_path / "absent.json"))

        assert result.exit_code == 1
        assert "File not found" in result.stdout

    def test_invalid_json_fails(self, tmp_path: Path) -> None:
        path = tmp_path / "broken.json"
        path.write_text("{not json")

        result = invoke("build-root", str(path))

        assert result.exit_code == 1
        assert "Invalid JSON" in result.stdout

    def test_record_without_timestamp_fails(self, tmp_path: Path) -> None:
        path = tmp_path / "records.json"
        path.write_text(json.dumps([{"vote_hash": "a" * 64}]))

        result = invoke("build-root", str(path))

        assert result.exit_code == 1


class TestCLIProve:
    """Tests for prove command."""

    def test_prove_prints_document(
        self, votes_file: Path, leaf_hashes: list[str], expected_root: str
    ) -> None:
        result = invoke("prove", str(votes_file), leaf_hashes[6], "--election-id", "e-2025")

        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert data["proof_type"] == "merkle"
        assert data["election_id"] == "e-2025"
        assert data["leaf"] == leaf_hashes[6]
        assert data["root"] == expected_root
        assert data["path_directions"] == ["none", "left", "left"]

    def test_prove_unknown_hash_fails(self, votes_file: Path) -> None:
        result = invoke("prove", str(votes_file), "f" * 64)

        assert result.exit_code == 1
        assert "NOT FOUND" in result.stdout

    def test_prove_writes_output_file(
        self, votes_file: Path, leaf_hashes: list[str], tmp_path: Path
    ) -> None:
        proof_path = tmp_path / "proof.json"

        result = invoke("prove", str(votes_file), leaf_hashes[0], "--output", str(proof_path))

        assert result.exit_code == 0
        assert json.loads(proof_path.read_text())["leaf"] == leaf_hashes[0]


class TestCLIVerifyProof:
    """Tests for verify-proof command."""

    @pytest.fixture
    def proof_file(self, votes_file: Path, leaf_hashes: list[str], tmp_path: Path) -> Path:
        path = tmp_path / "proof.json"
        result = invoke("prove", str(votes_file), leaf_hashes[2], "-O", str(path))
        assert result.exit_code == 0
        return path

    def test_valid_proof(self, proof_file: Path) -> None:
        result = invoke("verify-proof", str(proof_file))

        assert result.exit_code == 0
        assert "VALID" in result.stdout
        assert "INVALID" not in result.stdout

    def test_valid_proof_against_published_root(
        self, proof_file: Path, expected_root: str
    ) -> None:
        result = invoke("verify-proof", str(proof_file), "--root", expected_root, "-o", "json")

        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert data["is_valid"] is True
        assert data["proof_length"] == 3
        assert data["error_message"] is None

    def test_tampered_sibling_is_invalid(self, proof_file: Path) -> None:
        document = json.loads(proof_file.read_text())
        document["sibling_path"][0] = "0" * 64
        proof_file.write_text(json.dumps(document))

        result = invoke("verify-proof", str(proof_file), "--format", "json")

        assert result.exit_code == 1
        data = json.loads(result.stdout)
        assert data["is_valid"] is False
        assert data["error_message"] == "Proof path does not resolve to its root"

    def test_published_root_mismatch_is_invalid(self, proof_file: Path) -> None:
        result = invoke("verify-proof", str(proof_file), "--root", "e" * 64)

        assert result.exit_code == 1
        assert "INVALID" in result.stdout

    def test_malformed_document_fails(self, tmp_path: Path) -> None:
        path = tmp_path / "proof.json"
        path.write_text(json.dumps({"leaf": "nope"}))

        result = invoke("verify-proof", str(path))

        assert result.exit_code == 1
        assert "Malformed proof document" in result.stdout


class TestCLICheckRoot:
    """Tests for check-root command."""

    def test_matching_root(self, votes_file: Path, expected_root: str) -> None:
        result = invoke("check-root", str(votes_file), expected_root, "--format", "json")

        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert data["root_matches"] is True
        assert data["status"] == "verified"
        assert data["leaf_count"] == 7

    def test_changed_vote_set_detected(
        self, tmp_path: Path, leaf_hashes: list[str], expected_root: str
    ) -> None:
        path = tmp_path / "votes.json"
        path.write_text(json.dumps(leaf_hashes[:-1]))

        result = invoke("check-root", str(path), expected_root)

        assert result.exit_code == 1
        assert "TAMPER SUSPECTED" in result.stdout

    def test_mismatch_json(self, votes_file: Path) -> None:
        result = invoke("check-root", str(votes_file), "e" * 64, "-o", "json")

        assert result.exit_code == 1
        data = json.loads(result.stdout)
        assert data["root_matches"] is False
        assert data["status"] == "tamper_suspected"


class TestCLITally:
    """Tests for tally command."""

    @pytest.fixture(autouse=True)
    def isolated_cwd(self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
        # No stray .env file is picked up from the working directory
        monkeypatch.chdir(tmp_path)
        for name in ("SINGLE_SEAT_QUORUM_PERCENT", "REFERENDUM_QUORUM_PERCENT"):
            monkeypatch.delenv(name, raising=False)

    def test_json_output(self, election_file: Path) -> None:
        result = invoke("tally", str(election_file), "--format", "json")

        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert data["election_id"] == "e-2025"
        assert data["turnout_percentage"] == 40.0

        president, fee = data["ballots"]
        assert president["kind"] == "SINGLE_SEAT"
        assert president["candidates"][0]["candidate_id"] == "A"
        assert president["candidates"][0]["is_winner"] is True
        assert president["ranked_choice_details"]["outcome"] == "majority_found"
        assert president["quorum"]["threshold"] == 1

        assert fee["referendum"]["yes"] == 1
        assert fee["referendum"]["no"] == 2
        assert fee["referendum"]["passed"] is False
        assert fee["quorum"]["threshold"] == 2

        assert data["summary"]["total_ballots"] == 2
        assert data["summary"]["referendums_count"] == 1

    def test_text_output(self, election_file: Path) -> None:
        result = invoke("tally", str(election_file))

        assert result.exit_code == 0
        assert "Election e-2025: 4/10 voted" in result.stdout
        assert "President" in result.stdout
        assert "WINNER" in result.stdout
        assert "FAILED" in result.stdout

    def test_quorum_from_environment(
        self, election_file: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("SINGLE_SEAT_QUORUM_PERCENT", "50")

        result = invoke("tally", str(election_file), "-o", "json")

        data = json.loads(result.stdout)
        assert data["ballots"][0]["quorum"]["threshold"] == 5
        assert data["ballots"][0]["quorum"]["reached"] is False

    def test_unknown_candidate_fails(self, tmp_path: Path) -> None:
        path = tmp_path / "bad.json"
        path.write_text(
            json.dumps(
                {
                    "election_id": "e",
                    "ballots": [
                        {
                            "id": "p",
                            "kind": "SINGLE_SEAT",
                            "candidates": [{"id": "A", "name": "Ada"}],
                            "votes": [{"type": "RANKED", "rankings": ["Z"]}],
                        }
                    ],
                }
            )
        )

        result = invoke("tally", str(path))

        assert result.exit_code == 1

    def test_unknown_ballot_kind_fails(self, tmp_path: Path) -> None:
        path = tmp_path / "bad.json"
        path.write_text(json.dumps({"ballots": [{"id": "p", "kind": "LOTTERY"}]}))

        result = invoke("tally", str(path))

        assert result.exit_code == 1
        assert "Malformed election file" in result.stdout
