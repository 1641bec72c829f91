"""CLI for offline election verification.

Lets anyone re-derive a published Merkle root, produce or check an
inclusion proof for a receipt, and recompute ballot results, all from
exported JSON files and without access to the vote hash secret.

Commands:
    build-root      Build the Merkle tree over exported votes and print its root
    prove           Produce an inclusion proof for one vote hash
    verify-proof    Verify a proof document against its (or a published) root
    check-root      Re-derive the root and compare it to a stored root
    tally           Recompute ballot results with quorum

Votes file format (either form):
    ["<vote hash>", ...]                              # already in leaf order
    [{"vote_hash": "...", "timestamp": "2025-10-22T14:03:07.120Z"}, ...]
"""

import dataclasses
import json
import sys
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any, NoReturn, Optional

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.table import Table

from vote_integrity import __version__
from vote_integrity.application.dtos.proof import MerkleProofDocument
from vote_integrity.application.services.merkle_tree_service import (
    MerkleTreeService,
    order_vote_hashes,
    verify_merkle_proof,
)
from vote_integrity.application.services.results_aggregator_service import (
    ResultsAggregatorService,
    summarize,
)
from vote_integrity.config.engine_config import load_engine_config
from vote_integrity.domain.exceptions import VoteIntegrityError
from vote_integrity.domain.models.ballot import Ballot, BallotKind, Candidate
from vote_integrity.domain.models.results import BallotResult, ElectionResults
from vote_integrity.domain.models.vote import payload_from_wire
from vote_integrity.infrastructure.observability import (
    configure_structlog,
    generate_correlation_id,
    set_correlation_id,
)


class OutputFormat(str, Enum):
    """Output format options."""

    text = "text"
    json = "json"


app = typer.Typer(
    name="vote-integrity",
    help="Offline verification toolkit for election tallies and vote receipts",
    add_completion=False,
)
console = Console()


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"vote-integrity version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        None,
        "--version",
        "-v",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    log_level: str = typer.Option(
        "WARNING",
        "--log-level",
        envvar="LOG_LEVEL",
        help="Log level for diagnostics written to stderr.",
    ),
) -> None:
    """Vote Integrity Verification Toolkit.

    Check election results and receipts without trusting the server.
    """
    configure_structlog(environment="development", stream=sys.stderr, level=log_level)
    set_correlation_id(generate_correlation_id())


def _fail(message: str) -> NoReturn:
    console.print(f"[red]Error:[/red] {message}", style="bold")
    raise typer.Exit(code=1)


def _load_json(path: Path) -> Any:
    try:
        with open(path) as f:
            return json.load(f)
    except FileNotFoundError:
        _fail(f"File not found: {path}")
    except json.JSONDecodeError as e:
        _fail(f"Invalid JSON in {path}: {e.msg}")


@dataclasses.dataclass(frozen=True)
class _ExportedVote:
    vote_hash: str
    timestamp: datetime


def _parse_timestamp(value: str) -> datetime:
    parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _load_leaves(path: Path) -> list[str]:
    """Read a votes file and return vote hashes in leaf order."""
    data = _load_json(path)
    if not isinstance(data, list):
        _fail(f"{path} must contain a JSON list")

    if all(isinstance(item, str) for item in data):
        return data

    records = []
    for index, item in enumerate(data):
        if not isinstance(item, dict) or "vote_hash" not in item or "timestamp" not in item:
            _fail(f"Entry {index} in {path} needs vote_hash and timestamp")
        try:
            timestamp = _parse_timestamp(item["timestamp"])
        except (TypeError, ValueError):
            _fail(f"Entry {index} in {path} has an invalid timestamp")
        records.append(_ExportedVote(vote_hash=item["vote_hash"], timestamp=timestamp))
    return order_vote_hashes(records)


@app.command()
def build_root(
    votes_file: Path = typer.Argument(..., help="Exported votes (JSON)"),
    output_format: OutputFormat = typer.Option(
        OutputFormat.text,
        "--format",
        "-o",
        help="Output format: text or json",
    ),
) -> None:
    """Build the Merkle tree over exported votes and print its root.

    Example:
        vote-integrity build-root votes.json
    """
    leaves = _load_leaves(votes_file)
    try:
        stats = MerkleTreeService().tree_stats(leaves)
    except VoteIntegrityError as e:
        _fail(str(e))

    if output_format.value == "json":
        console.print_json(
            json.dumps(
                {
                    "root": stats.root,
                    "leaf_count": stats.leaf_count,
                    "depth": stats.depth,
                    "layers": stats.layers,
                }
            )
        )
    else:
        console.print(f"Merkle root: {stats.root}")
        console.print(
            f"  {stats.leaf_count} leaves, depth {stats.depth}",
            style="dim",
        )


@app.command()
def prove(
    votes_file: Path = typer.Argument(..., help="Exported votes (JSON)"),
    vote_hash: str = typer.Argument(..., help="Vote hash (receipt) to prove"),
    election_id: Optional[str] = typer.Option(
        None,
        "--election-id",
        "-e",
        help="Election identifier recorded in the proof document",
    ),
    output: Optional[Path] = typer.Option(
        None,
        "--output",
        "-O",
        help="Write the proof document to this file instead of stdout",
    ),
) -> None:
    """Produce an inclusion proof for one vote hash.

    Exits with code 1 if the hash is not part of the tree.

    Example:
        vote-integrity prove votes.json 3fa1...e9 --output proof.json
    """
    leaves = _load_leaves(votes_file)
    service = MerkleTreeService()
    try:
        tree = service.build_tree(leaves)
    except VoteIntegrityError as e:
        _fail(str(e))

    proof = service.prove_inclusion(tree, vote_hash.strip().lower())
    if proof is None:
        console.print("[red]NOT FOUND[/red] - Vote hash is not included in this tree")
        sys.exit(1)

    document = MerkleProofDocument.from_domain(proof, election_id=election_id)
    if output:
        output.write_text(document.to_json(indent=2))
        console.print(f"Proof written to {output}", style="dim")
    else:
        console.print_json(document.to_json())


@app.command()
def verify_proof(
    proof_file: Path = typer.Argument(..., help="Proof document (JSON)"),
    root: Optional[str] = typer.Option(
        None,
        "--root",
        "-r",
        help="Published Merkle root the proof must resolve to",
    ),
    output_format: OutputFormat = typer.Option(
        OutputFormat.text,
        "--format",
        "-o",
        help="Output format: text or json",
    ),
) -> None:
    """Verify a Merkle proof document.

    Without --root the proof is checked against the root it carries; pass
    the officially published root to make the check meaningful.

    Example:
        vote-integrity verify-proof proof.json --root 9b1c...04
    """
    try:
        with open(proof_file) as f:
            document = MerkleProofDocument.from_json(f.read())
    except FileNotFoundError:
        _fail(f"File not found: {proof_file}")
    except ValidationError as e:
        _fail(f"Malformed proof document: {e.error_count()} error(s)")

    root_matches = root is None or document.root == root.strip().lower()
    path_valid = verify_merkle_proof(document.to_domain())
    is_valid = root_matches and path_valid

    if not root_matches:
        error_message = "Proof root differs from the published root"
    elif not path_valid:
        error_message = "Proof path does not resolve to its root"
    else:
        error_message = None

    if output_format.value == "json":
        console.print_json(
            json.dumps(
                {
                    "is_valid": is_valid,
                    "leaf": document.leaf,
                    "root": document.root,
                    "proof_length": len(document.sibling_path),
                    "error_message": error_message,
                }
            )
        )
        if not is_valid:
            sys.exit(1)
    else:
        if is_valid:
            console.print(
                f"[green]VALID[/green] - Vote {document.leaf[:16]}... is included "
                f"({len(document.sibling_path)} proof steps)",
            )
            console.print(f"  Root: {document.root[:16]}...", style="dim")
        else:
            console.print(f"[red]INVALID[/red] - {error_message}")
            sys.exit(1)


@app.command()
def check_root(
    votes_file: Path = typer.Argument(..., help="Exported votes (JSON)"),
    stored_root: str = typer.Argument(..., help="Previously published Merkle root"),
    output_format: OutputFormat = typer.Option(
        OutputFormat.text,
        "--format",
        "-o",
        help="Output format: text or json",
    ),
) -> None:
    """Re-derive the Merkle root and compare it to a stored root.

    A mismatch means the vote set changed after the root was published.

    Example:
        vote-integrity check-root votes.json 9b1c...04
    """
    leaves = _load_leaves(votes_file)
    try:
        stats = MerkleTreeService().tree_stats(leaves, stored_root=stored_root.strip().lower())
    except VoteIntegrityError as e:
        _fail(str(e))

    if output_format.value == "json":
        console.print_json(
            json.dumps(
                {
                    "root_matches": stats.root_matches,
                    "status": stats.integrity_status.value if stats.integrity_status else None,
                    "derived_root": stats.root,
                    "stored_root": stats.stored_root,
                    "leaf_count": stats.leaf_count,
                }
            )
        )
        if not stats.root_matches:
            sys.exit(1)
    else:
        if stats.root_matches:
            console.print(
                f"[green]VERIFIED[/green] - Root matches ({stats.leaf_count} votes)"
            )
        else:
            console.print("[red]TAMPER SUSPECTED[/red] - Derived root differs from stored root")
            console.print(f"  Derived: {stats.root[:16]}...")
            console.print(f"  Stored:  {stats.stored_root[:16]}...")
            sys.exit(1)


def _ballot_from_json(data: dict[str, Any]) -> Ballot:
    return Ballot(
        id=data["id"],
        kind=BallotKind(data["kind"]),
        candidates=tuple(
            Candidate(id=c["id"], name=c.get("name", c["id"]))
            for c in data.get("candidates", [])
        ),
        seats_available=data.get("seats_available", 1),
        scope=data.get("scope"),
        title=data.get("title", ""),
    )


def _load_election(path: Path) -> tuple[dict[str, Any], list[Ballot], dict[str, list]]:
    data = _load_json(path)
    try:
        ballots = [_ballot_from_json(b) for b in data["ballots"]]
        votes = {
            b["id"]: [payload_from_wire(v) for v in b.get("votes", [])]
            for b in data["ballots"]
        }
    except (KeyError, TypeError, ValueError, VoteIntegrityError) as e:
        _fail(f"Malformed election file {path}: {e}")
    return data, ballots, votes


def _print_ballot(result: BallotResult) -> None:
    quorum = result.quorum
    quorum_text = (
        "[green]quorum reached[/green]" if quorum.reached else "[yellow]quorum not reached[/yellow]"
    )
    console.print(
        f"\n[bold]{result.ballot_title or result.ballot_id}[/bold] "
        f"({result.kind.value}, {result.total_votes} votes, "
        f"threshold {quorum.threshold}, {quorum_text})"
    )

    if result.referendum is not None:
        ref = result.referendum
        table = Table()
        table.add_column("Choice")
        table.add_column("Votes", justify="right")
        table.add_column("%", justify="right")
        table.add_row(ref.yes_label, str(ref.yes), f"{ref.yes_percentage:.2f}")
        table.add_row(ref.no_label, str(ref.no), f"{ref.no_percentage:.2f}")
        table.add_row("ABSTAIN", str(ref.abstain), "")
        console.print(table)
        outcome = "TIED" if ref.is_tied else ("PASSED" if ref.passed else "FAILED")
        console.print(f"  Outcome: {outcome}")
        return

    table = Table()
    table.add_column("Candidate")
    table.add_column("First choice", justify="right")
    table.add_column("Final / Score", justify="right")
    table.add_column("%", justify="right")
    table.add_column("Result")
    for c in result.candidates or ():
        final = c.score if c.score is not None else c.final_round_votes
        flag = "TIED" if c.is_tied else ""
        status = "WINNER" if c.is_winner else ""
        table.add_row(
            c.name,
            str(c.first_choice_votes),
            "" if final is None else str(final),
            f"{c.percentage:.2f}",
            " ".join(s for s in (status, flag) if s),
        )
    console.print(table)

    if result.ranked_choice_details is not None:
        for line in result.ranked_choice_details.description:
            console.print(f"  {line}", style="dim")
    if result.requires_adjudication:
        console.print("[yellow]  Tie at the seat cutoff requires manual adjudication[/yellow]")


def _results_to_dict(results: ElectionResults) -> dict[str, Any]:
    output = dataclasses.asdict(results)
    output["summary"] = dataclasses.asdict(summarize(results))
    return output


@app.command()
def tally(
    election_file: Path = typer.Argument(..., help="Election export (JSON)"),
    output_format: OutputFormat = typer.Option(
        OutputFormat.text,
        "--format",
        "-o",
        help="Output format: text or json",
    ),
) -> None:
    """Recompute ballot results with quorum.

    Quorum percentages come from the environment (or a .env file).

    Example:
        vote-integrity tally election.json --format json
    """
    data, ballots, votes = _load_election(election_file)
    aggregator = ResultsAggregatorService.from_config(load_engine_config())
    try:
        results = aggregator.aggregate_election(
            election_id=data.get("election_id", ""),
            ballots=ballots,
            votes_by_ballot=votes,
            total_eligible_voters=data.get("total_eligible_voters", 0),
            total_voted=data.get("total_voted", 0),
            scope_eligible_voters=data.get("scope_eligible_voters"),
        )
    except VoteIntegrityError as e:
        _fail(str(e))

    if output_format.value == "json":
        console.print_json(json.dumps(_results_to_dict(results)))
        return

    summary = summarize(results)
    console.print(
        f"Election {results.election_id}: {summary.voted}/{summary.eligible} voted "
        f"({summary.turnout_percentage:.2f}% turnout)"
    )
    for ballot_result in results.ballots:
        _print_ballot(ballot_result)
    if summary.ballots_with_ties:
        console.print(f"\n[yellow]{summary.ballots_with_ties} ballot(s) with ties[/yellow]")


if __name__ == "__main__":
    app()
