"""MentorMatch CLI - Preference-weighted mentor ranking."""

import json
import logging
import sys
from pathlib import Path
from typing import NoReturn

import typer
from rich.console import Console, Group
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from mentormatch.config import DB_PATH, DEFAULT_TOP_N, IS_CLOUD, LOG_LEVEL, WEIGHT_POLICY
from mentormatch.db.connection import init_tables
from mentormatch.db.profiles import count_candidates, list_seeker_ids
from mentormatch.db.rankings import count_match_results
from mentormatch.matching.scorer import BlendMode
from mentormatch.schemas.match import MatchResult
from mentormatch.services.import_service import load_profiles_from_file
from mentormatch.services.ranking_service import (
    explain_matches,
    get_stored_matches,
    get_top_matches,
    refresh_ranking,
)
from mentormatch.utils import MentorMatchError

app = typer.Typer(help="MentorMatch - Rank mentors for mentees by weighted preferences")
console = Console()


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
) -> None:
    """Configure logging for every command."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else LOG_LEVEL,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


def _fail(action: str, error: Exception) -> NoReturn:
    console.print(f"[red]Error {action}: {escape(str(error))}[/red]")
    if not isinstance(error, MentorMatchError):
        import traceback

        traceback.print_exc()
    raise typer.Exit(1)


@app.command(name="init-db")
def init_db() -> None:
    """Create the database tables if they don't exist."""
    try:
        init_tables()
    except Exception as e:
        _fail("initializing database", e)

    target = "PostgreSQL (cloud)" if IS_CLOUD else str(DB_PATH)
    console.print(f"[bold green]Database ready:[/bold green] {target}")


@app.command(name="import-profiles")
def import_profiles(
    profiles_file: Path = typer.Option(
        ..., "--file", "-f", help="Path to profiles JSON file"
    ),
) -> None:
    """Import mentee preferences and mentor profiles from a JSON file.

    The JSON file should contain one object:
    {"preferences": [{"seeker_id": "...", ...}], "mentors": [{"candidate_id": "...", ...}]}

    Existing profiles with the same id are replaced.
    """
    if not profiles_file.exists():
        console.print(f"[red]Error: File not found: {profiles_file}[/red]")
        raise typer.Exit(1)

    try:
        stats = load_profiles_from_file(file_path=profiles_file)
    except Exception as e:
        _fail("importing profiles", e)

    console.print(f"[bold green]Imported profiles from {profiles_file}[/bold green]")
    console.print(f"  Preferences: {stats['preferences']}")
    console.print(f"  Mentors: {stats['mentors']}")


@app.command()
def refresh(
    seeker: str = typer.Option(..., "--seeker", "-s", help="Mentee user id"),
    full: bool = typer.Option(
        False, "--full", help="Rescore every mentor, ignoring the last refresh time"
    ),
    top_n: int = typer.Option(
        DEFAULT_TOP_N, "--top-n", "-n", help="Number of top matches to display"
    ),
    output_json: bool = typer.Option(
        False, "--json", help="Output the summary as JSON"
    ),
) -> None:
    """Recompute and store mentor rankings for a mentee."""
    try:
        summary = refresh_ranking(seeker_id=seeker, top_n=top_n, full=full)
    except Exception as e:
        _fail("refreshing rankings", e)

    if output_json:
        json.dump(obj=summary.model_dump(mode="json"), fp=sys.stdout, indent=2)
        sys.stdout.write("\n")
        return

    mode = "incremental" if summary.incremental else "full scan"
    console.print(f"[bold green]Refresh complete ({mode})[/bold green]")
    console.print(f"  Matches: {summary.total}")
    console.print(f"  Created: {summary.created}")
    console.print(f"  Updated: {summary.updated}")
    if summary.skipped:
        console.print(f"  [yellow]Skipped: {summary.skipped}[/yellow]")

    if summary.top:
        _output_pretty(matches=summary.top, title=f"Top matches for {seeker}")


@app.command()
def top(
    seeker: str = typer.Option(..., "--seeker", "-s", help="Mentee user id"),
    n: int = typer.Option(1, "--count", "-n", help="Number of matches to return"),
    output_json: bool = typer.Option(
        False, "--json", help="Output results as JSON"
    ),
) -> None:
    """Score every mentor now (with tag blending) and show the best matches.

    Results are not stored.
    """
    try:
        matches = get_top_matches(seeker_id=seeker, n=n)
    except Exception as e:
        _fail("finding top matches", e)

    if not matches:
        console.print(f"[yellow]No matching mentors for {seeker}.[/yellow]")
        return

    if output_json:
        _output_json(matches=matches)
    else:
        _output_pretty(matches=matches, title=f"Best mentors for {seeker}")


@app.command()
def results(
    seeker: str = typer.Option(..., "--seeker", "-s", help="Mentee user id"),
    limit: int = typer.Option(
        DEFAULT_TOP_N, "--limit", "-n", help="Number of results to show"
    ),
    output_json: bool = typer.Option(
        False, "--json", help="Output results as JSON"
    ),
) -> None:
    """Show stored rankings from the most recent refresh."""
    try:
        matches = get_stored_matches(seeker_id=seeker, limit=limit)
    except Exception as e:
        _fail("fetching results", e)

    if not matches:
        console.print(
            f"[yellow]No stored rankings for {seeker}. "
            f"Run 'mentormatch refresh --seeker {seeker}' first.[/yellow]"
        )
        return

    if output_json:
        _output_json(matches=matches)
    else:
        _output_pretty(matches=matches, title=f"Stored rankings for {seeker}")


@app.command()
def explain(
    seeker: str = typer.Option(..., "--seeker", "-s", help="Mentee user id"),
    mentor: str | None = typer.Option(
        None, "--mentor", "-m", help="Only explain this mentor"
    ),
    tags: bool = typer.Option(
        False, "--tags", help="Blend tag overlap into the score"
    ),
) -> None:
    """Show how each mentor's score was composed, factor by factor."""
    blend = BlendMode.TAG_BLENDED if tags else BlendMode.PREFERENCE_ONLY
    try:
        scored = explain_matches(seeker_id=seeker, candidate_id=mentor, blend=blend)
    except Exception as e:
        _fail("explaining matches", e)

    if not scored:
        console.print(f"[yellow]Nothing to explain for {seeker}.[/yellow]")
        return

    for i, (candidate, result) in enumerate(iterable=scored, start=1):
        table = Table(show_header=True, header_style="cyan", box=None)
        table.add_column("Factor")
        table.add_column("Match", justify="right")
        table.add_column("Weight", justify="right")
        table.add_column("Points", justify="right")

        for c in result.trace.contributions:
            table.add_row(
                c.factor.label,
                f"{c.raw_score:.0%}",
                f"{c.weight:.3f}",
                f"{100 * c.contribution:.1f}",
            )

        content = [table]
        if result.trace.absent_factors:
            absent = ", ".join(f.label for f in result.trace.absent_factors)
            content.append(f"[dim]Not compared: {absent}[/dim]")

        header = (
            f"[bold]#{i} {candidate.candidate_id}[/bold] "
            f"score {result.score} (preference {result.preference_score}, "
            f"tags {result.tag_score:.1f})"
        )
        console.print(Panel.fit(renderable=Group(*content), title=header, border_style="blue"))


@app.command()
def info() -> None:
    """Display system information and database stats."""
    console.print("[bold cyan]MentorMatch System Information[/bold cyan]\n")

    if not IS_CLOUD and not DB_PATH.exists():
        console.print(
            "[yellow]Database not found. Run 'mentormatch init-db' first.[/yellow]"
        )
        return

    try:
        mentor_count = count_candidates()
        seeker_count = len(list_seeker_ids())
        ranking_count = count_match_results()
    except Exception as e:
        _fail("reading database", e)

    table = Table(title="Database Statistics")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", style="green")

    if IS_CLOUD:
        table.add_row("Database", "PostgreSQL (cloud)")
    else:
        table.add_row("Database", str(DB_PATH))
    table.add_row("Mentors", str(mentor_count))
    table.add_row("Mentees with preferences", str(seeker_count))
    table.add_row("Stored rankings", str(ranking_count))
    table.add_row("Weight policy", WEIGHT_POLICY)

    console.print(table)


def _output_json(matches: list[MatchResult]) -> None:
    """Output matches as JSON to stdout."""
    output = [match.model_dump(mode="json") for match in matches]
    json.dump(obj=output, fp=sys.stdout, indent=2)
    sys.stdout.write("\n")


def _output_pretty(matches: list[MatchResult], title: str) -> None:
    """Output matches as a ranked table."""
    table = Table(title=title)
    table.add_column("#", style="dim", justify="right")
    table.add_column("Mentor", style="cyan")
    table.add_column("Score", style="green", justify="right")
    table.add_column("Preference", justify="right")
    table.add_column("Tags", justify="right")
    table.add_column("Breakdown", style="dim")

    for i, match in enumerate(iterable=matches, start=1):
        table.add_row(
            str(i),
            match.candidate_id,
            f"{match.score}%",
            str(match.preference_score),
            f"{match.tag_score:.1f}",
            match.breakdown,
        )

    console.print(table)


if __name__ == "__main__":
    app()
