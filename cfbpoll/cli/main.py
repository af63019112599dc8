"""Operator CLI for the CFB poll.

Provides commands for computing, publishing, and exporting weekly rankings,
browsing snapshots, and maintaining the cache.
"""

import asyncio
import csv
import json
import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Annotated, AsyncIterator

import typer
from dotenv import load_dotenv
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from cfbpoll.algorithm.rating import RatingProvider
from cfbpoll.config import Settings
from cfbpoll.data.cache import PersistentCache
from cfbpoll.data.caching_client import CachingCFBDataClient
from cfbpoll.data.client import APIError, CFBDataClient, RateLimitError
from cfbpoll.data.models import (
    AllTimeEntry,
    AllTimeResult,
    CalculateRankingsResult,
    CalendarWeek,
    PersistedWeekSummary,
    RankingsResult,
    TeamDetail,
)
from cfbpoll.data.storage import Storage
from cfbpoll.ranking.admin import AdminService
from cfbpoll.ranking.alltime import AllTimeAggregator
from cfbpoll.ranking.caching import CachingRankingsGenerator
from cfbpoll.ranking.engine import RankingEngine
from cfbpoll.ranking.generator import RankingsGenerator
from cfbpoll.ranking.snapshots import SnapshotManager
from cfbpoll.ranking.teams import week_labels

# Load environment variables from .env file
load_dotenv()

app = typer.Typer(
    name="cfbpoll",
    help="College football computer poll - compute, publish, and export weekly rankings.",
)
console = Console()


class ExportFormat(str, Enum):
    """Export file formats."""

    csv = "csv"
    json = "json"


# =============================================================================
# Service Wiring
# =============================================================================


@dataclass
class Services:
    """Everything a command needs, wired against one pair of databases."""

    settings: Settings
    cache: PersistentCache
    snapshots: SnapshotManager
    admin: AdminService | None = None
    engine: RankingEngine | None = None
    all_time: AllTimeAggregator | None = None


@asynccontextmanager
async def open_services(with_api: bool = True) -> AsyncIterator[Services]:
    """
    Open storage and build the service graph.

    Args:
        with_api: Also build the upstream data provider and the services that
            depend on it (requires CFBD_API_KEY)

    Raises:
        ValueError: If with_api is set and CFBD_API_KEY is missing
    """
    settings = Settings.from_env()
    api_key = settings.require_api_key() if with_api else None

    storage = Storage(settings.db_path)
    cache_storage = Storage(settings.cache_db_path)
    try:
        await storage.initialize()
        await cache_storage.initialize()

        cache = PersistentCache(cache_storage)
        snapshots = SnapshotManager(storage)
        services = Services(settings=settings, cache=cache, snapshots=snapshots)

        if api_key:
            client = CFBDataClient(api_key=api_key, minimum_year=settings.minimum_year)
            provider = CachingCFBDataClient(client, cache, settings)
            rating_provider = RatingProvider()
            generator = RankingsGenerator()
            services.admin = AdminService(provider, rating_provider, generator, snapshots, cache)
            services.engine = RankingEngine(
                provider,
                rating_provider,
                CachingRankingsGenerator(generator, cache, settings.rankings_expiration_hours),
                snapshots,
                minimum_year=settings.minimum_year,
            )
            services.all_time = AllTimeAggregator(provider, snapshots)

        yield services
    finally:
        await storage.close()
        await cache_storage.close()


# =============================================================================
# Helper Functions (can be mocked in tests)
# =============================================================================


def get_rankings(season: int, week: int) -> RankingsResult:
    """Published snapshot if one exists, otherwise computed rankings."""

    async def _get() -> RankingsResult:
        async with open_services() as services:
            return await services.engine.get_rankings(season, week)

    return asyncio.run(_get())


def calculate_rankings(season: int, week: int) -> CalculateRankingsResult:
    """Recompute from fresh data and save as a draft."""

    async def _calculate() -> CalculateRankingsResult:
        async with open_services() as services:
            return await services.admin.calculate_rankings(season, week)

    return asyncio.run(_calculate())


def publish_snapshot(season: int, week: int) -> bool:
    async def _publish() -> bool:
        async with open_services(with_api=False) as services:
            admin = AdminService(None, None, RankingsGenerator(), services.snapshots, services.cache)
            return await admin.publish_snapshot(season, week)

    return asyncio.run(_publish())


def delete_snapshot(season: int, week: int) -> bool:
    async def _delete() -> bool:
        async with open_services(with_api=False) as services:
            admin = AdminService(None, None, RankingsGenerator(), services.snapshots, services.cache)
            return await admin.delete_snapshot(season, week)

    return asyncio.run(_delete())


def get_persisted_weeks() -> list[PersistedWeekSummary]:
    async def _get() -> list[PersistedWeekSummary]:
        async with open_services(with_api=False) as services:
            return await services.snapshots.get_persisted_weeks()

    return asyncio.run(_get())


def get_available_weeks(season: int) -> list[CalendarWeek]:
    async def _get() -> list[CalendarWeek]:
        async with open_services() as services:
            return await services.engine.get_available_weeks(season)

    return asyncio.run(_get())


def get_seasons() -> list[int]:
    async def _get() -> list[int]:
        async with open_services() as services:
            return await services.engine.get_seasons()

    return asyncio.run(_get())


def get_team_detail(team_name: str, season: int, week: int) -> TeamDetail | None:
    async def _get() -> TeamDetail | None:
        async with open_services() as services:
            return await services.engine.get_team_detail(team_name, season, week)

    return asyncio.run(_get())


def get_all_time_rankings() -> AllTimeResult:
    async def _get() -> AllTimeResult:
        async with open_services() as services:
            return await services.all_time.get_all_time_rankings()

    return asyncio.run(_get())


def get_snapshot(season: int, week: int) -> RankingsResult | None:
    """Draft or published snapshot for (season, week)."""

    async def _get() -> RankingsResult | None:
        async with open_services(with_api=False) as services:
            return await services.snapshots.get_snapshot(season, week)

    return asyncio.run(_get())


def cleanup_cache() -> int:
    async def _cleanup() -> int:
        async with open_services(with_api=False) as services:
            return await services.cache.cleanup_expired()

    return asyncio.run(_cleanup())


def get_default_output_path(season: int, week: int, format: str) -> Path:
    return Path(f"rankings_{season}_week{week}.{format}")


def _call(fn, *args):
    """Run a helper, turning expected failures into a red message and exit code 1."""
    try:
        return fn(*args)
    except (ValueError, APIError, RateLimitError) as e:
        console.print(f"[red]{escape(str(e))}[/red]")
        raise typer.Exit(1)


def _rankings_table(result: RankingsResult, top: int, title: str) -> Table:
    table = Table(title=title)
    table.add_column("Rank", justify="right", style="cyan")
    table.add_column("Team", style="bold")
    table.add_column("Conf")
    table.add_column("Record", justify="center")
    table.add_column("Rating", justify="right", style="green")
    table.add_column("SOS", justify="right")
    table.add_column("SOS Rank", justify="right")

    for r in result.rankings[:top]:
        table.add_row(
            str(r.rank),
            r.team_name,
            r.conference or "-",
            f"{r.wins}-{r.losses}",
            f"{r.rating:.4f}",
            f"{r.weighted_sos:.4f}",
            str(r.sos_ranking),
        )
    return table


def _all_time_table(title: str, entries: list[AllTimeEntry]) -> Table:
    table = Table(title=title)
    table.add_column("#", justify="right", style="cyan")
    table.add_column("Season", justify="right")
    table.add_column("Team", style="bold")
    table.add_column("Rank", justify="right")
    table.add_column("Record", justify="center")
    table.add_column("Rating", justify="right", style="green")
    table.add_column("SOS", justify="right")

    for e in entries:
        table.add_row(
            str(e.all_time_rank),
            str(e.season),
            e.team_name,
            str(e.rank),
            f"{e.wins}-{e.losses}",
            f"{e.rating:.4f}",
            f"{e.weighted_sos:.4f}",
        )
    return table


# =============================================================================
# CLI Commands
# =============================================================================


@app.callback()
def main(
    verbose: Annotated[
        bool, typer.Option("--verbose", "-v", help="Enable debug logging")
    ] = False,
) -> None:
    """College football computer poll."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), rich_tracebacks=True)],
        force=True,
    )


@app.command()
def rank(
    season: Annotated[int, typer.Argument(help="Season year (e.g., 2024)")],
    week: Annotated[int, typer.Argument(help="Week number")],
    top: Annotated[int, typer.Option("--top", "-t", help="Number of teams to display")] = 25,
) -> None:
    """Show rankings for a week (published snapshot if available)."""
    result = _call(get_rankings, season, week)

    if not result.rankings:
        console.print("[yellow]No rankings available for the specified parameters.[/yellow]")
        return

    console.print(_rankings_table(result, top, f"CFB Poll - {season} Week {week}"))


@app.command()
def calculate(
    season: Annotated[int, typer.Argument(help="Season year")],
    week: Annotated[int, typer.Argument(help="Week number")],
    top: Annotated[int, typer.Option("--top", "-t", help="Number of teams to display")] = 25,
) -> None:
    """Recompute rankings from fresh data and save them as a draft."""
    result = _call(calculate_rankings, season, week)

    if result.persisted:
        console.print(f"[green]Saved draft snapshot for {season} week {week}[/green]")
    else:
        console.print(
            f"[yellow]Rankings computed but not saved for {season} week {week}[/yellow]"
        )

    console.print(
        _rankings_table(result.rankings, top, f"CFB Poll (draft) - {season} Week {week}")
    )


@app.command()
def publish(
    season: Annotated[int, typer.Argument(help="Season year")],
    week: Annotated[int, typer.Argument(help="Week number")],
) -> None:
    """Publish a saved snapshot."""
    if not _call(publish_snapshot, season, week):
        console.print(f"[red]No snapshot found for {season} week {week}[/red]")
        raise typer.Exit(1)
    console.print(f"[green]Published {season} week {week}[/green]")


@app.command()
def delete(
    season: Annotated[int, typer.Argument(help="Season year")],
    week: Annotated[int, typer.Argument(help="Week number")],
) -> None:
    """Delete a saved snapshot."""
    if not _call(delete_snapshot, season, week):
        console.print(f"[red]No snapshot found for {season} week {week}[/red]")
        raise typer.Exit(1)
    console.print(f"[green]Deleted {season} week {week}[/green]")


@app.command()
def snapshots() -> None:
    """List every saved snapshot, newest first."""
    weeks = _call(get_persisted_weeks)

    if not weeks:
        console.print("[yellow]No snapshots saved.[/yellow]")
        return

    table = Table(title="Snapshots")
    table.add_column("Season", justify="right", style="cyan")
    table.add_column("Week", justify="right")
    table.add_column("Status", justify="center")
    table.add_column("Created")

    for w in weeks:
        status = "[green]Published[/green]" if w.published else "[yellow]Draft[/yellow]"
        table.add_row(
            str(w.season), str(w.week), status, w.created_at.strftime("%Y-%m-%d %H:%M")
        )

    console.print(table)


@app.command()
def weeks(
    season: Annotated[int, typer.Argument(help="Season year")],
) -> None:
    """List weeks of a season with published rankings."""
    available = _call(get_available_weeks, season)

    if not available:
        console.print(f"[yellow]No published weeks for {season}.[/yellow]")
        return

    table = Table(title=f"Published Weeks - {season}")
    table.add_column("Week", justify="right", style="cyan")
    table.add_column("Label")
    table.add_column("Type")
    table.add_column("Start")
    table.add_column("End")

    for w, info in zip(available, week_labels(available)):
        table.add_row(
            str(w.week),
            info.label,
            w.season_type,
            w.start_date.strftime("%Y-%m-%d") if w.start_date else "-",
            w.end_date.strftime("%Y-%m-%d") if w.end_date else "-",
        )

    console.print(table)


@app.command()
def seasons() -> None:
    """List seasons that can be ranked, newest first."""
    available = _call(get_seasons)

    if not available:
        console.print("[yellow]No seasons available.[/yellow]")
        return

    console.print(f"[bold]Seasons:[/bold] {available[0]} - {available[-1]}")
    console.print(", ".join(str(s) for s in available))


@app.command()
def team(
    season: Annotated[int, typer.Argument(help="Season year")],
    week: Annotated[int, typer.Argument(help="Week number")],
    name: Annotated[str, typer.Argument(help="Team name (case-insensitive)")],
) -> None:
    """Show one team's ranking and full season schedule."""
    detail = _call(get_team_detail, name, season, week)

    if detail is None:
        console.print(f"[red]Team {escape(name)} not found for {season} week {week}[/red]")
        raise typer.Exit(1)

    r = detail.team
    console.print(f"\n[bold]{r.team_name}[/bold] ({r.conference or '-'})")
    console.print(f"  Rank: #{r.rank}  Record: {r.wins}-{r.losses}")
    console.print(f"  Rating: {r.rating:.4f}  SOS: {r.weighted_sos:.4f} (#{r.sos_ranking})")

    table = Table(title=f"Schedule - {season}")
    table.add_column("Week", justify="right", style="cyan")
    table.add_column("Date")
    table.add_column("Opponent", style="bold")
    table.add_column("Opp Record", justify="center")
    table.add_column("Result", justify="center")

    for g in detail.schedule:
        prefix = "vs" if g.is_home or g.neutral_site else "@"
        if g.is_win is None:
            outcome = "-"
        else:
            letter = "[green]W[/green]" if g.is_win else "[red]L[/red]"
            outcome = f"{letter} {g.team_score}-{g.opponent_score}"
        table.add_row(
            "Post" if g.season_type == "postseason" else str(g.week),
            g.game_date.strftime("%Y-%m-%d") if g.game_date else "TBD",
            f"{prefix} {g.opponent_name}",
            g.opponent_record or "-",
            outcome,
        )

    console.print(table)


@app.command("all-time")
def all_time() -> None:
    """Best teams, worst teams, and hardest schedules across all final polls."""
    result = _call(get_all_time_rankings)

    if not result.best_teams and not result.hardest_schedules:
        console.print("[yellow]No published final rankings yet.[/yellow]")
        return

    console.print(_all_time_table("Best Teams", result.best_teams))
    console.print(_all_time_table("Worst Teams", result.worst_teams))
    console.print(_all_time_table("Hardest Schedules", result.hardest_schedules))


@app.command()
def export(
    season: Annotated[int, typer.Argument(help="Season year")],
    week: Annotated[int, typer.Argument(help="Week number")],
    format: Annotated[
        ExportFormat, typer.Option("--format", "-f", help="Export format")
    ] = ExportFormat.csv,
    output: Annotated[str | None, typer.Option("--output", "-o", help="Output file path")] = None,
) -> None:
    """Export a saved snapshot (draft or published) to CSV or JSON."""
    result = _call(get_snapshot, season, week)

    if result is None:
        console.print(f"[red]No snapshot found for {season} week {week}[/red]")
        raise typer.Exit(1)

    output_path = Path(output) if output else get_default_output_path(season, week, format.value)

    if format == ExportFormat.csv:
        _export_csv(result, output_path)
    elif format == ExportFormat.json:
        _export_json(result, output_path)

    console.print(f"[green]Exported {len(result.rankings)} teams to {output_path}[/green]")


CSV_COLUMNS = [
    "rank",
    "team_name",
    "conference",
    "division",
    "wins",
    "losses",
    "rating",
    "weighted_sos",
    "strength_of_schedule",
    "sos_ranking",
]


def _export_csv(result: RankingsResult, path: Path) -> None:
    """Fixed columns, then one column per rating component (sorted union across teams)."""
    components = sorted({name for r in result.rankings for name in r.rating_components})

    with open(path, "w", newline="") as f:
        writer = csv.writer(f)
        writer.writerow(CSV_COLUMNS + components)

        for r in result.rankings:
            writer.writerow(
                [
                    r.rank,
                    r.team_name,
                    r.conference,
                    r.division,
                    r.wins,
                    r.losses,
                    r.rating,
                    r.weighted_sos,
                    r.strength_of_schedule,
                    r.sos_ranking,
                ]
                + [r.rating_components.get(name, "") for name in components]
            )


def _export_json(result: RankingsResult, path: Path) -> None:
    with open(path, "w") as f:
        json.dump(result.model_dump(mode="json"), f, indent=2)


@app.command("cache-cleanup")
def cache_cleanup() -> None:
    """Remove expired cache entries."""
    removed = _call(cleanup_cache)
    console.print(f"[green]Removed {removed} expired cache entries[/green]")


if __name__ == "__main__":
    app()
