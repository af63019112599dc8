"""All-time leaderboards built from published final (postseason) snapshots."""

import logging
from typing import Any

from cfbpoll.data.models import AllTimeEntry, AllTimeResult, RankingsResult
from cfbpoll.ranking.snapshots import SnapshotManager

logger = logging.getLogger(__name__)

BEST_TEAMS_THRESHOLD = 40.0
WORST_TEAMS_THRESHOLD = 16.0
LIST_SIZE = 25


def _entries(snapshot: RankingsResult) -> list[AllTimeEntry]:
    return [
        AllTimeEntry(
            season=snapshot.season,
            week=snapshot.week,
            rank=team.rank,
            team_name=team.team_name,
            logo_url=team.logo_url,
            rating=team.rating,
            weighted_sos=team.weighted_sos,
            wins=team.wins,
            losses=team.losses,
        )
        for team in snapshot.rankings
    ]


def _with_all_time_rank(entries: list[AllTimeEntry]) -> list[AllTimeEntry]:
    return [
        entry.model_copy(update={"all_time_rank": i})
        for i, entry in enumerate(entries, start=1)
    ]


def best_teams(pool: list[AllTimeEntry]) -> list[AllTimeEntry]:
    """Top ratings at or above the threshold, or the top of the whole pool if too few qualify."""
    qualifying = [e for e in pool if e.rating >= BEST_TEAMS_THRESHOLD]
    if len(qualifying) < LIST_SIZE:
        qualifying = pool
    ranked = sorted(qualifying, key=lambda e: e.rating, reverse=True)
    return _with_all_time_rank(ranked[:LIST_SIZE])


def worst_teams(pool: list[AllTimeEntry]) -> list[AllTimeEntry]:
    """Lowest ratings among teams that played, preferring those at or below the threshold."""
    eligible = [e for e in pool if e.wins + e.losses > 0]
    qualifying = [e for e in eligible if e.rating <= WORST_TEAMS_THRESHOLD]
    if len(qualifying) < LIST_SIZE:
        qualifying = eligible
    ranked = sorted(qualifying, key=lambda e: e.rating)
    return _with_all_time_rank(ranked[:LIST_SIZE])


def hardest_schedules(pool: list[AllTimeEntry]) -> list[AllTimeEntry]:
    ranked = sorted(pool, key=lambda e: e.weighted_sos, reverse=True)
    return _with_all_time_rank(ranked[:LIST_SIZE])


class AllTimeAggregator:
    """
    Aggregates every season's published final snapshot.

    Args:
        data_provider: Provider exposing get_calendar(year)
        snapshots: Snapshot manager
    """

    def __init__(self, data_provider: Any, snapshots: SnapshotManager):
        self.data_provider = data_provider
        self.snapshots = snapshots

    async def _final_snapshot(self, season: int) -> RankingsResult | None:
        calendar = await self.data_provider.get_calendar(season)
        postseason = next(
            (w for w in calendar if (w.season_type or "").casefold() == "postseason"),
            None,
        )
        if postseason is None:
            logger.debug("No postseason week in %d calendar, skipping", season)
            return None

        snapshot = await self.snapshots.get_published_snapshot(season, postseason.week)
        if snapshot is None:
            logger.debug(
                "No published snapshot for %d week %d, skipping", season, postseason.week
            )
        return snapshot

    async def get_all_time_rankings(self) -> AllTimeResult:
        pool: list[AllTimeEntry] = []
        for season in await self.snapshots.get_published_seasons():
            snapshot = await self._final_snapshot(season)
            if snapshot is not None:
                pool.extend(_entries(snapshot))

        logger.info("Aggregated %d team-seasons for all-time rankings", len(pool))
        return AllTimeResult(
            best_teams=best_teams(pool),
            worst_teams=worst_teams(pool),
            hardest_schedules=hardest_schedules(pool),
        )
