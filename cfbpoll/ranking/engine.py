"""Public read path for rankings, seasons, and team detail."""

import logging
from typing import Any

from cfbpoll.data.models import (
    CalendarWeek,
    RankingsResult,
    SeasonData,
    TeamDetail,
)
from cfbpoll.data.names import normalize_team_key, same_team
from cfbpoll.ranking.caching import CachingRankingsGenerator
from cfbpoll.ranking.snapshots import SnapshotManager
from cfbpoll.ranking.teams import season_range, team_schedule

logger = logging.getLogger(__name__)


class RankingEngine:
    """
    Serves rankings to readers.

    A published snapshot always wins. Without one, rankings are computed
    on demand through the caching generator.

    Args:
        data_provider: Season data provider (get_season_data, get_calendar,
            get_full_season_schedule, get_max_season_year)
        rating_provider: Rating provider (rate_teams)
        generator: Caching rankings generator
        snapshots: Snapshot manager
        minimum_year: Oldest season offered by get_seasons
    """

    def __init__(
        self,
        data_provider: Any,
        rating_provider: Any,
        generator: CachingRankingsGenerator,
        snapshots: SnapshotManager,
        minimum_year: int = 2002,
    ):
        self.data_provider = data_provider
        self.rating_provider = rating_provider
        self.generator = generator
        self.snapshots = snapshots
        self.minimum_year = minimum_year

    async def get_rankings(self, season: int, week: int) -> RankingsResult:
        published = await self.snapshots.get_published_snapshot(season, week)
        if published is not None:
            logger.debug("Serving published snapshot for %d week %d", season, week)
            return published

        logger.debug("No published snapshot for %d week %d, computing", season, week)
        season_data = await self.data_provider.get_season_data(season, week)
        return await self._compute(season_data)

    async def _compute(self, season_data: SeasonData) -> RankingsResult:
        ratings = await self.rating_provider.rate_teams(season_data)
        return await self.generator.generate_rankings(season_data, ratings)

    async def get_available_weeks(self, season: int) -> list[CalendarWeek]:
        """Calendar weeks of `season` that have a published snapshot."""
        published = set(await self.snapshots.get_published_week_numbers(season))
        if not published:
            return []
        calendar = await self.data_provider.get_calendar(season)
        return [week for week in calendar if week.week in published]

    async def get_seasons(self) -> list[int]:
        """Seasons from the newest playable one back to minimum_year."""
        max_year = await self.data_provider.get_max_season_year()
        return season_range(self.minimum_year, max_year)

    async def get_team_detail(
        self, team_name: str, season: int, week: int
    ) -> TeamDetail | None:
        """
        One team's ranking row, colors, and full season schedule.

        Uses the published snapshot when there is one, otherwise computed
        rankings. Team names match ignoring case.

        Returns:
            TeamDetail, or None if the team is not an FBS team that season
            or does not appear in the rankings
        """
        season_data = await self.data_provider.get_season_data(season, week)

        key = normalize_team_key(team_name)
        info = next(
            (t for name, t in season_data.teams.items() if normalize_team_key(name) == key),
            None,
        )
        if info is None:
            logger.debug("Team %s not found in season data for %d week %d", team_name, season, week)
            return None

        rankings = await self.snapshots.get_published_snapshot(season, week)
        if rankings is None:
            rankings = await self._compute(season_data)

        ranked = next((r for r in rankings.rankings if same_team(team_name, r.team_name)), None)
        if ranked is None:
            logger.debug("Team %s not found in rankings for %d week %d", team_name, season, week)
            return None

        schedule = await self.data_provider.get_full_season_schedule(season)

        return TeamDetail(
            season=season,
            week=week,
            team=ranked,
            color=info.color,
            alt_color=info.alt_color,
            schedule=team_schedule(ranked.team_name, schedule, season_data.teams),
        )
