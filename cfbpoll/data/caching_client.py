"""Caching wrapper around a season data provider.

Each upstream component (teams, games, advanced stats, season stats, calendar,
schedule) is cached under its own key, and SeasonData is re-assembled from the
cached components on every call. Forcing a fresh fetch for a season/week is a
matter of evicting the keys from season_cache_keys().
"""

import logging
from datetime import timedelta
from typing import Any, Awaitable, Callable

from pydantic import BaseModel

from cfbpoll.config import Settings
from cfbpoll.data.assembler import assemble_season_data, max_regular_week
from cfbpoll.data.cache import PersistentCache, expiration_for, utc_now
from cfbpoll.data.models import (
    AdvancedGameStats,
    CalendarWeek,
    FBSTeam,
    Game,
    ScheduleGame,
    SeasonData,
    TeamStat,
)

logger = logging.getLogger(__name__)

MAX_SEASON_YEAR_KEY = "maxSeasonYear"


def teams_key(season: int) -> str:
    return f"teams_{season}"


def games_key(season: int, season_type: str) -> str:
    return f"games_{season}_{season_type}"


def advanced_stats_key(season: int, season_type: str) -> str:
    return f"advancedGameStats_{season}_{season_type}"


def season_stats_key(season: int, end_week: int | None) -> str:
    if end_week is None:
        return f"seasonStats_{season}"
    return f"seasonStats_{season}_week_{end_week}"


def calendar_key(year: int) -> str:
    return f"calendar_{year}"


def full_schedule_key(season: int) -> str:
    return f"fullSchedule_{season}"


def season_cache_keys(season: int, week: int) -> list[str]:
    """Every raw-data key that feeds SeasonData for (season, week)."""
    return [
        teams_key(season),
        games_key(season, "regular"),
        games_key(season, "postseason"),
        advanced_stats_key(season, "regular"),
        advanced_stats_key(season, "postseason"),
        season_stats_key(season, None),
        season_stats_key(season, week),
    ]


class _MaxSeasonYear(BaseModel):
    year: int


class CachingCFBDataClient:
    """Season data provider that consults the persistent cache first."""

    def __init__(self, inner: Any, cache: PersistentCache, settings: Settings | None = None):
        if inner is None:
            raise ValueError("inner provider must not be None")
        if cache is None:
            raise ValueError("cache must not be None")
        self.inner = inner
        self.cache = cache
        self.settings = settings or Settings()

    async def _get_or_fetch(
        self,
        key: str,
        model: Any,
        fetch: Callable[[], Awaitable[Any]],
        expires_in_year: int | None,
        hours: int,
    ) -> Any:
        cached = await self.cache.get(key, model)
        if cached is not None:
            logger.debug("Cache hit for %s", key)
            return cached

        logger.debug("Cache miss for %s, fetching from API", key)
        data = await fetch()

        if expires_in_year is None:
            expires_at = utc_now() + timedelta(hours=hours)
        else:
            expires_at = expiration_for(expires_in_year, hours)
        await self.cache.set(key, data, expires_at)
        return data

    # ==================== Season Components ====================

    async def fetch_fbs_teams(self, season: int) -> list[FBSTeam]:
        return await self._get_or_fetch(
            teams_key(season),
            list[FBSTeam],
            lambda: self.inner.fetch_fbs_teams(season),
            season,
            self.settings.season_data_expiration_hours,
        )

    async def fetch_games(self, season: int, season_type: str) -> list[Game]:
        return await self._get_or_fetch(
            games_key(season, season_type),
            list[Game],
            lambda: self.inner.fetch_games(season, season_type),
            season,
            self.settings.season_data_expiration_hours,
        )

    async def fetch_advanced_game_stats(
        self, season: int, season_type: str
    ) -> list[AdvancedGameStats]:
        return await self._get_or_fetch(
            advanced_stats_key(season, season_type),
            list[AdvancedGameStats],
            lambda: self.inner.fetch_advanced_game_stats(season, season_type),
            season,
            self.settings.season_data_expiration_hours,
        )

    async def fetch_season_team_stats(
        self, season: int, end_week: int | None = None
    ) -> dict[str, list[TeamStat]]:
        return await self._get_or_fetch(
            season_stats_key(season, end_week),
            dict[str, list[TeamStat]],
            lambda: self.inner.fetch_season_team_stats(season, end_week),
            season,
            self.settings.season_data_expiration_hours,
        )

    # ==================== Provider Contract ====================

    async def get_calendar(self, year: int) -> list[CalendarWeek]:
        return await self._get_or_fetch(
            calendar_key(year),
            list[CalendarWeek],
            lambda: self.inner.get_calendar(year),
            year,
            self.settings.calendar_expiration_hours,
        )

    async def get_full_season_schedule(self, season: int) -> list[ScheduleGame]:
        return await self._get_or_fetch(
            full_schedule_key(season),
            list[ScheduleGame],
            lambda: self.inner.get_full_season_schedule(season),
            season,
            self.settings.season_data_expiration_hours,
        )

    async def get_max_season_year(self) -> int:
        # Not keyed by a season, so it always uses the short horizon
        wrapper = await self._get_or_fetch(
            MAX_SEASON_YEAR_KEY,
            _MaxSeasonYear,
            self._fetch_max_season_year,
            None,
            self.settings.max_season_year_expiration_hours,
        )
        return wrapper.year

    async def _fetch_max_season_year(self) -> _MaxSeasonYear:
        return _MaxSeasonYear(year=await self.inner.get_max_season_year())

    async def get_season_data(self, season: int, week: int) -> SeasonData:
        """Assemble SeasonData for (season, week) from cached components."""
        logger.debug(
            "Assembling season data for %d week %d from cached components", season, week
        )

        teams = await self.fetch_fbs_teams(season)
        regular_games = await self.fetch_games(season, "regular")
        postseason_games = await self.fetch_games(season, "postseason")
        regular_stats = await self.fetch_advanced_game_stats(season, "regular")

        include_postseason = week > max_regular_week(regular_games)
        postseason_stats = (
            await self.fetch_advanced_game_stats(season, "postseason")
            if include_postseason
            else []
        )
        end_week = None if include_postseason and postseason_games else week
        season_stats = await self.fetch_season_team_stats(season, end_week)

        return assemble_season_data(
            season,
            week,
            teams,
            regular_games,
            postseason_games,
            regular_stats,
            postseason_stats,
            season_stats,
        )
