"""CollegeFootballData API client with retry and rate limiting."""

import asyncio
import logging
import os
import time
from datetime import datetime, timezone

import httpx

from cfbpoll.data.assembler import assemble_season_data, max_regular_week
from cfbpoll.data.models import (
    AdvancedGameStats,
    AdvancedGameStatsUnit,
    CalendarWeek,
    FBSTeam,
    Game,
    ScheduleGame,
    SeasonData,
    TeamStat,
)

logger = logging.getLogger(__name__)


class APIError(Exception):
    """Raised when API request fails."""

    def __init__(self, status_code: int, message: str):
        self.status_code = status_code
        super().__init__(f"API Error {status_code}: {message}")


class RateLimitError(Exception):
    """Raised when rate limit is exceeded."""

    pass


# Failures of optional data slices: transport errors, plus JSON decode
# (ValueError), validation (ValueError) and unexpected payload shapes.
OPTIONAL_SLICE_ERRORS = (APIError, RateLimitError, ValueError, TypeError, AttributeError)


def _parse_datetime(value: str | None) -> datetime | None:
    if not value:
        return None
    parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _parse_advanced_unit(unit: dict | None) -> AdvancedGameStatsUnit | None:
    if not unit:
        return None

    standard_downs = unit.get("standardDowns") or {}
    passing_downs = unit.get("passingDowns") or {}
    rushing_plays = unit.get("rushingPlays") or {}
    passing_plays = unit.get("passingPlays") or {}

    return AdvancedGameStatsUnit(
        plays=unit.get("plays"),
        drives=unit.get("drives"),
        ppa=unit.get("ppa"),
        success_rate=unit.get("successRate"),
        explosiveness=unit.get("explosiveness"),
        power_success=unit.get("powerSuccess"),
        stuff_rate=unit.get("stuffRate"),
        line_yards=unit.get("lineYards"),
        line_yards_total=unit.get("lineYardsTotal"),
        second_level_yards=unit.get("secondLevelYards"),
        second_level_yards_total=unit.get("secondLevelYardsTotal"),
        open_field_yards=unit.get("openFieldYards"),
        open_field_yards_total=unit.get("openFieldYardsTotal"),
        standard_downs_ppa=standard_downs.get("ppa"),
        standard_downs_success_rate=standard_downs.get("successRate"),
        standard_downs_explosiveness=standard_downs.get("explosiveness"),
        passing_downs_ppa=passing_downs.get("ppa"),
        passing_downs_success_rate=passing_downs.get("successRate"),
        passing_downs_explosiveness=passing_downs.get("explosiveness"),
        rushing_ppa=rushing_plays.get("ppa"),
        passing_ppa=passing_plays.get("ppa"),
    )


class CFBDataClient:
    """Client for CollegeFootballData.com API."""

    BASE_URL = "https://api.collegefootballdata.com"
    RATE_LIMIT = 1000  # requests per hour

    def __init__(
        self,
        api_key: str,
        max_retries: int = 3,
        base_delay: float = 1.0,
        minimum_year: int = 2002,
    ):
        """
        Initialize the API client.

        Args:
            api_key: CollegeFootballData API key
            max_retries: Maximum number of retry attempts for 5xx errors
            base_delay: Base delay in seconds for exponential backoff
            minimum_year: Oldest season get_max_season_year will consider
        """
        self.api_key = api_key
        self.max_retries = max_retries
        self.base_delay = base_delay
        self.minimum_year = minimum_year

        # Rate limiting state
        self._request_count = 0
        self._window_start = time.time()

    @classmethod
    def from_env(cls) -> "CFBDataClient":
        """
        Create client from environment variable.

        Returns:
            CFBDataClient instance

        Raises:
            ValueError: If CFBD_API_KEY not set in environment
        """
        api_key = os.environ.get("CFBD_API_KEY")
        if not api_key:
            raise ValueError("CFBD_API_KEY environment variable not set. Get a key at https://collegefootballdata.com")
        return cls(api_key=api_key)

    @property
    def request_count(self) -> int:
        """Current request count in the rate limit window."""
        return self._request_count

    def _check_rate_limit(self) -> None:
        """
        Check and update rate limiting state.

        Raises:
            RateLimitError: If rate limit would be exceeded
        """
        now = time.time()

        # Reset window if hour has passed
        if now - self._window_start >= 3600:
            self._request_count = 0
            self._window_start = now

        if self._request_count >= self.RATE_LIMIT:
            seconds_until_reset = 3600 - (now - self._window_start)
            raise RateLimitError(
                f"Rate limit of {self.RATE_LIMIT} requests/hour exceeded. "
                f"Resets in {seconds_until_reset:.0f} seconds."
            )

    async def _make_request(
        self,
        endpoint: str,
        params: dict | None = None,
    ) -> list:
        """
        Make an API request with retry logic.

        Args:
            endpoint: API endpoint path (e.g., "/teams/fbs")
            params: Optional query parameters

        Returns:
            JSON response as list

        Raises:
            APIError: If request fails after retries
            RateLimitError: If rate limit exceeded
        """
        self._check_rate_limit()

        url = f"{self.BASE_URL}{endpoint}"
        headers = {"Authorization": f"Bearer {self.api_key}"}

        attempt = 0
        last_error = None

        async with httpx.AsyncClient() as client:
            while attempt <= self.max_retries:
                try:
                    response = await client.get(url, params=params, headers=headers)

                    if response.status_code == 200:
                        self._request_count += 1
                        return response.json()

                    # Client error - don't retry
                    if 400 <= response.status_code < 500:
                        raise APIError(response.status_code, response.text)

                    # Server error - retry with backoff
                    if response.status_code >= 500:
                        last_error = APIError(response.status_code, response.text)
                        if attempt < self.max_retries:
                            delay = self.base_delay * (2 ** attempt)
                            await asyncio.sleep(delay)
                        attempt += 1
                        continue

                except httpx.RequestError as e:
                    last_error = APIError(0, str(e))
                    if attempt < self.max_retries:
                        delay = self.base_delay * (2 ** attempt)
                        await asyncio.sleep(delay)
                    attempt += 1
                    continue

        # All retries exhausted
        if last_error:
            raise last_error
        raise APIError(0, "Unknown error")

    # ==================== Season Components ====================

    async def fetch_fbs_teams(self, season: int) -> list[FBSTeam]:
        """
        Fetch FBS team metadata for a season.

        Args:
            season: Season year

        Returns:
            List of FBSTeam objects (teams without a school name are skipped)
        """
        data = await self._make_request("/teams/fbs", params={"year": season})

        teams = []
        for item in data:
            name = item.get("school")
            if not name:
                continue
            logos = item.get("logos") or []
            teams.append(
                FBSTeam(
                    name=name,
                    conference=item.get("conference") or "",
                    division=item.get("division") or "",
                    logo_url=logos[0] if logos else "",
                    color=item.get("color") or "",
                    alt_color=item.get("alternateColor") or item.get("alt_color") or "",
                )
            )
        return teams

    async def fetch_games(self, season: int, season_type: str) -> list[Game]:
        """
        Fetch completed games for a season.

        Args:
            season: Season year
            season_type: "regular" or "postseason"

        Returns:
            List of Game objects with both final scores present
        """
        data = await self._make_request(
            "/games", params={"year": season, "seasonType": season_type}
        )

        games = []
        for item in data:
            # Skip games without scores (not yet played)
            if item.get("homePoints") is None or item.get("awayPoints") is None:
                continue

            games.append(
                Game(
                    game_id=item.get("id"),
                    season_type=season_type,
                    week=item.get("week"),
                    home_team=item.get("homeTeam"),
                    away_team=item.get("awayTeam"),
                    home_points=item["homePoints"],
                    away_points=item["awayPoints"],
                    neutral_site=bool(item.get("neutralSite") or False),
                )
            )
        return games

    async def fetch_advanced_game_stats(
        self, season: int, season_type: str
    ) -> list[AdvancedGameStats]:
        """
        Fetch per-team advanced game stats.

        Any failure, including an unreadable or malformed response body,
        degrades to an empty list so a season fetch is never aborted.
        """
        try:
            data = await self._make_request(
                "/stats/game/advanced",
                params={"year": season, "seasonType": season_type},
            )
            return [
                AdvancedGameStats(
                    game_id=item.get("gameId"),
                    team=item.get("team"),
                    opponent=item.get("opponent"),
                    week=item.get("week"),
                    offense=_parse_advanced_unit(item.get("offense")),
                    defense=_parse_advanced_unit(item.get("defense")),
                )
                for item in data
            ]
        except OPTIONAL_SLICE_ERRORS as e:
            logger.warning(
                "Advanced game stats unavailable for %d %s: %s", season, season_type, e
            )
            return []

    async def fetch_season_team_stats(
        self, season: int, end_week: int | None = None
    ) -> dict[str, list[TeamStat]]:
        """
        Fetch aggregate season stats grouped by team name.

        Args:
            season: Season year
            end_week: Optional last week to include; None means full season

        Returns:
            Dict of team name to stats; empty if the fetch or parse fails
        """
        params: dict = {"year": season}
        if end_week is not None:
            params["endWeek"] = end_week

        try:
            data = await self._make_request("/stats/season", params=params)
            stats: dict[str, list[TeamStat]] = {}
            for item in data:
                team = item.get("team")
                if not team:
                    continue
                stats.setdefault(team, []).append(
                    TeamStat(
                        team=team,
                        stat_name=item.get("statName") or "",
                        stat_value=item.get("statValue"),
                    )
                )
            return stats
        except OPTIONAL_SLICE_ERRORS as e:
            logger.warning("Season stats unavailable for %d: %s", season, e)
            return {}

    # ==================== Provider Contract ====================

    async def get_calendar(self, year: int) -> list[CalendarWeek]:
        """
        Fetch the season calendar.

        Postseason weeks are collapsed into a single week numbered one past the
        last regular-season week, spanning all postseason dates.
        """
        data = await self._make_request("/calendar", params={"year": year})

        weeks: list[CalendarWeek] = []
        postseason: list[dict] = []
        last_regular_week = 0

        for item in data:
            season_type = (item.get("seasonType") or "regular").lower()
            if season_type == "postseason":
                postseason.append(item)
                continue
            if season_type != "regular":
                continue

            week_number = item.get("week") or 0
            last_regular_week = max(last_regular_week, week_number)
            weeks.append(
                CalendarWeek(
                    week=week_number,
                    season_type="regular",
                    start_date=_parse_datetime(item.get("startDate") or item.get("firstGameStart")),
                    end_date=_parse_datetime(item.get("endDate") or item.get("lastGameStart")),
                )
            )

        if postseason:
            starts = [
                d for d in (
                    _parse_datetime(w.get("startDate") or w.get("firstGameStart"))
                    for w in postseason
                ) if d is not None
            ]
            ends = [
                d for d in (
                    _parse_datetime(w.get("endDate") or w.get("lastGameStart"))
                    for w in postseason
                ) if d is not None
            ]
            weeks.append(
                CalendarWeek(
                    week=last_regular_week + 1,
                    season_type="postseason",
                    start_date=min(starts) if starts else None,
                    end_date=max(ends) if ends else None,
                )
            )

        return sorted(weeks, key=lambda w: w.week)

    async def get_full_season_schedule(self, season: int) -> list[ScheduleGame]:
        """Fetch every regular and postseason game, played or not."""
        schedule = []
        for season_type in ("regular", "postseason"):
            data = await self._make_request(
                "/games", params={"year": season, "seasonType": season_type}
            )
            for item in data:
                schedule.append(
                    ScheduleGame(
                        game_id=item.get("id"),
                        week=item.get("week"),
                        season_type=season_type,
                        start_date=_parse_datetime(item.get("startDate")),
                        start_time_tbd=bool(item.get("startTimeTBD") or False),
                        completed=bool(item.get("completed") or False),
                        neutral_site=bool(item.get("neutralSite") or False),
                        home_team=item.get("homeTeam"),
                        away_team=item.get("awayTeam"),
                        home_points=item.get("homePoints"),
                        away_points=item.get("awayPoints"),
                        venue=item.get("venue"),
                    )
                )
        return schedule

    async def get_max_season_year(self) -> int:
        """
        Newest season with at least one week that has already ended.

        Walks back from the current year to minimum_year.
        """
        now = datetime.now(timezone.utc)
        for year in range(now.year, self.minimum_year - 1, -1):
            calendar = await self.get_calendar(year)
            if not calendar:
                continue
            if not all(w.end_date is not None and w.end_date > now for w in calendar):
                return year
        return self.minimum_year

    async def get_season_data(self, season: int, week: int) -> SeasonData:
        """
        Fetch and assemble everything needed to rate a season through a week.

        Postseason games and stats are included once week is past the last
        regular-season week.
        """
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
