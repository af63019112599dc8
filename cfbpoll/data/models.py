"""Pydantic data models for the CFB poll system."""

from datetime import datetime

from pydantic import BaseModel, Field


# ==================== Upstream Season Data ====================


class AdvancedGameStatsUnit(BaseModel):
    """Offensive or defensive advanced metrics for one side of a game."""

    plays: int | None = None
    drives: int | None = None
    ppa: float | None = None
    success_rate: float | None = None
    explosiveness: float | None = None
    power_success: float | None = None
    stuff_rate: float | None = None
    line_yards: float | None = None
    line_yards_total: float | None = None
    second_level_yards: float | None = None
    second_level_yards_total: float | None = None
    open_field_yards: float | None = None
    open_field_yards_total: float | None = None
    standard_downs_ppa: float | None = None
    standard_downs_success_rate: float | None = None
    standard_downs_explosiveness: float | None = None
    passing_downs_ppa: float | None = None
    passing_downs_success_rate: float | None = None
    passing_downs_explosiveness: float | None = None
    rushing_ppa: float | None = None
    passing_ppa: float | None = None


class AdvancedGameStats(BaseModel):
    """Advanced stats for one team in one game."""

    game_id: int | None = None
    team: str | None = None
    opponent: str | None = None
    week: int | None = None
    offense: AdvancedGameStatsUnit | None = None
    defense: AdvancedGameStatsUnit | None = None


class Game(BaseModel):
    """A game as reported upstream. Scores are None until the game is final."""

    game_id: int | None = None
    season_type: str | None = None
    week: int | None = None
    home_team: str | None = None
    away_team: str | None = None
    home_points: int | None = None
    away_points: int | None = None
    neutral_site: bool = False
    home_advanced_stats: AdvancedGameStats | None = None
    away_advanced_stats: AdvancedGameStats | None = None

    @property
    def is_completed(self) -> bool:
        """Both final scores are known."""
        return self.home_points is not None and self.away_points is not None


class TeamStat(BaseModel):
    """A single aggregate season statistic for a team."""

    team: str
    stat_name: str
    stat_value: float | str | None = None


class FBSTeam(BaseModel):
    """Team metadata only (no games or stats)."""

    name: str
    conference: str = ""
    division: str = ""
    logo_url: str = ""
    color: str = ""
    alt_color: str = ""


class TeamInfo(BaseModel):
    """A team with its record, games, and season stats for one SeasonData."""

    name: str
    conference: str = ""
    division: str = ""
    logo_url: str = ""
    color: str = ""
    alt_color: str = ""
    wins: int = 0
    losses: int = 0
    games: list[Game] = Field(default_factory=list)
    team_stats: list[TeamStat] = Field(default_factory=list)


class SeasonData(BaseModel):
    """Everything known about a season as of a given week."""

    season: int
    week: int
    teams: dict[str, TeamInfo] = Field(default_factory=dict)
    games: list[Game] = Field(default_factory=list)

    model_config = {"frozen": True}


class CalendarWeek(BaseModel):
    """One week of a season calendar."""

    week: int
    season_type: str = "regular"
    start_date: datetime | None = None
    end_date: datetime | None = None


class ScheduleGame(BaseModel):
    """A scheduled game regardless of completion status."""

    game_id: int | None = None
    week: int | None = None
    season_type: str | None = None
    start_date: datetime | None = None
    start_time_tbd: bool = False
    completed: bool = False
    neutral_site: bool = False
    home_team: str | None = None
    away_team: str | None = None
    home_points: int | None = None
    away_points: int | None = None
    venue: str | None = None


# ==================== Ratings & Rankings ====================


class RatingDetails(BaseModel):
    """Per-team rating output consumed by the rankings generator."""

    wins: int = 0
    losses: int = 0
    rating: float
    strength_of_schedule: float = 0.0
    weighted_strength_of_schedule: float = 0.0
    rating_components: dict[str, float] = Field(default_factory=dict)


class Record(BaseModel):
    """Win/loss counts. Updates return a new Record."""

    wins: int = Field(default=0, ge=0)
    losses: int = Field(default=0, ge=0)

    model_config = {"frozen": True}

    def add_win(self) -> "Record":
        return Record(wins=self.wins + 1, losses=self.losses)

    def add_loss(self) -> "Record":
        return Record(wins=self.wins, losses=self.losses + 1)


class TeamDetails(BaseModel):
    """Location and opponent-tier records for a ranked team."""

    home: Record = Field(default_factory=Record)
    away: Record = Field(default_factory=Record)
    neutral: Record = Field(default_factory=Record)
    vs_rank_1_to_10: Record = Field(default_factory=Record)
    vs_rank_11_to_25: Record = Field(default_factory=Record)
    vs_rank_26_to_50: Record = Field(default_factory=Record)
    vs_rank_51_to_100: Record = Field(default_factory=Record)
    vs_rank_101_plus: Record = Field(default_factory=Record)

    model_config = {"frozen": True}


class RankedTeam(BaseModel):
    """One row of a RankingsResult."""

    rank: int = Field(ge=1)
    team_name: str
    rating: float
    weighted_sos: float
    strength_of_schedule: float = 0.0
    sos_ranking: int = Field(ge=1)
    wins: int = 0
    losses: int = 0
    conference: str = ""
    division: str = ""
    logo_url: str = ""
    rating_components: dict[str, float] = Field(default_factory=dict)
    details: TeamDetails = Field(default_factory=TeamDetails)

    model_config = {"frozen": True}


class RankingsResult(BaseModel):
    """Ordered rankings for one (season, week)."""

    season: int
    week: int
    rankings: list[RankedTeam] = Field(default_factory=list)

    model_config = {"frozen": True}


class CalculateRankingsResult(BaseModel):
    """Result of the admin calculate workflow."""

    persisted: bool
    rankings: RankingsResult


# ==================== Seasons & Teams ====================


class WeekInfo(BaseModel):
    """Display label for a calendar week."""

    week_number: int
    label: str


class TeamScheduleGame(BaseModel):
    """A schedule entry from one team's perspective."""

    week: int | None = None
    season_type: str | None = None
    game_date: datetime | None = None
    start_time_tbd: bool = False
    is_home: bool
    neutral_site: bool = False
    opponent_name: str
    opponent_logo_url: str = ""
    opponent_record: str = ""
    team_score: int | None = None
    opponent_score: int | None = None
    is_win: bool | None = None
    venue: str | None = None


class TeamDetail(BaseModel):
    """A ranked team with its colors and full season schedule."""

    season: int
    week: int
    team: RankedTeam
    color: str = ""
    alt_color: str = ""
    schedule: list[TeamScheduleGame] = Field(default_factory=list)


# ==================== Persistence ====================


class PersistedWeekSummary(BaseModel):
    """One snapshot row, draft or published."""

    season: int
    week: int
    published: bool
    created_at: datetime


class CacheDataEntry(BaseModel):
    """Raw cache row. Only the cache layer sees these bytes."""

    cache_key: str
    data: bytes
    cached_at: datetime
    expires_at: datetime


# ==================== All-Time ====================


class AllTimeEntry(BaseModel):
    """A team-season appearing in an all-time leaderboard."""

    all_time_rank: int = 0
    season: int
    week: int
    rank: int
    team_name: str
    logo_url: str = ""
    rating: float
    weighted_sos: float
    wins: int = 0
    losses: int = 0


class AllTimeResult(BaseModel):
    """The three curated all-time leaderboards."""

    best_teams: list[AllTimeEntry] = Field(default_factory=list)
    worst_teams: list[AllTimeEntry] = Field(default_factory=list)
    hardest_schedules: list[AllTimeEntry] = Field(default_factory=list)


# ==================== Rating Configuration ====================


class RatingConfig(BaseModel):
    """Parameters for the reference rating provider.

    Grouped as:
    - Convergence: iteration cap and stopping threshold
    - Game grade: win base, margin bonus weight and cap
    - Venue: road/neutral win bonuses, home/neutral loss penalties
    - Composite: weights blending results, win pct and weighted SOS
    """

    # ========== CONVERGENCE ==========
    max_iterations: int = Field(default=100, gt=0)
    convergence_threshold: float = Field(default=0.0001, gt=0)
    initial_rating: float = Field(default=0.5, ge=0, le=1)

    # ========== GAME GRADE ==========
    win_base: float = 0.70
    margin_weight: float = Field(default=0.20, ge=0)
    margin_cap: int = Field(default=28, gt=0)

    # ========== VENUE ==========
    venue_road_win: float = 0.10
    venue_neutral_win: float = 0.05
    venue_home_loss: float = -0.03
    venue_neutral_loss: float = -0.01

    # ========== COMPOSITE ==========
    results_weight: float = Field(default=0.60, ge=0)
    win_pct_weight: float = Field(default=0.25, ge=0)
    sos_weight: float = Field(default=0.15, ge=0)
    rating_scale: float = Field(default=50.0, gt=0)

    model_config = {"frozen": True}
