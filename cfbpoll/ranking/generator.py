"""Turn per-team ratings into an ordered RankingsResult.

Generation is pure and deterministic: the same SeasonData and ratings always
produce the same result.
"""

from cfbpoll.data.models import (
    Game,
    RankedTeam,
    RankingsResult,
    RatingDetails,
    Record,
    SeasonData,
    TeamDetails,
)
from cfbpoll.data.names import normalize_team_key

ROUNDING_PRECISION = 4

# Upper rank bound (inclusive) for each opponent tier; anything past the last is tier 5
TIER_BOUNDS = (10, 25, 50, 100)

TIER_FIELDS = {
    1: "vs_rank_1_to_10",
    2: "vs_rank_11_to_25",
    3: "vs_rank_26_to_50",
    4: "vs_rank_51_to_100",
    5: "vs_rank_101_plus",
}


def opponent_tier(opponent: str | None, rank_by_key: dict[str, int]) -> int:
    """
    Map an opponent to its rank tier (1-5).

    Args:
        opponent: Opponent name (any case)
        rank_by_key: Normalized team key -> rank

    Returns:
        1 for ranks 1-10, 2 for 11-25, 3 for 26-50, 4 for 51-100,
        5 for anything worse or unranked
    """
    rank = rank_by_key.get(normalize_team_key(opponent))
    if rank is None:
        return 5
    for tier, bound in enumerate(TIER_BOUNDS, start=1):
        if rank <= bound:
            return tier
    return 5


def build_team_details(
    team_name: str, games: list[Game], rank_by_key: dict[str, int]
) -> TeamDetails:
    """
    Tally location and opponent-tier records for one team.

    Games missing either score are skipped. Anything other than a win
    (including a tie) is recorded as a loss.
    """
    key = normalize_team_key(team_name)
    buckets = {
        "home": Record(),
        "away": Record(),
        "neutral": Record(),
        **{field: Record() for field in TIER_FIELDS.values()},
    }

    for game in games:
        if not game.is_completed:
            continue

        is_home = normalize_team_key(game.home_team) == key
        team_points = game.home_points if is_home else game.away_points
        opp_points = game.away_points if is_home else game.home_points
        opponent = game.away_team if is_home else game.home_team
        is_win = team_points > opp_points

        if game.neutral_site:
            location = "neutral"
        else:
            location = "home" if is_home else "away"
        tier_field = TIER_FIELDS[opponent_tier(opponent, rank_by_key)]

        for bucket in (location, tier_field):
            record = buckets[bucket]
            buckets[bucket] = record.add_win() if is_win else record.add_loss()

    return TeamDetails(**buckets)


def _ordered(ratings: dict[str, RatingDetails], score) -> list[str]:
    # Highest score first; equal scores by name, case-insensitive
    by_name = sorted(ratings, key=normalize_team_key)
    return sorted(by_name, key=lambda name: score(ratings[name]), reverse=True)


class RankingsGenerator:
    """Build a RankingsResult from SeasonData and ratings."""

    async def generate_rankings(
        self, season_data: SeasonData, ratings: dict[str, RatingDetails]
    ) -> RankingsResult:
        """
        Rank every rated team.

        Ranks are a dense 1..N ordering by rating descending; sos_ranking is
        an independent dense 1..N ordering by weighted SOS descending.

        Args:
            season_data: Season data the ratings were computed from
            ratings: Team name -> RatingDetails

        Returns:
            RankingsResult for (season_data.season, season_data.week)

        Raises:
            ValueError: If either argument is None
        """
        if season_data is None:
            raise ValueError("season_data must not be None")
        if ratings is None:
            raise ValueError("ratings must not be None")

        ranked_names = _ordered(ratings, lambda d: d.rating)
        sos_names = _ordered(ratings, lambda d: d.weighted_strength_of_schedule)

        rank_by_key = {normalize_team_key(n): i for i, n in enumerate(ranked_names, start=1)}
        sos_rank_by_name = {n: i for i, n in enumerate(sos_names, start=1)}
        teams_by_key = {normalize_team_key(n): t for n, t in season_data.teams.items()}

        rankings = []
        for rank, name in enumerate(ranked_names, start=1):
            details = ratings[name]
            info = teams_by_key.get(normalize_team_key(name))
            games = info.games if info is not None else []

            rankings.append(
                RankedTeam(
                    rank=rank,
                    team_name=name,
                    rating=round(details.rating, ROUNDING_PRECISION),
                    weighted_sos=round(
                        details.weighted_strength_of_schedule, ROUNDING_PRECISION
                    ),
                    strength_of_schedule=round(
                        details.strength_of_schedule, ROUNDING_PRECISION
                    ),
                    sos_ranking=sos_rank_by_name[name],
                    wins=details.wins,
                    losses=details.losses,
                    conference=info.conference if info else "",
                    division=info.division if info else "",
                    logo_url=info.logo_url if info else "",
                    rating_components=dict(details.rating_components),
                    details=build_team_details(name, games, rank_by_key),
                )
            )

        return RankingsResult(
            season=season_data.season, week=season_data.week, rankings=rankings
        )
