"""Reference rating provider.

Ratings come from iterative convergence (similar to PageRank): you can't know
how good a team is until you know how good their opponents are, which depends
on _their_ opponents, recursively.

Quality losses hurt less than bad losses:
- Win:  contribution = game_grade + opponent_rating
- Loss: contribution = game_grade - (1 - opponent_rating)

The converged, normalized result is blended with win percentage and weighted
strength of schedule into the final rating:

    rating = scale * (w_results * results + w_win_pct * win_pct + w_sos * weighted_sos)
"""

import logging
from dataclasses import dataclass

from cfbpoll.algorithm.game_grade import GameResult, compute_game_grade, game_results
from cfbpoll.data.models import Game, RatingConfig, RatingDetails, SeasonData, TeamInfo
from cfbpoll.data.names import normalize_team_key

logger = logging.getLogger(__name__)


@dataclass
class ConvergenceResult:
    """Result of the convergence algorithm."""

    ratings: dict[str, float]
    iterations: int
    final_max_delta: float


def build_game_results(games: list[Game]) -> dict[str, list[GameResult]]:
    """Map normalized team key to its completed-game results."""
    results: dict[str, list[GameResult]] = {}
    for game in games:
        split = game_results(game)
        if split is None:
            continue
        home, away = split
        results.setdefault(home.team, []).append(home)
        results.setdefault(away.team, []).append(away)
    return results


def iterate_once(
    current_ratings: dict[str, float],
    results_by_team: dict[str, list[GameResult]],
    config: RatingConfig,
) -> dict[str, float]:
    """
    Perform one iteration of rating updates.

    Teams are processed in sorted order for determinism.
    """
    new_ratings = {}
    for team in sorted(current_ratings):
        results = results_by_team.get(team, [])
        if not results:
            new_ratings[team] = config.initial_rating
            continue

        total = 0.0
        for result in results:
            grade = compute_game_grade(result, config)
            opp_rating = current_ratings[result.opponent]
            if result.is_win:
                total += grade + opp_rating
            else:
                # Clamped for convergence stability
                total += grade - max(0.0, min(1.0, 1.0 - opp_rating))

        new_ratings[team] = total / len(results)

    return new_ratings


def converge(games: list[Game], config: RatingConfig) -> ConvergenceResult:
    """
    Run iterative convergence until ratings stabilize.

    1. Initializes every team seen in a completed game to initial_rating
    2. Computes new ratings from game outcomes and current opponent ratings
    3. Repeats until the max change between iterations is below threshold
    """
    results_by_team = build_game_results(games)
    if not results_by_team:
        return ConvergenceResult(ratings={}, iterations=0, final_max_delta=0.0)

    ratings = {team: config.initial_rating for team in results_by_team}
    max_delta = 0.0

    for iteration in range(config.max_iterations):
        new_ratings = iterate_once(ratings, results_by_team, config)
        max_delta = max(abs(new_ratings[t] - ratings[t]) for t in ratings)
        ratings = new_ratings

        if max_delta < config.convergence_threshold:
            return ConvergenceResult(
                ratings=ratings, iterations=iteration + 1, final_max_delta=max_delta
            )

    logger.warning(
        "Ratings did not converge after %d iterations (max delta %.6f)",
        config.max_iterations,
        max_delta,
    )
    return ConvergenceResult(
        ratings=ratings, iterations=config.max_iterations, final_max_delta=max_delta
    )


def normalize_ratings(ratings: dict[str, float]) -> dict[str, float]:
    """Scale ratings to [0, 1]. Only call this after convergence."""
    if not ratings:
        return {}

    min_r = min(ratings.values())
    max_r = max(ratings.values())

    if max_r == min_r:
        return {t: 0.5 for t in ratings}

    return {t: (r - min_r) / (max_r - min_r) for t, r in ratings.items()}


def win_percentage(team: TeamInfo | None) -> float:
    if team is None:
        return 0.0
    played = team.wins + team.losses
    return team.wins / played if played else 0.0


def compute_strength_of_schedule(
    teams_by_key: dict[str, TeamInfo],
    results_by_team: dict[str, list[GameResult]],
) -> dict[str, float]:
    """
    Mean opponent win percentage per team.

    Only opponents present in the season's team map count; a team with no
    such opponents has SOS 0.
    """
    sos = {}
    for key in teams_by_key:
        pcts = [
            win_percentage(teams_by_key[r.opponent])
            for r in results_by_team.get(key, [])
            if r.opponent in teams_by_key
        ]
        sos[key] = sum(pcts) / len(pcts) if pcts else 0.0
    return sos


def compute_weighted_sos(
    sos: dict[str, float],
    results_by_team: dict[str, list[GameResult]],
) -> dict[str, float]:
    """Weighted SOS = (2 * SOS + mean opponent SOS) / 3."""
    weighted = {}
    for key, own in sos.items():
        opp_sos = [sos[r.opponent] for r in results_by_team.get(key, []) if r.opponent in sos]
        opp_mean = sum(opp_sos) / len(opp_sos) if opp_sos else 0.0
        weighted[key] = (2 * own + opp_mean) / 3
    return weighted


class RatingProvider:
    """Rates every team in a SeasonData."""

    def __init__(self, config: RatingConfig | None = None):
        self.config = config or RatingConfig()

    async def rate_teams(self, season_data: SeasonData) -> dict[str, RatingDetails]:
        """
        Rate every team in season_data.teams.

        Args:
            season_data: Assembled season data

        Returns:
            Dict mapping team name (as in season_data.teams) to RatingDetails

        Raises:
            ValueError: If season_data is None
        """
        if season_data is None:
            raise ValueError("season_data must not be None")

        config = self.config
        teams_by_key = {normalize_team_key(name): info for name, info in season_data.teams.items()}
        results_by_team = build_game_results(season_data.games)

        convergence = converge(season_data.games, config)
        normalized = normalize_ratings(convergence.ratings)
        logger.debug(
            "Converged %d teams in %d iterations for %d week %d",
            len(normalized),
            convergence.iterations,
            season_data.season,
            season_data.week,
        )

        sos = compute_strength_of_schedule(teams_by_key, results_by_team)
        weighted_sos = compute_weighted_sos(sos, results_by_team)

        ratings = {}
        for name, info in season_data.teams.items():
            key = normalize_team_key(name)
            results = normalized.get(key, config.initial_rating)
            win_pct = win_percentage(info)
            team_wsos = weighted_sos.get(key, 0.0)

            rating = config.rating_scale * (
                config.results_weight * results
                + config.win_pct_weight * win_pct
                + config.sos_weight * team_wsos
            )

            ratings[name] = RatingDetails(
                wins=info.wins,
                losses=info.losses,
                rating=rating,
                strength_of_schedule=sos.get(key, 0.0),
                weighted_strength_of_schedule=team_wsos,
                rating_components={
                    "results": results,
                    "win_pct": win_pct,
                    "weighted_sos": team_wsos,
                },
            )

        return ratings
