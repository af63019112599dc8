"""Game grade calculation.

The game grade is a numerical representation of how well a team performed
in a single game, considering:
- Win/loss result
- Margin of victory (logarithmic, capped)
- Venue (road, neutral, home)
"""

import math
from typing import Literal

from pydantic import BaseModel

from cfbpoll.data.models import Game, RatingConfig
from cfbpoll.data.names import normalize_team_key

_DEFAULT_CONFIG = RatingConfig()

Location = Literal["home", "away", "neutral"]


class GameResult(BaseModel):
    """A completed game from one team's perspective. Team names are normalized keys."""

    team: str
    opponent: str
    points_for: int
    points_against: int
    location: Location

    model_config = {"frozen": True}

    @property
    def is_win(self) -> bool:
        return self.points_for > self.points_against

    @property
    def margin(self) -> int:
        return self.points_for - self.points_against


def game_results(game: Game) -> tuple[GameResult, GameResult] | None:
    """
    Split a game into (home, away) results.

    Returns None for games without both scores or both team names.
    """
    if not game.is_completed or not game.home_team or not game.away_team:
        return None

    home_location: Location = "neutral" if game.neutral_site else "home"
    away_location: Location = "neutral" if game.neutral_site else "away"
    home_key = normalize_team_key(game.home_team)
    away_key = normalize_team_key(game.away_team)

    home = GameResult(
        team=home_key,
        opponent=away_key,
        points_for=game.home_points,
        points_against=game.away_points,
        location=home_location,
    )
    away = GameResult(
        team=away_key,
        opponent=home_key,
        points_for=game.away_points,
        points_against=game.home_points,
        location=away_location,
    )
    return home, away


def compute_margin_bonus(margin: int, is_win: bool, config: RatingConfig | None = None) -> float:
    """
    Calculate the logarithmic margin bonus.

    The first touchdown of margin is worth more than the third, and the margin
    is capped so running up the score earns nothing.

    Args:
        margin: Point differential
        is_win: Whether the team won
        config: Optional config for custom weight and cap

    Returns:
        Margin bonus between 0.0 and margin_weight
    """
    if not is_win or margin <= 0:
        return 0.0

    if config is None:
        config = _DEFAULT_CONFIG

    capped_margin = min(abs(margin), config.margin_cap)
    return config.margin_weight * math.log(1 + capped_margin) / math.log(1 + config.margin_cap)


def compute_venue_adjustment(
    location: Location,
    is_win: bool,
    config: RatingConfig | None = None,
) -> float:
    """Road wins are rewarded, home losses are penalized."""
    if config is None:
        config = _DEFAULT_CONFIG

    if is_win:
        return {
            "away": config.venue_road_win,
            "neutral": config.venue_neutral_win,
            "home": 0.0,
        }[location]
    return {
        "away": 0.0,
        "neutral": config.venue_neutral_loss,
        "home": config.venue_home_loss,
    }[location]


def compute_game_grade(result: GameResult, config: RatingConfig | None = None) -> float:
    """
    GameGrade = ResultPoints + MarginBonus + VenueBonus

    Where ResultPoints is win_base for a win and 0 otherwise.
    """
    if config is None:
        config = _DEFAULT_CONFIG

    result_points = config.win_base if result.is_win else 0.0
    margin_bonus = compute_margin_bonus(result.margin, result.is_win, config)
    venue_bonus = compute_venue_adjustment(result.location, result.is_win, config)
    return result_points + margin_bonus + venue_bonus
