"""Season listings and per-team schedule views."""

from datetime import datetime, timezone

from cfbpoll.data.models import (
    CalendarWeek,
    ScheduleGame,
    TeamInfo,
    TeamScheduleGame,
    WeekInfo,
)
from cfbpoll.data.names import normalize_team_key, same_team

_NO_DATE = datetime.min.replace(tzinfo=timezone.utc)


def season_range(min_year: int, max_year: int) -> list[int]:
    """Seasons from max_year down to min_year inclusive (empty if max < min)."""
    return list(range(max_year, min_year - 1, -1))


def week_labels(calendar: list[CalendarWeek]) -> list[WeekInfo]:
    """Label each calendar week "Week N", or "Postseason" for the postseason week."""
    return [
        WeekInfo(
            week_number=w.week,
            label="Postseason" if w.season_type.lower() == "postseason" else f"Week {w.week}",
        )
        for w in calendar
    ]


def _schedule_order(game: ScheduleGame) -> tuple:
    return (
        0 if game.season_type == "regular" else 1,
        game.week or 0,
        game.start_date or _NO_DATE,
    )


def team_schedule(
    team_name: str,
    schedule: list[ScheduleGame],
    teams: dict[str, TeamInfo],
) -> list[TeamScheduleGame]:
    """
    A team's games from its own perspective.

    Regular season games come first, then by week and kickoff. Scores and the
    win flag are only filled in for completed games; a tie is not a win.
    Opponents outside `teams` get no logo or record.

    Args:
        team_name: Team to build the schedule for (any capitalization)
        schedule: Full season schedule
        teams: Season teams keyed by reported name

    Returns:
        Ordered schedule entries
    """
    teams_by_key = {normalize_team_key(name): info for name, info in teams.items()}

    entries = []
    own_games = [
        g for g in schedule
        if same_team(team_name, g.home_team) or same_team(team_name, g.away_team)
    ]
    for game in sorted(own_games, key=_schedule_order):
        is_home = same_team(team_name, game.home_team)
        opponent = (game.away_team if is_home else game.home_team) or ""
        team_score = game.home_points if is_home else game.away_points
        opponent_score = game.away_points if is_home else game.home_points

        is_win = None
        if game.completed and team_score is not None and opponent_score is not None:
            is_win = team_score > opponent_score

        opponent_info = teams_by_key.get(normalize_team_key(opponent))

        entries.append(
            TeamScheduleGame(
                week=game.week,
                season_type=game.season_type,
                game_date=game.start_date,
                start_time_tbd=game.start_time_tbd,
                is_home=is_home,
                neutral_site=game.neutral_site,
                opponent_name=opponent,
                opponent_logo_url=opponent_info.logo_url if opponent_info else "",
                opponent_record=(
                    f"{opponent_info.wins}-{opponent_info.losses}" if opponent_info else ""
                ),
                team_score=team_score if game.completed else None,
                opponent_score=opponent_score if game.completed else None,
                is_win=is_win,
                venue=game.venue,
            )
        )
    return entries
