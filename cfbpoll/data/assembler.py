"""Assemble SeasonData from independently fetched (and cached) components."""

from cfbpoll.data.models import (
    AdvancedGameStats,
    FBSTeam,
    Game,
    SeasonData,
    TeamInfo,
    TeamStat,
)
from cfbpoll.data.names import normalize_team_key


def max_regular_week(regular_games: list[Game]) -> int:
    """Last week number seen in the regular season (0 if none)."""
    return max((g.week for g in regular_games if g.week is not None), default=0)


def filter_games_to_week(
    regular_games: list[Game],
    postseason_games: list[Game],
    week: int,
    last_regular_week: int,
) -> list[Game]:
    """
    Keep regular-season games through `week`.

    Postseason games are only included once `week` is past the final
    regular-season week.
    """
    filtered = [g for g in regular_games if g.week is not None and g.week <= week]
    if week > last_regular_week:
        filtered.extend(postseason_games)
    return filtered


def attach_advanced_stats(
    games: list[Game],
    regular_stats: list[AdvancedGameStats],
    postseason_stats: list[AdvancedGameStats],
    week: int,
    last_regular_week: int,
) -> list[Game]:
    """
    Return copies of `games` with each side's advanced stats attached.

    Stats are matched on (team, game_id).
    """
    pool = list(regular_stats)
    if week > last_regular_week:
        pool.extend(postseason_stats)

    lookup: dict[tuple[str, int], AdvancedGameStats] = {}
    for stat in pool:
        if stat.game_id is None or not stat.team:
            continue
        lookup[(normalize_team_key(stat.team), stat.game_id)] = stat

    result = []
    for game in games:
        update = {}
        if game.game_id is not None:
            update["home_advanced_stats"] = lookup.get(
                (normalize_team_key(game.home_team), game.game_id)
            )
            update["away_advanced_stats"] = lookup.get(
                (normalize_team_key(game.away_team), game.game_id)
            )
        result.append(game.model_copy(update=update))
    return result


def build_team_dictionary(
    teams: list[FBSTeam],
    games: list[Game],
    season_stats: dict[str, list[TeamStat]],
) -> dict[str, TeamInfo]:
    """
    Build TeamInfo per team, keyed by the team's reported name.

    Game membership and stats lookup ignore case. Ties count as neither a
    win nor a loss.
    """
    stats_by_key = {normalize_team_key(name): stats for name, stats in season_stats.items()}

    games_by_team: dict[str, list[Game]] = {}
    for game in games:
        for side in (game.home_team, game.away_team):
            key = normalize_team_key(side)
            if key:
                games_by_team.setdefault(key, []).append(game)

    team_dict: dict[str, TeamInfo] = {}
    for team in teams:
        if not team.name:
            continue

        key = normalize_team_key(team.name)
        team_games = games_by_team.get(key, [])

        wins = 0
        losses = 0
        for game in team_games:
            is_home = normalize_team_key(game.home_team) == key
            team_points = game.home_points if is_home else game.away_points
            opp_points = game.away_points if is_home else game.home_points
            if team_points is None or opp_points is None:
                continue
            if team_points > opp_points:
                wins += 1
            elif opp_points > team_points:
                losses += 1

        team_dict[team.name] = TeamInfo(
            name=team.name,
            conference=team.conference,
            division=team.division,
            logo_url=team.logo_url,
            color=team.color,
            alt_color=team.alt_color,
            wins=wins,
            losses=losses,
            games=team_games,
            team_stats=stats_by_key.get(key, []),
        )

    return team_dict


def assemble_season_data(
    season: int,
    week: int,
    teams: list[FBSTeam],
    regular_games: list[Game],
    postseason_games: list[Game],
    regular_stats: list[AdvancedGameStats],
    postseason_stats: list[AdvancedGameStats],
    season_stats: dict[str, list[TeamStat]],
) -> SeasonData:
    """
    Combine raw components into SeasonData for (season, week).

    Raises:
        ValueError: If any component collection is None
    """
    components = {
        "teams": teams,
        "regular_games": regular_games,
        "postseason_games": postseason_games,
        "regular_stats": regular_stats,
        "postseason_stats": postseason_stats,
        "season_stats": season_stats,
    }
    for name, value in components.items():
        if value is None:
            raise ValueError(f"{name} must not be None")

    last_regular_week = max_regular_week(regular_games)
    filtered = filter_games_to_week(regular_games, postseason_games, week, last_regular_week)
    games = attach_advanced_stats(
        filtered, regular_stats, postseason_stats, week, last_regular_week
    )

    return SeasonData(
        season=season,
        week=week,
        teams=build_team_dictionary(teams, games, season_stats),
        games=games,
    )
