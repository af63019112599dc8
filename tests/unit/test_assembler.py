"""Tests for assembling SeasonData from raw components."""

import pytest

from cfbpoll.data.models import AdvancedGameStats, FBSTeam, Game, TeamStat


def make_game(
    game_id: int,
    week: int,
    home: str,
    away: str,
    home_points: int | None,
    away_points: int | None,
    season_type: str = "regular",
    neutral: bool = False,
) -> Game:
    """Helper to create test Game."""
    return Game(
        game_id=game_id,
        season_type=season_type,
        week=week,
        home_team=home,
        away_team=away,
        home_points=home_points,
        away_points=away_points,
        neutral_site=neutral,
    )


@pytest.fixture
def regular_games() -> list[Game]:
    return [
        make_game(1, 1, "Texas", "Michigan", 31, 12),
        make_game(2, 2, "Ohio State", "Texas", 14, 17),
        make_game(3, 12, "Michigan", "Ohio State", 13, 10),
        make_game(4, 13, "Texas", "Georgia", 20, 20),
    ]


@pytest.fixture
def postseason_games() -> list[Game]:
    return [make_game(10, 1, "Texas", "Ohio State", 21, 28, "postseason", neutral=True)]


@pytest.fixture
def teams() -> list[FBSTeam]:
    return [
        FBSTeam(name="Texas", conference="SEC", logo_url="texas.png"),
        FBSTeam(name="Ohio State", conference="Big Ten"),
        FBSTeam(name="Michigan", conference="Big Ten"),
        FBSTeam(name="Georgia", conference="SEC"),
    ]


class TestWeekFiltering:
    """Tests for game filtering by week."""

    def test_max_regular_week(self, regular_games):
        from cfbpoll.data.assembler import max_regular_week

        assert max_regular_week(regular_games) == 13
        assert max_regular_week([]) == 0

    def test_regular_games_through_week(self, regular_games, postseason_games):
        from cfbpoll.data.assembler import filter_games_to_week

        games = filter_games_to_week(regular_games, postseason_games, 2, 13)
        assert [g.game_id for g in games] == [1, 2]

    def test_postseason_included_after_regular_season(self, regular_games, postseason_games):
        from cfbpoll.data.assembler import filter_games_to_week

        at_last_week = filter_games_to_week(regular_games, postseason_games, 13, 13)
        after = filter_games_to_week(regular_games, postseason_games, 14, 13)

        assert 10 not in [g.game_id for g in at_last_week]
        assert [g.game_id for g in after] == [1, 2, 3, 4, 10]


class TestAdvancedStats:
    """Tests for attaching advanced stats by (team, game_id)."""

    def test_attach_matches_case_insensitively(self, regular_games):
        from cfbpoll.data.assembler import attach_advanced_stats

        stats = [
            AdvancedGameStats(game_id=1, team="TEXAS", opponent="Michigan"),
            AdvancedGameStats(game_id=1, team="michigan", opponent="Texas"),
            AdvancedGameStats(game_id=99, team="Texas", opponent="Nobody"),
        ]
        games = attach_advanced_stats(regular_games[:2], stats, [], 2, 13)

        assert games[0].home_advanced_stats.team == "TEXAS"
        assert games[0].away_advanced_stats.team == "michigan"
        assert games[1].home_advanced_stats is None
        assert games[1].away_advanced_stats is None

    def test_postseason_stats_only_after_regular_season(self, postseason_games):
        from cfbpoll.data.assembler import attach_advanced_stats

        stats = [AdvancedGameStats(game_id=10, team="Texas")]

        before = attach_advanced_stats(postseason_games, [], stats, 13, 13)
        after = attach_advanced_stats(postseason_games, [], stats, 14, 13)

        assert before[0].home_advanced_stats is None
        assert after[0].home_advanced_stats is not None

    def test_original_games_untouched(self, regular_games):
        from cfbpoll.data.assembler import attach_advanced_stats

        stats = [AdvancedGameStats(game_id=1, team="Texas")]
        attach_advanced_stats(regular_games, stats, [], 13, 13)

        assert regular_games[0].home_advanced_stats is None


class TestTeamDictionary:
    """Tests for TeamInfo construction."""

    def test_records_and_ties(self, teams, regular_games):
        from cfbpoll.data.assembler import build_team_dictionary

        team_dict = build_team_dictionary(teams, regular_games, {})

        assert (team_dict["Texas"].wins, team_dict["Texas"].losses) == (2, 0)
        assert (team_dict["Michigan"].wins, team_dict["Michigan"].losses) == (1, 1)
        assert (team_dict["Georgia"].wins, team_dict["Georgia"].losses) == (0, 0)
        assert len(team_dict["Texas"].games) == 3

    def test_case_insensitive_membership(self, teams):
        from cfbpoll.data.assembler import build_team_dictionary

        games = [make_game(1, 1, "texas", "GEORGIA", 7, 3)]
        team_dict = build_team_dictionary(teams, games, {})

        assert team_dict["Texas"].wins == 1
        assert team_dict["Georgia"].losses == 1

    def test_metadata_and_stats(self, teams):
        from cfbpoll.data.assembler import build_team_dictionary

        stats = {"texas": [TeamStat(team="texas", stat_name="totalYards", stat_value=4500)]}
        team_dict = build_team_dictionary(teams, [], stats)

        assert team_dict["Texas"].conference == "SEC"
        assert team_dict["Texas"].logo_url == "texas.png"
        assert team_dict["Texas"].team_stats[0].stat_name == "totalYards"
        assert team_dict["Ohio State"].team_stats == []

    def test_unscored_games_not_counted(self, teams):
        from cfbpoll.data.assembler import build_team_dictionary

        games = [make_game(1, 1, "Texas", "Georgia", None, None)]
        team_dict = build_team_dictionary(teams, games, {})

        assert (team_dict["Texas"].wins, team_dict["Texas"].losses) == (0, 0)


class TestAssembleSeasonData:
    """Tests for the full assembly."""

    def test_assemble(self, teams, regular_games, postseason_games):
        from cfbpoll.data.assembler import assemble_season_data

        data = assemble_season_data(
            2024, 14, teams, regular_games, postseason_games, [], [], {}
        )

        assert data.season == 2024
        assert data.week == 14
        assert len(data.games) == 5
        assert set(data.teams) == {"Texas", "Ohio State", "Michigan", "Georgia"}
        assert (data.teams["Ohio State"].wins, data.teams["Ohio State"].losses) == (1, 2)

    @pytest.mark.parametrize(
        "position", ["teams", "regular", "postseason", "regular_stats", "postseason_stats", "season_stats"]
    )
    def test_none_component_raises(self, position):
        from cfbpoll.data.assembler import assemble_season_data

        args = {
            "teams": [],
            "regular": [],
            "postseason": [],
            "regular_stats": [],
            "postseason_stats": [],
            "season_stats": {},
        }
        args[position] = None

        with pytest.raises(ValueError):
            assemble_season_data(2024, 1, *args.values())
