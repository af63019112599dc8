"""Tests for settings, name normalization and model validation."""

import pytest
from pydantic import ValidationError


class TestSettings:
    """Tests for Settings.from_env."""

    def test_defaults(self, monkeypatch):
        from cfbpoll.config import Settings

        for var in (
            "CFBD_API_KEY",
            "CFBPOLL_DB_PATH",
            "CFBPOLL_CACHE_DB_PATH",
            "CFBPOLL_RANKINGS_EXPIRATION_HOURS",
            "CFBPOLL_MINIMUM_YEAR",
        ):
            monkeypatch.delenv(var, raising=False)

        settings = Settings.from_env()
        assert settings.api_key is None
        assert settings.db_path == "data/cfbpoll.db"
        assert settings.cache_db_path == "data/cache.db"
        assert settings.season_data_expiration_hours == 144
        assert settings.calendar_expiration_hours == 168
        assert settings.rankings_expiration_hours == 144
        assert settings.max_season_year_expiration_hours == 24
        assert settings.minimum_year == 2002

    def test_env_overrides(self, monkeypatch):
        from cfbpoll.config import Settings

        monkeypatch.setenv("CFBD_API_KEY", "secret")
        monkeypatch.setenv("CFBPOLL_DB_PATH", "/tmp/poll.db")
        monkeypatch.setenv("CFBPOLL_RANKINGS_EXPIRATION_HOURS", "12")

        settings = Settings.from_env()
        assert settings.api_key == "secret"
        assert settings.db_path == "/tmp/poll.db"
        assert settings.rankings_expiration_hours == 12

    def test_invalid_value_raises(self, monkeypatch):
        from cfbpoll.config import Settings

        monkeypatch.setenv("CFBPOLL_CALENDAR_EXPIRATION_HOURS", "0")
        with pytest.raises(ValidationError):
            Settings.from_env()

    def test_require_api_key(self):
        from cfbpoll.config import Settings

        assert Settings(api_key="k").require_api_key() == "k"
        with pytest.raises(ValueError, match="CFBD_API_KEY"):
            Settings().require_api_key()


class TestTeamNames:
    """Tests for case-insensitive team keys."""

    def test_normalize(self):
        from cfbpoll.data.names import normalize_team_key

        assert normalize_team_key("  Ohio State ") == "ohio state"
        assert normalize_team_key("TEXAS A&M") == "texas a&m"
        assert normalize_team_key(None) == ""
        assert normalize_team_key("") == ""

    def test_same_team(self):
        from cfbpoll.data.names import same_team

        assert same_team("Miami", "miami")
        assert not same_team("Miami", "Miami (OH)")
        assert not same_team(None, None)


class TestModels:
    """Model validation rules."""

    def test_record_is_immutable(self):
        from cfbpoll.data.models import Record

        record = Record()
        updated = record.add_win().add_loss().add_win()

        assert (record.wins, record.losses) == (0, 0)
        assert (updated.wins, updated.losses) == (2, 1)

    def test_ranked_team_rank_must_be_positive(self):
        from cfbpoll.data.models import RankedTeam

        with pytest.raises(ValidationError):
            RankedTeam(rank=0, team_name="X", rating=1.0, weighted_sos=0.5, sos_ranking=1)

    def test_game_is_completed(self):
        from cfbpoll.data.models import Game

        assert Game(home_points=0, away_points=0).is_completed
        assert not Game(home_points=10).is_completed

    def test_rating_config_validation(self):
        from cfbpoll.data.models import RatingConfig

        with pytest.raises(ValidationError):
            RatingConfig(max_iterations=0)
        with pytest.raises(ValidationError):
            RatingConfig(initial_rating=1.5)
