"""Shared pytest fixtures for cfbpoll tests."""

import pytest


@pytest.fixture
def in_memory_db():
    """In-memory SQLite database path for isolated testing."""
    return ":memory:"


@pytest.fixture
async def storage(in_memory_db):
    """Storage instance with clean in-memory database."""
    from cfbpoll.data.storage import Storage

    storage = Storage(db_path=in_memory_db)
    await storage.initialize()
    yield storage
    await storage.close()


@pytest.fixture
async def cache_storage(in_memory_db):
    """Separate in-memory database for cache entries."""
    from cfbpoll.data.storage import Storage

    storage = Storage(db_path=in_memory_db)
    await storage.initialize()
    yield storage
    await storage.close()


@pytest.fixture
def cache(cache_storage):
    """PersistentCache over the in-memory cache database."""
    from cfbpoll.data.cache import PersistentCache

    return PersistentCache(cache_storage)


@pytest.fixture
def snapshots(storage):
    """SnapshotManager over the in-memory snapshot database."""
    from cfbpoll.ranking.snapshots import SnapshotManager

    return SnapshotManager(storage)


@pytest.fixture
def four_team_round_robin():
    """
    Canonical test case: 4-team round robin.

    A beats B, C, D
    B beats C, D
    C beats D
    D loses all

    Expected order: A > B > C > D
    """
    from cfbpoll.data.models import Game

    return [
        # Week 1: A beats B, C beats D
        Game(game_id=1, week=1, home_team="A", away_team="B", home_points=28, away_points=14),
        Game(game_id=2, week=1, home_team="C", away_team="D", home_points=21, away_points=14),
        # Week 2: A beats C, B beats D
        Game(game_id=3, week=2, home_team="A", away_team="C", home_points=35, away_points=17),
        Game(game_id=4, week=2, home_team="B", away_team="D", home_points=24, away_points=10),
        # Week 3: A beats D, B beats C
        Game(game_id=5, week=3, home_team="A", away_team="D", home_points=42, away_points=7),
        Game(game_id=6, week=3, home_team="B", away_team="C", home_points=17, away_points=14),
    ]


@pytest.fixture
def round_robin_season(four_team_round_robin):
    """SeasonData for the four-team round robin through week 3."""
    from cfbpoll.data.assembler import assemble_season_data
    from cfbpoll.data.models import FBSTeam

    teams = [
        FBSTeam(name="A", conference="East", logo_url="a.png"),
        FBSTeam(name="B", conference="East", logo_url="b.png"),
        FBSTeam(name="C", conference="West", logo_url="c.png"),
        FBSTeam(name="D", conference="West", logo_url="d.png"),
    ]
    return assemble_season_data(2024, 3, teams, four_team_round_robin, [], [], [], {})


@pytest.fixture
def sample_rankings():
    """Small RankingsResult for snapshot tests."""
    from cfbpoll.data.models import RankedTeam, RankingsResult

    return RankingsResult(
        season=2024,
        week=5,
        rankings=[
            RankedTeam(
                rank=1,
                team_name="Texas",
                rating=45.1234,
                weighted_sos=0.6123,
                strength_of_schedule=0.6,
                sos_ranking=1,
                wins=5,
                losses=0,
                conference="SEC",
                rating_components={"results": 1.0, "win_pct": 1.0},
            ),
            RankedTeam(
                rank=2,
                team_name="Ohio State",
                rating=41.5,
                weighted_sos=0.5,
                strength_of_schedule=0.5,
                sos_ranking=2,
                wins=4,
                losses=1,
                conference="Big Ten",
                rating_components={"results": 0.8, "weighted_sos": 0.5},
            ),
        ],
    )
