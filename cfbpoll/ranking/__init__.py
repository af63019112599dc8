"""Ranking generation, snapshot lifecycle, and all-time aggregation."""

from cfbpoll.ranking.admin import AdminService
from cfbpoll.ranking.alltime import AllTimeAggregator
from cfbpoll.ranking.caching import CachingRankingsGenerator, rankings_cache_key
from cfbpoll.ranking.engine import RankingEngine
from cfbpoll.ranking.generator import RankingsGenerator
from cfbpoll.ranking.snapshots import SnapshotManager
from cfbpoll.ranking.teams import season_range, team_schedule, week_labels

__all__ = [
    "AdminService",
    "AllTimeAggregator",
    "CachingRankingsGenerator",
    "RankingEngine",
    "RankingsGenerator",
    "SnapshotManager",
    "rankings_cache_key",
    "season_range",
    "team_schedule",
    "week_labels",
]
