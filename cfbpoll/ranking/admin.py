"""Administrative workflows: recompute, publish, delete."""

import logging
from typing import Any

from cfbpoll.data.cache import PersistentCache
from cfbpoll.data.caching_client import season_cache_keys
from cfbpoll.data.models import CalculateRankingsResult, PersistedWeekSummary
from cfbpoll.ranking.caching import rankings_cache_key
from cfbpoll.ranking.generator import RankingsGenerator
from cfbpoll.ranking.snapshots import SnapshotManager

logger = logging.getLogger(__name__)


class AdminService:
    """
    Operator-facing snapshot management.

    Args:
        data_provider: Season data provider (get_season_data)
        rating_provider: Rating provider (rate_teams)
        generator: Uncached rankings generator
        snapshots: Snapshot manager
        cache: Persistent cache shared with the public read path
    """

    def __init__(
        self,
        data_provider: Any,
        rating_provider: Any,
        generator: RankingsGenerator,
        snapshots: SnapshotManager,
        cache: PersistentCache,
    ):
        self.data_provider = data_provider
        self.rating_provider = rating_provider
        self.generator = generator
        self.snapshots = snapshots
        self.cache = cache

    async def calculate_rankings(self, season: int, week: int) -> CalculateRankingsResult:
        """
        Recompute rankings from fresh data and save them as a Draft.

        Raw season-data cache entries for (season, week) are evicted first so
        the provider refetches, and the rankings cache key is evicted after
        generation so the public path cannot serve a stale result. A failed
        save is reported through persisted=False rather than raised.
        """
        logger.info("Calculating rankings for %d week %d", season, week)

        for key in season_cache_keys(season, week):
            await self.cache.remove(key)

        season_data = await self.data_provider.get_season_data(season, week)
        ratings = await self.rating_provider.rate_teams(season_data)
        rankings = await self.generator.generate_rankings(season_data, ratings)

        await self.cache.remove(rankings_cache_key(season, week))

        try:
            persisted = await self.snapshots.save_snapshot(rankings)
        except Exception as e:
            logger.warning(
                "Failed to persist snapshot for %d week %d: %s", season, week, e
            )
            persisted = False

        return CalculateRankingsResult(persisted=persisted, rankings=rankings)

    async def publish_snapshot(self, season: int, week: int) -> bool:
        published = await self.snapshots.publish_snapshot(season, week)
        if published:
            await self.cache.remove(rankings_cache_key(season, week))
            logger.info("Published snapshot for %d week %d", season, week)
        else:
            logger.info("No snapshot to publish for %d week %d", season, week)
        return published

    async def delete_snapshot(self, season: int, week: int) -> bool:
        deleted = await self.snapshots.delete_snapshot(season, week)
        if deleted:
            await self.cache.remove(rankings_cache_key(season, week))
            logger.info("Deleted snapshot for %d week %d", season, week)
        else:
            logger.info("No snapshot to delete for %d week %d", season, week)
        return deleted

    async def get_persisted_weeks(self) -> list[PersistedWeekSummary]:
        weeks = await self.snapshots.get_persisted_weeks()
        logger.info("Found %d persisted weeks", len(weeks))
        return weeks
