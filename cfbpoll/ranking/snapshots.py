"""Draft/published snapshot lifecycle.

A snapshot is Draft after every save (including a re-save of a published
week), Published after publish, and gone after delete. Only published
snapshots are publicly visible.
"""

import logging

from cfbpoll.data.models import PersistedWeekSummary, RankingsResult
from cfbpoll.data.storage import Storage

logger = logging.getLogger(__name__)


class SnapshotManager:
    """Snapshot operations over Storage."""

    def __init__(self, storage: Storage):
        if storage is None:
            raise ValueError("storage must not be None")
        self.storage = storage

    async def save_snapshot(self, result: RankingsResult) -> bool:
        """Upsert a snapshot as Draft."""
        if result is None:
            raise ValueError("rankings must not be None")
        saved = await self.storage.save_snapshot(result)
        logger.debug("Saved draft snapshot for %d week %d", result.season, result.week)
        return saved

    async def publish_snapshot(self, season: int, week: int) -> bool:
        """Mark a snapshot Published. False if none exists."""
        return await self.storage.publish_snapshot(season, week)

    async def delete_snapshot(self, season: int, week: int) -> bool:
        """Remove a snapshot. False if none exists."""
        return await self.storage.delete_snapshot(season, week)

    async def get_snapshot(self, season: int, week: int) -> RankingsResult | None:
        return await self.storage.get_snapshot(season, week)

    async def get_published_snapshot(self, season: int, week: int) -> RankingsResult | None:
        return await self.storage.get_published_snapshot(season, week)

    async def get_persisted_weeks(self) -> list[PersistedWeekSummary]:
        return await self.storage.get_persisted_weeks()

    async def get_published_week_numbers(self, season: int) -> list[int]:
        return await self.storage.get_published_week_numbers(season)

    async def get_published_seasons(self) -> list[int]:
        """Seasons with at least one published snapshot, ascending."""
        weeks = await self.storage.get_persisted_weeks()
        return sorted({w.season for w in weeks if w.published})
