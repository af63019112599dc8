"""Tests for SQLite storage layer."""

from datetime import datetime, timedelta, timezone

import pytest


class TestStorageInitialization:
    """Tests for storage initialization."""

    @pytest.mark.asyncio
    async def test_storage_creates_tables(self, in_memory_db):
        """Storage.initialize() creates all required tables."""
        from cfbpoll.data.storage import Storage

        storage = Storage(db_path=in_memory_db)
        await storage.initialize()

        async with storage._get_connection() as conn:
            cursor = await conn.execute(
                "SELECT name FROM sqlite_master WHERE type='table'"
            )
            tables = {row[0] for row in await cursor.fetchall()}

        await storage.close()

        assert {"rankings_snapshot", "cache_entry"}.issubset(tables)

    @pytest.mark.asyncio
    async def test_storage_idempotent_init(self, in_memory_db):
        """Multiple initialize() calls don't fail."""
        from cfbpoll.data.storage import Storage

        storage = Storage(db_path=in_memory_db)
        await storage.initialize()
        await storage.initialize()  # Should not raise
        await storage.close()

    @pytest.mark.asyncio
    async def test_file_backed_db_creates_parent_dir(self, tmp_path):
        """A file-backed database gets its parent directory created."""
        from cfbpoll.data.storage import Storage

        db_path = tmp_path / "nested" / "dir" / "cfbpoll.db"
        storage = Storage(db_path=db_path)
        await storage.initialize()
        await storage.close()

        assert db_path.exists()


class TestSnapshotOperations:
    """Tests for snapshot rows."""

    @pytest.mark.asyncio
    async def test_save_and_get_snapshot(self, storage, sample_rankings):
        """Saved snapshot round-trips and is not yet published."""
        assert await storage.save_snapshot(sample_rankings) is True

        retrieved = await storage.get_snapshot(2024, 5)
        assert retrieved == sample_rankings
        assert await storage.get_published_snapshot(2024, 5) is None

    @pytest.mark.asyncio
    async def test_save_none_raises(self, storage):
        with pytest.raises(ValueError):
            await storage.save_snapshot(None)

    @pytest.mark.asyncio
    async def test_publish_makes_snapshot_visible(self, storage, sample_rankings):
        await storage.save_snapshot(sample_rankings)

        assert await storage.publish_snapshot(2024, 5) is True
        assert await storage.get_published_snapshot(2024, 5) == sample_rankings

    @pytest.mark.asyncio
    async def test_resave_demotes_to_draft(self, storage, sample_rankings):
        """Saving over a published week leaves a single draft row."""
        await storage.save_snapshot(sample_rankings)
        await storage.publish_snapshot(2024, 5)
        await storage.save_snapshot(sample_rankings)

        weeks = await storage.get_persisted_weeks()
        assert len(weeks) == 1
        assert weeks[0].published is False
        assert await storage.get_published_snapshot(2024, 5) is None

    @pytest.mark.asyncio
    async def test_publish_and_delete_missing_return_false(self, storage):
        assert await storage.publish_snapshot(2024, 5) is False
        assert await storage.delete_snapshot(2024, 5) is False
        assert await storage.get_persisted_weeks() == []

    @pytest.mark.asyncio
    async def test_delete_removes_row(self, storage, sample_rankings):
        await storage.save_snapshot(sample_rankings)
        await storage.publish_snapshot(2024, 5)

        assert await storage.delete_snapshot(2024, 5) is True
        assert await storage.get_snapshot(2024, 5) is None
        assert await storage.get_persisted_weeks() == []

    @pytest.mark.asyncio
    async def test_persisted_weeks_ordering(self, storage, sample_rankings):
        """Newest season first, then newest week first."""
        for season, week in [(2023, 3), (2024, 1), (2024, 7), (2023, 14)]:
            await storage.save_snapshot(
                sample_rankings.model_copy(update={"season": season, "week": week})
            )

        weeks = await storage.get_persisted_weeks()
        assert [(w.season, w.week) for w in weeks] == [
            (2024, 7),
            (2024, 1),
            (2023, 14),
            (2023, 3),
        ]
        assert all(w.created_at.tzinfo is not None for w in weeks)

    @pytest.mark.asyncio
    async def test_published_week_numbers(self, storage, sample_rankings):
        for week in (9, 2, 5):
            await storage.save_snapshot(sample_rankings.model_copy(update={"week": week}))
        await storage.publish_snapshot(2024, 9)
        await storage.publish_snapshot(2024, 2)

        assert await storage.get_published_week_numbers(2024) == [2, 9]
        assert await storage.get_published_week_numbers(2023) == []


class TestCacheEntryOperations:
    """Tests for raw cache rows."""

    def _entry(self, key: str, expires_at: datetime):
        from cfbpoll.data.models import CacheDataEntry

        return CacheDataEntry(
            cache_key=key,
            data=b"\x1f\x8bpayload",
            cached_at=datetime.now(timezone.utc),
            expires_at=expires_at,
        )

    @pytest.mark.asyncio
    async def test_set_and_get_entry(self, storage):
        expires = datetime.now(timezone.utc) + timedelta(hours=1)
        await storage.set_cache_entry(self._entry("k", expires))

        entry = await storage.get_cache_entry("k")
        assert entry is not None
        assert entry.data == b"\x1f\x8bpayload"
        assert entry.expires_at == expires

    @pytest.mark.asyncio
    async def test_set_overwrites(self, storage):
        now = datetime.now(timezone.utc)
        await storage.set_cache_entry(self._entry("k", now + timedelta(hours=1)))
        await storage.set_cache_entry(self._entry("k", now + timedelta(hours=5)))

        entry = await storage.get_cache_entry("k")
        assert entry.expires_at == now + timedelta(hours=5)

    @pytest.mark.asyncio
    async def test_remove_entry(self, storage):
        await storage.set_cache_entry(
            self._entry("k", datetime.now(timezone.utc) + timedelta(hours=1))
        )

        assert await storage.remove_cache_entry("k") is True
        assert await storage.remove_cache_entry("k") is False
        assert await storage.get_cache_entry("k") is None

    @pytest.mark.asyncio
    async def test_delete_expired_entries(self, storage):
        now = datetime.now(timezone.utc)
        await storage.set_cache_entry(self._entry("old", now - timedelta(hours=1)))
        await storage.set_cache_entry(self._entry("older", now - timedelta(days=3)))
        await storage.set_cache_entry(self._entry("fresh", now + timedelta(hours=1)))

        assert await storage.delete_expired_cache_entries(now) == 2
        assert await storage.get_cache_entry("fresh") is not None
        assert await storage.get_cache_entry("old") is None
