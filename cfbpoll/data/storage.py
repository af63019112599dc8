"""SQLite storage layer for rankings snapshots and the persistent cache."""

import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import AsyncIterator

import aiosqlite

from cfbpoll.data.models import CacheDataEntry, PersistedWeekSummary, RankingsResult

logger = logging.getLogger(__name__)


class Storage:
    """Async SQLite storage for snapshots and cache entries."""

    def __init__(self, db_path: str | Path = "data/cfbpoll.db"):
        self.db_path = str(db_path)
        self._connection: aiosqlite.Connection | None = None

    @asynccontextmanager
    async def _get_connection(self) -> AsyncIterator[aiosqlite.Connection]:
        """Get or create a database connection."""
        if self._connection is None:
            self._connection = await aiosqlite.connect(self.db_path)
            self._connection.row_factory = aiosqlite.Row
        yield self._connection

    async def initialize(self) -> None:
        """Create tables if they don't exist."""
        if self.db_path != ":memory:":
            Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)

        async with self._get_connection() as conn:
            await conn.executescript(
                """
                -- One row per (season, week); published flag drives visibility
                CREATE TABLE IF NOT EXISTS rankings_snapshot (
                    season INTEGER NOT NULL,
                    week INTEGER NOT NULL,
                    rankings_json TEXT NOT NULL,
                    published INTEGER NOT NULL DEFAULT 0,
                    created_at TEXT NOT NULL,
                    PRIMARY KEY (season, week)
                );

                -- Compressed cache payloads
                CREATE TABLE IF NOT EXISTS cache_entry (
                    cache_key TEXT PRIMARY KEY,
                    data BLOB NOT NULL,
                    cached_at TEXT NOT NULL,
                    expires_at TEXT NOT NULL
                );

                CREATE INDEX IF NOT EXISTS idx_cache_entry_expires_at
                    ON cache_entry(expires_at);
                """
            )
            await conn.commit()

    async def close(self) -> None:
        """Close the database connection."""
        if self._connection:
            await self._connection.close()
            self._connection = None

    # ==================== Snapshot Operations ====================

    async def save_snapshot(self, rankings: RankingsResult) -> bool:
        """Upsert a snapshot. Any existing row is demoted back to draft."""
        if rankings is None:
            raise ValueError("rankings must not be None")

        created_at = datetime.now(timezone.utc)
        async with self._get_connection() as conn:
            cursor = await conn.execute(
                """
                INSERT INTO rankings_snapshot (season, week, rankings_json, published, created_at)
                VALUES (?, ?, ?, 0, ?)
                ON CONFLICT(season, week) DO UPDATE SET
                    rankings_json = excluded.rankings_json,
                    published = 0,
                    created_at = excluded.created_at
                """,
                (
                    rankings.season,
                    rankings.week,
                    rankings.model_dump_json(),
                    created_at.isoformat(),
                ),
            )
            await conn.commit()

        logger.info("Saved snapshot for season %d, week %d", rankings.season, rankings.week)
        return cursor.rowcount > 0

    async def publish_snapshot(self, season: int, week: int) -> bool:
        """Mark a snapshot published. Returns False if there is no row."""
        async with self._get_connection() as conn:
            cursor = await conn.execute(
                "UPDATE rankings_snapshot SET published = 1 WHERE season = ? AND week = ?",
                (season, week),
            )
            await conn.commit()

        logger.info(
            "Published snapshot for season %d, week %d: %d rows affected",
            season, week, cursor.rowcount,
        )
        return cursor.rowcount > 0

    async def delete_snapshot(self, season: int, week: int) -> bool:
        """Remove a snapshot in any state. Returns False if there is no row."""
        async with self._get_connection() as conn:
            cursor = await conn.execute(
                "DELETE FROM rankings_snapshot WHERE season = ? AND week = ?",
                (season, week),
            )
            await conn.commit()

        logger.info(
            "Deleted snapshot for season %d, week %d: %d rows affected",
            season, week, cursor.rowcount,
        )
        return cursor.rowcount > 0

    async def get_snapshot(self, season: int, week: int) -> RankingsResult | None:
        """Get a snapshot regardless of its published flag."""
        return await self._fetch_snapshot(
            "SELECT rankings_json FROM rankings_snapshot WHERE season = ? AND week = ?",
            (season, week),
        )

    async def get_published_snapshot(self, season: int, week: int) -> RankingsResult | None:
        """Get a snapshot only if it has been published."""
        return await self._fetch_snapshot(
            """
            SELECT rankings_json FROM rankings_snapshot
            WHERE season = ? AND week = ? AND published = 1
            """,
            (season, week),
        )

    async def _fetch_snapshot(self, query: str, params: tuple) -> RankingsResult | None:
        async with self._get_connection() as conn:
            cursor = await conn.execute(query, params)
            row = await cursor.fetchone()

        if row is None:
            return None
        return RankingsResult.model_validate_json(row["rankings_json"])

    async def get_persisted_weeks(self) -> list[PersistedWeekSummary]:
        """All snapshot rows, newest season and week first."""
        async with self._get_connection() as conn:
            cursor = await conn.execute(
                """
                SELECT season, week, published, created_at
                FROM rankings_snapshot
                ORDER BY season DESC, week DESC
                """
            )
            rows = await cursor.fetchall()

        return [
            PersistedWeekSummary(
                season=row["season"],
                week=row["week"],
                published=row["published"] == 1,
                created_at=datetime.fromisoformat(row["created_at"]),
            )
            for row in rows
        ]

    async def get_published_week_numbers(self, season: int) -> list[int]:
        """Week numbers with a published snapshot for a season, ascending."""
        async with self._get_connection() as conn:
            cursor = await conn.execute(
                """
                SELECT week FROM rankings_snapshot
                WHERE season = ? AND published = 1
                ORDER BY week
                """,
                (season,),
            )
            rows = await cursor.fetchall()

        return [row["week"] for row in rows]

    # ==================== Cache Operations ====================

    async def get_cache_entry(self, key: str) -> CacheDataEntry | None:
        """Get a raw cache row, expired or not."""
        async with self._get_connection() as conn:
            cursor = await conn.execute(
                """
                SELECT cache_key, data, cached_at, expires_at
                FROM cache_entry
                WHERE cache_key = ?
                """,
                (key,),
            )
            row = await cursor.fetchone()

        if row is None:
            return None

        return CacheDataEntry(
            cache_key=row["cache_key"],
            data=bytes(row["data"]),
            cached_at=datetime.fromisoformat(row["cached_at"]),
            expires_at=datetime.fromisoformat(row["expires_at"]),
        )

    async def set_cache_entry(self, entry: CacheDataEntry) -> bool:
        """Insert or overwrite a cache row."""
        if entry is None:
            raise ValueError("entry must not be None")

        async with self._get_connection() as conn:
            cursor = await conn.execute(
                """
                INSERT INTO cache_entry (cache_key, data, cached_at, expires_at)
                VALUES (?, ?, ?, ?)
                ON CONFLICT(cache_key) DO UPDATE SET
                    data = excluded.data,
                    cached_at = excluded.cached_at,
                    expires_at = excluded.expires_at
                """,
                (
                    entry.cache_key,
                    entry.data,
                    entry.cached_at.isoformat(timespec="microseconds"),
                    entry.expires_at.isoformat(timespec="microseconds"),
                ),
            )
            await conn.commit()

        return cursor.rowcount > 0

    async def remove_cache_entry(self, key: str) -> bool:
        """Delete a cache row. Returns False if the key was absent."""
        async with self._get_connection() as conn:
            cursor = await conn.execute(
                "DELETE FROM cache_entry WHERE cache_key = ?", (key,)
            )
            await conn.commit()

        logger.debug("Removed cache entry for key %s: %d rows affected", key, cursor.rowcount)
        return cursor.rowcount > 0

    async def delete_expired_cache_entries(self, now: datetime) -> int:
        """Delete every row that expired before `now`. Returns the count."""
        async with self._get_connection() as conn:
            cursor = await conn.execute(
                "DELETE FROM cache_entry WHERE expires_at < ?", (now.isoformat(timespec="microseconds"),)
            )
            await conn.commit()

        return cursor.rowcount
