"""Tests for AdminService workflows."""

from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock

import pytest

from cfbpoll.data.models import RankingsResult, SeasonData


@pytest.fixture
def providers(sample_rankings):
    """Mocked data provider, rating provider and generator."""
    data_provider = AsyncMock()
    data_provider.get_season_data.return_value = SeasonData(season=2024, week=5)
    rating_provider = AsyncMock()
    rating_provider.rate_teams.return_value = {}
    generator = AsyncMock()
    generator.generate_rankings.return_value = sample_rankings
    return data_provider, rating_provider, generator


@pytest.fixture
def admin(providers, snapshots, cache):
    from cfbpoll.ranking.admin import AdminService

    data_provider, rating_provider, generator = providers
    return AdminService(data_provider, rating_provider, generator, snapshots, cache)


async def _seed(cache, keys):
    for key in keys:
        await cache.set(key, [1], datetime.now(timezone.utc) + timedelta(hours=1))


class TestCalculateRankings:
    """Tests for calculate_rankings."""

    @pytest.mark.asyncio
    async def test_calculate_saves_draft(self, admin, snapshots, sample_rankings):
        result = await admin.calculate_rankings(2024, 5)

        assert result.persisted is True
        assert result.rankings == sample_rankings
        assert await snapshots.get_snapshot(2024, 5) == sample_rankings
        assert await snapshots.get_published_snapshot(2024, 5) is None

    @pytest.mark.asyncio
    async def test_calculate_evicts_season_data_and_rankings(self, admin, cache):
        from cfbpoll.data.caching_client import season_cache_keys

        keys = season_cache_keys(2024, 5) + ["rankings_2024_week_5"]
        unrelated = ["teams_2023", "seasonStats_2024_week_4", "calendar_2024"]
        await _seed(cache, keys + unrelated)

        await admin.calculate_rankings(2024, 5)

        for key in keys:
            assert await cache.get(key, list[int]) is None, key
        for key in unrelated:
            assert await cache.get(key, list[int]) == [1], key

    @pytest.mark.asyncio
    async def test_calculate_runs_pipeline(self, admin, providers):
        data_provider, rating_provider, generator = providers

        await admin.calculate_rankings(2024, 5)

        data_provider.get_season_data.assert_awaited_once_with(2024, 5)
        rating_provider.rate_teams.assert_awaited_once()
        generator.generate_rankings.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_persist_failure_reported(self, providers, cache, sample_rankings):
        from cfbpoll.ranking.admin import AdminService

        data_provider, rating_provider, generator = providers
        failing = AsyncMock()
        failing.save_snapshot.side_effect = RuntimeError("disk full")
        admin = AdminService(data_provider, rating_provider, generator, failing, cache)

        result = await admin.calculate_rankings(2024, 5)

        assert result.persisted is False
        assert result.rankings == sample_rankings

    @pytest.mark.asyncio
    async def test_recalculate_demotes_published(self, admin, snapshots):
        await admin.calculate_rankings(2024, 5)
        await admin.publish_snapshot(2024, 5)
        await admin.calculate_rankings(2024, 5)

        weeks = await admin.get_persisted_weeks()
        assert [(w.week, w.published) for w in weeks] == [(5, False)]


class TestPublishDelete:
    """Tests for publish/delete."""

    @pytest.mark.asyncio
    async def test_publish(self, admin, snapshots, cache):
        await admin.calculate_rankings(2024, 5)
        await _seed(cache, ["rankings_2024_week_5"])

        assert await admin.publish_snapshot(2024, 5) is True
        assert await snapshots.get_published_snapshot(2024, 5) is not None
        assert await cache.get("rankings_2024_week_5", list[int]) is None

    @pytest.mark.asyncio
    async def test_publish_missing(self, admin):
        assert await admin.publish_snapshot(2024, 5) is False
        assert await admin.get_persisted_weeks() == []

    @pytest.mark.asyncio
    async def test_delete(self, admin, snapshots, cache):
        await admin.calculate_rankings(2024, 5)
        await admin.publish_snapshot(2024, 5)
        await _seed(cache, ["rankings_2024_week_5"])

        assert await admin.delete_snapshot(2024, 5) is True
        assert await snapshots.get_snapshot(2024, 5) is None
        assert await cache.get("rankings_2024_week_5", list[int]) is None

    @pytest.mark.asyncio
    async def test_delete_missing(self, admin):
        assert await admin.delete_snapshot(2024, 5) is False

    @pytest.mark.asyncio
    async def test_persisted_weeks_order(self, admin, providers, sample_rankings):
        _, _, generator = providers
        for season, week in [(2023, 14), (2024, 2), (2024, 6)]:
            generator.generate_rankings.return_value = RankingsResult(season=season, week=week)
            await admin.calculate_rankings(season, week)

        weeks = await admin.get_persisted_weeks()
        assert [(w.season, w.week) for w in weeks] == [(2024, 6), (2024, 2), (2023, 14)]
