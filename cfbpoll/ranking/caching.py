"""Rankings generator that memoizes results in the persistent cache."""

import logging

from cfbpoll.data.cache import PersistentCache, expiration_for
from cfbpoll.data.models import RankingsResult, RatingDetails, SeasonData
from cfbpoll.ranking.generator import RankingsGenerator

logger = logging.getLogger(__name__)


def rankings_cache_key(season: int, week: int) -> str:
    return f"rankings_{season}_week_{week}"


class CachingRankingsGenerator:
    """Wraps a RankingsGenerator; results are cached per (season, week)."""

    def __init__(
        self,
        inner: RankingsGenerator,
        cache: PersistentCache,
        rankings_expiration_hours: int = 144,
    ):
        if inner is None:
            raise ValueError("inner generator must not be None")
        if cache is None:
            raise ValueError("cache must not be None")
        self.inner = inner
        self.cache = cache
        self.rankings_expiration_hours = rankings_expiration_hours

    async def generate_rankings(
        self, season_data: SeasonData, ratings: dict[str, RatingDetails]
    ) -> RankingsResult:
        if season_data is None:
            raise ValueError("season_data must not be None")
        if ratings is None:
            raise ValueError("ratings must not be None")

        key = rankings_cache_key(season_data.season, season_data.week)
        cached = await self.cache.get(key, RankingsResult)
        if cached is not None:
            logger.debug("Rankings cache hit for %s", key)
            return cached

        logger.debug("Rankings cache miss for %s, generating", key)
        result = await self.inner.generate_rankings(season_data, ratings)
        await self.cache.set(
            key,
            result,
            expiration_for(season_data.season, self.rankings_expiration_hours),
        )
        return result
