"""Runtime settings loaded from the environment (and an optional .env file)."""

import os

from pydantic import BaseModel, Field


class Settings(BaseModel):
    """Configuration for storage locations, cache horizons, and the upstream API.

    Cache horizons only apply to the current (or a future) season; data keyed by
    a past season is cached permanently.
    """

    api_key: str | None = None
    db_path: str = "data/cfbpoll.db"
    cache_db_path: str = "data/cache.db"

    season_data_expiration_hours: int = Field(default=144, gt=0)
    calendar_expiration_hours: int = Field(default=168, gt=0)
    rankings_expiration_hours: int = Field(default=144, gt=0)
    max_season_year_expiration_hours: int = Field(default=24, gt=0)

    minimum_year: int = Field(default=2002, ge=1869)

    @classmethod
    def from_env(cls) -> "Settings":
        """
        Build settings from CFBD_API_KEY and CFBPOLL_* environment variables.

        Unset variables fall back to the field defaults.

        Raises:
            pydantic.ValidationError: If a variable holds an invalid value
        """
        env_map = {
            "api_key": "CFBD_API_KEY",
            "db_path": "CFBPOLL_DB_PATH",
            "cache_db_path": "CFBPOLL_CACHE_DB_PATH",
            "season_data_expiration_hours": "CFBPOLL_SEASON_DATA_EXPIRATION_HOURS",
            "calendar_expiration_hours": "CFBPOLL_CALENDAR_EXPIRATION_HOURS",
            "rankings_expiration_hours": "CFBPOLL_RANKINGS_EXPIRATION_HOURS",
            "max_season_year_expiration_hours": "CFBPOLL_MAX_SEASON_YEAR_EXPIRATION_HOURS",
            "minimum_year": "CFBPOLL_MINIMUM_YEAR",
        }
        values = {
            field: os.environ[var]
            for field, var in env_map.items()
            if os.environ.get(var)
        }
        return cls(**values)

    def require_api_key(self) -> str:
        """
        Return the API key or fail with an actionable message.

        Raises:
            ValueError: If CFBD_API_KEY is not configured
        """
        if not self.api_key:
            raise ValueError(
                "CFBD_API_KEY environment variable not set. "
                "Get a key at https://collegefootballdata.com"
            )
        return self.api_key
