# geopulse/core/config.py
# -----------------------------------------------------------------------------
# Global settings (pydantic-settings v2)
# - Reads .env and OS environment variables into one Settings object
# - Upstream proxy location, timeouts, analytics knobs, logging
# -----------------------------------------------------------------------------
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # base
    APP_NAME: str = "geopulse"
    ENV: str = "dev"
    DATABASE_URL: str = "sqlite+aiosqlite:///./geopulse.db"

    # upstream recommendation proxy
    UPSTREAM_BASE_URL: str = "http://localhost:5000/api"
    UPSTREAM_API_KEY: str | None = None
    UPSTREAM_CONNECT_TIMEOUT: float = 6.0
    UPSTREAM_READ_TIMEOUT: float = 15.0
    UPSTREAM_RETRIES: int = 2

    # analytics request defaults
    DEFAULT_LOCATION: str = "Coimbatore"
    DEFAULT_TAKE: int = 50

    # bucket names that label a data source, not a venue category
    RESERVED_CATEGORY_KEYS: frozenset[str] = frozenset(
        {"heatmap", "demographics", "userlocation", "popularity"}
    )

    # demographics fallback; synthesized buckets are always flagged
    SYNTHESIZE_DEMOGRAPHICS: bool = True
    DEMOGRAPHICS_SEED: int | None = None

    # logging
    LOG_DIR: str = "logs"
    LOG_LEVEL: str = "INFO"

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")


settings = Settings()
