from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    DB_URL: str = "sqlite:///./jobs.db"
    REQUEST_TIMEOUT: float = 10.0
    USER_AGENT: str = (
    "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/125.0 Safari/537.36 JobFeed/0.1"
    )
    LOG_LEVEL: str = "INFO"

    # Ingestion
    SOURCES_FILE: str = "config/sources.json"
    INGEST_WORKERS: int = 4
    PDF_TEXT_MAX_CHARS: int = 2000

    # Query engine
    QUERY_TIMEOUT_S: float = 5.0
    SEARCH_PAGE_SIZE_DEFAULT: int = 20
    SEARCH_PAGE_SIZE_MAX: int = 100
    NEARBY_RADII_KM: list[int] = [10, 25, 50, 100]
    NEARBY_DEFAULT_RADIUS_KM: int = 25
    NEARBY_LIMIT_DEFAULT: int = 50
    NEARBY_LIMIT_MAX: int = 200

    # API rate limit: requests per window per client IP; 0 disables
    RATE_LIMIT_REQUESTS: int = 60
    RATE_LIMIT_WINDOW_S: float = 60.0

    # Reverse geocoding
    GEOCODE_CACHE_BACKEND: str = "memory"  # "memory" or "db"
    GEOCODE_CACHE_CAPACITY: int | None = 500
    GEOCODE_CACHE_TTL_S: float | None = 24 * 60 * 60
    GEOCODE_PRECISION: int = 2
    GEOCODE_TIMEOUT: float = 5.0
    LOCATIONIQ_API_KEY: str | None = None
    LOCATIONIQ_URL: str = "https://us1.locationiq.com/v1/reverse"

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")


settings = Settings()
