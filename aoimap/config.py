"""Configuration management using Pydantic settings."""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = "AOI-MAP"
    debug: bool = False

    # Server
    host: str = "0.0.0.0"
    port: int = 8000

    # Remote feature store: "sql" (SQLAlchemy) or "rest" (hosted table API)
    remote_backend: str = "sql"
    database_url: str = "sqlite+aiosqlite:///./aoimap.db"
    rest_url: str = ""
    rest_api_key: str = ""
    rest_table: str = "aoi_features"

    # Upper bound on any single remote call, in seconds
    remote_timeout: float = 10.0

    # Local durable cache (fallback mirror + drafts)
    cache_dir: str = "~/.cache/aoimap"

    # Geocoding
    nominatim_url: str = "https://nominatim.openstreetmap.org/search"
    geocoder_user_agent: str = "AOI-MAP/0.1.0"
    geocoder_limit: int = 10
    search_debounce_seconds: float = 0.2
    search_min_chars: int = 2
    search_results_shown: int = 6

    # Map
    default_base_layer: str = "streets"
    fit_padding: int = 20
    focus_zoom: int = 12
    search_focus_zoom: int = 13


settings = Settings()
