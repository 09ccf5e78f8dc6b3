from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment."""

    model_config = SettingsConfigDict(env_file=".env")

    app_name: str = "CardLedger"
    debug: bool = False

    database_url: str = "postgresql+asyncpg://localhost:5432/cardledger"

    # Vision identification
    anthropic_api_key: str = ""
    anthropic_model: str = "claude-sonnet-4-20250514"

    # Spreadsheet-backed catalog of record
    google_sheets_api_key: str = ""
    google_sheet_id: str = ""
    google_sheet_range: str = "master_catalog!A:I"
    google_sheets_base_url: str = "https://sheets.googleapis.com/v4"

    # Primary card-price API
    pokemon_tcg_api_key: str = ""
    pokemon_tcg_base_url: str = "https://api.pokemontcg.io/v2"

    # Secondary card-price API
    justtcg_api_key: str = ""
    justtcg_base_url: str = "https://api.justtcg.com/v1"
    justtcg_game: str = "pokemon"

    http_timeout_seconds: float = 15.0

    # Retry policy for outbound catalog calls
    retry_max_attempts: int = 5
    retry_initial_backoff_seconds: float = 1.0
    retry_max_jitter_seconds: float = 0.5

    # Caller-side timeout around a whole resolution
    resolution_timeout_seconds: float = 60.0


settings = Settings()


# =============================================================================
# RESOLUTION SAFETY LIMITS
# =============================================================================

# Hard cap on candidates returned by one resolution, whatever the caller asks for
MAX_RESOLUTION_RESULTS = 20

# Default number of candidates requested when the caller does not say
DEFAULT_RESOLUTION_LIMIT = 10

# Maximum per-card detail requests in flight during enrichment
MAX_ENRICHMENT_CONCURRENCY = 4
