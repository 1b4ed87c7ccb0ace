from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment."""

    model_config = SettingsConfigDict(env_file=".env")

    app_name: str = "CardDex"
    debug: bool = False

    database_url: str = "postgresql+asyncpg://localhost:5432/carddex"

    # Sent with every outbound catalog request
    user_agent: str = "CardDex/1.0 (https://kidcollect.app)"
    http_timeout: float = 30.0

    # Optional for pokemontcg.io (raises the daily quota), required by apitcg.com
    pokemon_tcg_api_key: str = ""
    dragonball_api_key: str = ""


settings = Settings()


# =============================================================================
# PRINT STATUS DEFAULTS
# =============================================================================

# Sets older than this are no longer sold at retail
DEFAULT_OUT_OF_PRINT_MONTHS = 24

# Sets older than this are treated as collector-only
DEFAULT_VINTAGE_MONTHS = 60
