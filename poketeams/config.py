from datetime import timedelta

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment."""

    model_config = SettingsConfigDict(env_file=".env")

    app_name: str = "PokeTeams"
    debug: bool = False

    database_url: str = "postgresql+asyncpg://localhost:5432/poketeams"

    jwt_secret: str = "poketeams-development-secret-change-me"
    jwt_algorithm: str = "HS256"
    jwt_expires_minutes: int = 24 * 60

    bcrypt_rounds: int = 10

    pokeapi_base_url: str = "https://pokeapi.co/api/v2/"
    # Number of catalog entries pulled into the rarity cache on refresh
    pokeapi_item_limit: int = 151
    catalog_timeout_seconds: float = 10.0
    catalog_max_concurrency: int = 20

    # Welcome e-mail is skipped entirely when smtp_host is empty
    smtp_host: str = ""
    smtp_port: int = 587
    smtp_user: str = ""
    smtp_password: str = ""
    smtp_use_tls: bool = True
    email_from: str = "PokeTeams <no-reply@poketeams.local>"


settings = Settings()


# =============================================================================
# RARITY CACHE
# =============================================================================

# Snapshots older than this are rebuilt from the catalog on next access
RARITY_CACHE_TTL = timedelta(hours=24)


# =============================================================================
# PRICING
# =============================================================================

BASE_PRICE = 50
WEIGHT_HEIGHT_DIVISOR = 10
TYPE_BONUS_MULTIPLIER = 10
MINIMUM_PRICE = 10

# Informational only, there is no wallet to debit
MYSTERY_BOX_PRICE = 100


# =============================================================================
# TEAMS
# =============================================================================

MAX_TEAM_SIZE = 6
MIN_MEMBERS_PER_REQUEST = 1
MAX_MEMBERS_PER_REQUEST = 6
TEAM_NAME_MIN_LENGTH = 3
TEAM_NAME_MAX_LENGTH = 30


# =============================================================================
# PAGINATION
# =============================================================================

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 10
