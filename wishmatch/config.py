import logging
from pathlib import Path
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment."""

    model_config = SettingsConfigDict(env_file=".env")

    app_name: str = "wishmatch"
    debug: bool = False
    log_level: str = "INFO"

    data_dir: Path = Path(__file__).parent.parent / "data"
    bulk_metadata_url: str = "https://api.scryfall.com/bulk-data/default_cards"

    # "local" resolves against the bulk index, "remote" delegates to another
    # wishmatch process over HTTP. Remote mode requires oracle_resolver_url.
    resolver_mode: Literal["local", "remote"] = "local"
    oracle_resolver_url: str = ""

    http_timeout_seconds: float = 30.0
    bulk_download_timeout_seconds: float = 300.0
    listing_cache_ttl_seconds: float = 300.0
    listing_cache_max_entries: int = 256

    # Serving
    host: str = "0.0.0.0"
    port: int = 4000
    allowed_origin: str = "*"
    warm_resolver_on_startup: bool = True

    user_agent: str = "Mozilla/5.0 (compatible; wishmatch/1.0)"


settings = Settings()


# =============================================================================
# PERSISTED STATE
# =============================================================================

CARD_DATA_FILENAME = "scryfall-default-cards.json"
CARD_META_FILENAME = "scryfall-default-cards.meta.json"

# Moxfield blocks direct API access, so deck JSON goes through the reader proxy
MOXFIELD_API_BASE = "https://api2.moxfield.com/v3/decks/all"
READER_PROXY_BASE = "https://r.jina.ai"


def configure_logging() -> None:
    """Configure root logging from settings."""
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
