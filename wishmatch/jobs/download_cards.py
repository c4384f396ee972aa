"""
Refresh the Scryfall reference dataset.

Run this before starting a local-mode resolver so the first request does
not wait for the bulk download:

    python -m wishmatch.jobs.download_cards
"""

import asyncio
import logging

from wishmatch.config import configure_logging
from wishmatch.services.card_database import ensure_card_database

logger = logging.getLogger(__name__)


async def run_download() -> None:
    """Download the bulk dataset if Scryfall has a newer one."""
    logger.info("Checking Scryfall card database...")

    try:
        path = await ensure_card_database()
        logger.info("Card database ready at %s", path)
    except Exception as e:
        logger.error("Failed to refresh card database: %s", e)
        raise


def main() -> None:
    """CLI entry point."""
    configure_logging()
    asyncio.run(run_download())


if __name__ == "__main__":
    main()
