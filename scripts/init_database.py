#!/usr/bin/env python3
"""Initialize token sale database tables."""

import asyncio
import os
import sys

from loguru import logger

from tokensale.config.logging import setup_logging
from tokensale.database import create_engine, init_models


async def init_database() -> None:
    """Create all database tables."""
    database_url = os.environ.get("DATABASE_URL")
    if not database_url:
        logger.error("DATABASE_URL not set")
        sys.exit(1)

    logger.info("Connecting to database...")
    engine = create_engine(database_url)

    await init_models(engine)

    await engine.dispose()
    logger.success("Database tables created successfully!")


if __name__ == "__main__":
    setup_logging(os.environ.get("LOG_LEVEL", "INFO"), log_file=None)
    asyncio.run(init_database())
