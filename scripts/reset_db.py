# scripts/reset_db.py

import asyncio
import os
import sys

from loguru import logger

# Ensure project root (the folder containing 'gstfiling') is on sys.path
CURRENT_DIR = os.path.dirname(os.path.abspath(__file__))
PROJECT_ROOT = os.path.dirname(CURRENT_DIR)
if PROJECT_ROOT not in sys.path:
    sys.path.append(PROJECT_ROOT)

from gstfiling.core.db import engine  # noqa: E402
from gstfiling.core.logging_config import setup_logging  # noqa: E402
from gstfiling.infrastructure.db import models  # noqa: E402,F401
from gstfiling.infrastructure.db.base import Base  # noqa: E402


async def reset_db():
    logger.info("Resetting GST filing schema (drop_all + create_all)...")

    async with engine.begin() as conn:
        logger.info("Dropping all tables...")
        await conn.run_sync(Base.metadata.drop_all)

        logger.info("Creating all tables from current models...")
        await conn.run_sync(Base.metadata.create_all)

    await engine.dispose()
    logger.success("DB reset complete: businesses, invoices, purchases and gst_returns recreated.")


if __name__ == "__main__":
    setup_logging()
    asyncio.run(reset_db())
