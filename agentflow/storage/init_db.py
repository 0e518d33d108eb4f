# Copyright (c) 2026 AgentFlow Contributors. All Rights Reserved.

"""
Database Initialization — Create tables from ORM metadata.

Usage: python -m agentflow.storage.init_db
"""

import asyncio
import logging

from agentflow.core.config import settings
from agentflow.core.logging import setup_logging
from agentflow.storage.database import create_all_tables, close_db

# Ensure models are imported so Base.metadata knows about them
import agentflow.storage.models  # noqa: F401

logger = logging.getLogger("agentflow.init_db")


async def main():
    logger.info("Creating tables...")
    await create_all_tables()
    logger.info("Done.")
    await close_db()


if __name__ == "__main__":
    setup_logging(settings.LOG_LEVEL)
    asyncio.run(main())
