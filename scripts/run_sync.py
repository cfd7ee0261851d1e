#!/usr/bin/env python3
"""
Cron job script to run a scheduled catalog sync.
Add to crontab: 0 1 * * * cd /path/to/app && /path/to/venv/bin/python scripts/run_sync.py

This runs the sync as a standalone script, not through the web server.
"""

import asyncio
import logging
import sys
import os

# Add parent directory to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from catalog_sync.config import settings
from catalog_sync.processor import SyncAction, run_sync

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)

logger = logging.getLogger(__name__)


async def main():
    logger.info("Starting scheduled sync...")

    result = await run_sync(settings)

    if not result.success:
        logger.error(f"Sync failed: {result.error}")
        sys.exit(1)

    summary = result.summary
    if summary.failed > 0:
        for outcome in summary.outcomes:
            if outcome.action == SyncAction.FAILED:
                logger.error(f"  {outcome.code}: {outcome.reason}")
        sys.exit(1)


if __name__ == "__main__":
    asyncio.run(main())
