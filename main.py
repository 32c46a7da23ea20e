"""
Digest preview for the economic calendar watch.

Fetches today's calendar once and prints the digest message without
sending it or touching any cache.
"""

import asyncio
import sys
from pathlib import Path

# Add project root to Python path
project_root = Path(__file__).parent
sys.path.insert(0, str(project_root))

from scheduler.scheduler_service import create_scheduler_service
from utilities.config import config
from utilities.logger import setup_logging, get_logger


async def main():
    """Fetch the calendar and print the digest."""
    setup_logging(
        log_level=config.log_level,
        log_format=config.log_format,
        log_file=config.get_log_file_path(),
        debug=config.debug
    )

    logger = get_logger(__name__)
    logger.info("Previewing calendar digest", url=config.calendar_url)

    scheduler_service = create_scheduler_service(config)
    result = await scheduler_service.run_digest(dry_run=True)

    if not result.success:
        logger.error("Digest preview failed", error=result.error)
        sys.exit(1)

    logger.info("Digest preview ready", entries=result.entries_seen)
    print(result.message)


if __name__ == "__main__":
    asyncio.run(main())
