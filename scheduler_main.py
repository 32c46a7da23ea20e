"""
Main entry point for the economic calendar watch scheduler.

Starts the daily digest and intraday poll jobs.
"""

import asyncio
import sys
from pathlib import Path

# Add project root to Python path
project_root = Path(__file__).parent
sys.path.insert(0, str(project_root))

import structlog
from utilities.logger import setup_logging
from utilities.config import config
from scheduler.scheduler_service import create_scheduler_service


async def main():
    """Main function to start the scheduler service."""
    try:
        # Setup logging
        setup_logging(
            log_level=config.log_level,
            log_format=config.log_format,
            log_file=config.log_file,
            debug=config.debug
        )

        logger = structlog.get_logger(__name__)
        logger.info("Starting economic calendar watch")

        scheduler_service = create_scheduler_service(config)
        scheduler_config = scheduler_service.config

        logger.info(
            "Scheduler service configured",
            timezone=scheduler_config.timezone,
            digest_hour=scheduler_config.digest_hour,
            digest_minute=scheduler_config.digest_minute,
            poll_hours=scheduler_config.poll_hours,
            segments=[segment.label for segment in scheduler_config.segments]
        )

        # Check command line arguments
        test_mode = False
        run_once = False

        if len(sys.argv) > 1:
            if sys.argv[1] == '--test':
                test_mode = True
                print("\n" + "="*60)
                print("🧪 TEST MODE ENABLED")
                print("="*60)
                print("✅ Poll: Every minute")
                print("✅ Digest: Every 10 minutes")
                print("="*60)
            elif sys.argv[1] == '--once':
                run_once = True
                print("\n" + "="*60)
                print("🔄 RUN ONCE MODE ENABLED")
                print("="*60)
                print("✅ Digest: Single run")
                print("✅ Poll: Single run")
                print("✅ Exit after completion")
                print("="*60)
            elif sys.argv[1] == '--dry-run':
                result = await scheduler_service.run_poll(dry_run=True)
                if not result.success:
                    print(f"❌ Poll failed: {result.error}")
                    sys.exit(1)
                print(result.message or "No new or changed values.")
                return
            else:
                print(f"Unknown argument: {sys.argv[1]}")
                print("Usage: python scheduler_main.py [--test|--once|--dry-run]")
                sys.exit(1)
        else:
            print("\n" + "="*60)
            print("🏭 DAEMON MODE ENABLED")
            print("="*60)
            print(f"✅ Digest: Daily at {scheduler_config.digest_hour:02d}:{scheduler_config.digest_minute:02d} {scheduler_config.timezone}")
            print(f"✅ Poll: Every {scheduler_config.poll_interval_minutes} min, {scheduler_config.poll_start_hour:02d}:00-{scheduler_config.poll_end_hour:02d}:59 {scheduler_config.timezone}")
            print("✅ Scheduler runs continuously as daemon")
            print("="*60)

        await scheduler_service.start(test_mode=test_mode, run_once=run_once)

    except KeyboardInterrupt:
        structlog.get_logger(__name__).info("Received keyboard interrupt, shutting down...")
    except Exception as e:
        structlog.get_logger(__name__).error("Failed to start scheduler service", error=str(e))
        sys.exit(1)


if __name__ == "__main__":
    asyncio.run(main())
