"""
Main scheduler service for the economic calendar watch.

This module provides:
- Daily digest and intraday poll scheduling with APScheduler
- Tick orchestration (fetch, normalize, diff, format, send)
- Manual trigger entry points shared with the API
- Error isolation per tick
"""

import asyncio
import signal
import sys
from datetime import datetime
from typing import Callable, Dict, Optional

import structlog
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger
from apscheduler.events import EVENT_JOB_EXECUTED, EVENT_JOB_ERROR

from crawler.calendar_crawler import CalendarFetcher, ExtractionError, FetchError
from crawler.normalizer import EntryNormalizer
from scheduler.alerting import DiscordWebhookNotifier, LogNotifier, NotificationError, Notifier
from scheduler.change_detector import ChangeDetector
from scheduler.models import JobType, SchedulerConfig, Segment, TickResult
from scheduler.report_generator import NotificationFormatter
from scheduler.state_cache import StateCache
from utilities.config import CalendarWatchConfig
from utilities.logger import TickLogger

logger = structlog.get_logger(__name__)


class SchedulerService:
    """Dual-cadence scheduler driving the digest and poll jobs."""

    def __init__(
        self,
        config: SchedulerConfig,
        fetcher: CalendarFetcher,
        notifier: Notifier,
        cache: Optional[StateCache] = None,
        clock: Optional[Callable[[], datetime]] = None
    ):
        """
        Initialize scheduler service.

        Args:
            config: Scheduler configuration
            fetcher: Upstream calendar fetcher
            notifier: Destination sink for formatted messages
            cache: State cache shared by every tick (a fresh one by default)
            clock: Returns the current aware datetime; defaults to wall clock
        """
        self.config = config
        self.fetcher = fetcher
        self.notifier = notifier
        self.cache = cache if cache is not None else StateCache()
        self.clock = clock
        self.scheduler = AsyncIOScheduler(timezone=config.timezone)
        self.logger = logger.bind(component="scheduler_service")

        # Initialize components
        self.normalizer = EntryNormalizer(config.decimal_separator)
        self.change_detector = ChangeDetector(config.segments, config.poll_tracked_only)
        self.formatter = NotificationFormatter(config.timezone, config.source_timezone)

        # Setup scheduler event listeners
        self._setup_scheduler_listeners()

    def now(self) -> datetime:
        """Current time in the configured timezone."""
        if self.clock is not None:
            return self.clock().astimezone(self.config.tzinfo)
        return datetime.now(self.config.tzinfo)

    def _setup_signal_handlers(self) -> None:
        """Setup signal handlers for graceful shutdown."""
        def signal_handler(signum, frame):
            self.logger.info(f"Received signal {signum}, shutting down gracefully...")
            self.stop()
            sys.exit(0)

        signal.signal(signal.SIGINT, signal_handler)
        signal.signal(signal.SIGTERM, signal_handler)

    def _setup_scheduler_listeners(self) -> None:
        """Setup scheduler event listeners."""
        def job_executed_listener(event):
            retval = event.retval if isinstance(event.retval, dict) else {}
            self.logger.info(
                "Job executed",
                job_id=event.job_id,
                success=retval.get('success'),
                notifications=retval.get('notifications', 0),
                duration=retval.get('duration', 0)
            )

        def job_error_listener(event):
            self.logger.error(
                "Job execution failed",
                job_id=event.job_id,
                error=str(event.exception)
            )

        self.scheduler.add_listener(job_executed_listener, EVENT_JOB_EXECUTED)
        self.scheduler.add_listener(job_error_listener, EVENT_JOB_ERROR)

    async def start(self, test_mode: bool = False, run_once: bool = False) -> None:
        """Start the scheduler service and keep it running."""
        if run_once:
            self.logger.info("Starting scheduler service in RUN ONCE MODE")
            await self._run_once_mode()
            return

        self._setup_signal_handlers()

        if test_mode:
            self.logger.info("Starting scheduler service in TEST MODE")
            self._add_test_scheduled_jobs()
        else:
            self.logger.info("Starting scheduler service")
            self._add_scheduled_jobs()

        self.scheduler.start()
        self.logger.info(
            "Scheduler service started",
            timezone=self.config.timezone,
            digest_hour=self.config.digest_hour,
            digest_minute=self.config.digest_minute,
            poll_hours=self.config.poll_hours
        )

        # Keep the service running
        try:
            while True:
                await asyncio.sleep(1)
        except (KeyboardInterrupt, asyncio.CancelledError):
            self.logger.info("Shutting down scheduler service...")
            self.stop()

    async def start_background(self) -> None:
        """Add the production jobs and start the scheduler without blocking."""
        self._add_scheduled_jobs()
        self.scheduler.start()
        self.logger.info(
            "Scheduler service started in background",
            timezone=self.config.timezone,
            poll_hours=self.config.poll_hours
        )

    async def _run_once_mode(self) -> None:
        """Run one digest followed by one poll, then return."""
        digest = await self.run_digest()
        self.logger.info(
            "Run once digest finished",
            success=digest.success,
            entries_seen=digest.entries_seen,
            error=digest.error
        )

        poll = await self.run_poll()
        self.logger.info(
            "Run once poll finished",
            success=poll.success,
            notifications=poll.notifications,
            error=poll.error
        )

    def stop(self) -> None:
        """Stop the scheduler service."""
        self.logger.info("Stopping scheduler service")
        if self.scheduler.running:
            self.scheduler.shutdown(wait=False)
        self.logger.info("Scheduler service stopped")

    def _add_scheduled_jobs(self) -> None:
        """Add the digest and poll cron jobs."""
        self.scheduler.add_job(
            func=self._digest_job,
            trigger=CronTrigger(
                hour=self.config.digest_hour,
                minute=self.config.digest_minute,
                timezone=self.config.timezone
            ),
            id='daily_digest',
            name='Daily Calendar Digest',
            max_instances=1,
            coalesce=True,
            replace_existing=True
        )
        self.logger.info(
            "Added daily digest job",
            hour=self.config.digest_hour,
            minute=self.config.digest_minute,
            timezone=self.config.timezone
        )

        self.scheduler.add_job(
            func=self._poll_job,
            trigger=CronTrigger(
                minute=f"*/{self.config.poll_interval_minutes}",
                hour=self.config.poll_hours,
                timezone=self.config.timezone
            ),
            id='intraday_poll',
            name='Intraday Calendar Poll',
            max_instances=1,
            coalesce=True,
            replace_existing=True
        )
        self.logger.info(
            "Added intraday poll job",
            hours=self.config.poll_hours,
            interval_minutes=self.config.poll_interval_minutes,
            timezone=self.config.timezone
        )

    def _add_test_scheduled_jobs(self) -> None:
        """Add test jobs: poll every minute, digest every 10 minutes."""
        self.scheduler.add_job(
            func=self._poll_job,
            trigger='interval',
            minutes=1,
            id='test_poll',
            name='Test Calendar Poll (1min)',
            max_instances=1,
            replace_existing=True
        )
        self.scheduler.add_job(
            func=self._digest_job,
            trigger='interval',
            minutes=10,
            id='test_digest',
            name='Test Calendar Digest (10min)',
            max_instances=1,
            replace_existing=True
        )
        self.logger.info("Added test jobs (poll every minute, digest every 10 minutes)")

    async def _digest_job(self) -> Dict:
        """Scheduled digest job."""
        result = await self.run_digest()
        return result.dict()

    async def _poll_job(self) -> Dict:
        """Scheduled poll job."""
        result = await self.run_poll()
        return result.dict()

    def _new_result(self, job: JobType, dry_run: bool) -> TickResult:
        started_at = self.now()
        return TickResult(
            job_id=f"{job.value}_{started_at.strftime('%Y%m%d_%H%M%S')}",
            job=job,
            started_at=started_at,
            dry_run=dry_run
        )

    def _new_tick_logger(self, result: TickResult) -> TickLogger:
        tick_logger = TickLogger("scheduler_service").bind_context(job_id=result.job_id)
        tick_logger.log_tick_start(result.job.value, dry_run=result.dry_run)
        return tick_logger

    def _finish(self, result: TickResult, tick_logger: TickLogger) -> TickResult:
        result.duration = (self.now() - result.started_at).total_seconds()
        if result.success:
            tick_logger.log_tick_complete(
                result.job.value, result.entries_seen, result.notifications, result.duration
            )
        return result

    def _fail(self, result: TickResult, tick_logger: TickLogger, error: str, stage: str) -> TickResult:
        result.success = False
        result.error = error
        tick_logger.log_error(error, job=result.job.value, stage=stage)
        return self._finish(result, tick_logger)

    async def run_digest(self, dry_run: bool = False) -> TickResult:
        """
        Run the daily digest.

        Formats the full snapshot, then clears and reseeds the cache and
        sends the message. Fetch and extraction failures both fail the
        digest without touching the cache.

        Args:
            dry_run: Format only; no cache mutation and no delivery
        """
        result = self._new_result(JobType.DIGEST, dry_run)
        tick_logger = self._new_tick_logger(result)

        try:
            try:
                rows = await self.fetcher.fetch_rows()
            except FetchError as e:
                return self._fail(result, tick_logger, str(e), stage="fetch")
            except ExtractionError as e:
                return self._fail(result, tick_logger, str(e), stage="extract")

            entries = self.normalizer.normalize(rows)
            plan = self.change_detector.build_digest(entries)
            message = self.formatter.format_digest(plan, result.started_at)

            if not dry_run:
                self.cache.apply(plan.mutations)

            result.entries_seen = len(entries)
            result.message = message

            if not dry_run:
                await self._deliver(message, result, tick_logger)

            return self._finish(result, tick_logger)

        except Exception as e:
            self.logger.exception("Digest job crashed", job_id=result.job_id)
            return self._fail(result, tick_logger, str(e), stage="digest")

    async def run_poll(self, dry_run: bool = False) -> TickResult:
        """
        Run one intraday poll.

        The diff is computed and applied to the cache inside one critical
        section; the message is sent only when something changed. An empty
        or malformed document is a silent no-op.

        Args:
            dry_run: Compute and format only; the cache is never written
        """
        result = self._new_result(JobType.POLL, dry_run)
        tick_logger = self._new_tick_logger(result)

        try:
            try:
                rows = await self.fetcher.fetch_rows()
            except FetchError as e:
                return self._fail(result, tick_logger, str(e), stage="fetch")
            except ExtractionError as e:
                self.logger.warning("No calendar rows extracted, skipping poll", error=str(e))
                rows = []

            entries = self.normalizer.normalize(rows)

            with self.cache.locked():
                diff = self.change_detector.detect_changes(entries, self.cache)
                if not dry_run:
                    self.cache.apply(diff.mutations)

            result.entries_seen = len(entries)
            result.notifications = len(diff.notifications)

            if not diff.has_changes:
                return self._finish(result, tick_logger)

            message = self.formatter.format_diff(diff.notifications, result.started_at)
            result.message = message

            if not dry_run:
                await self._deliver(message, result, tick_logger)

            return self._finish(result, tick_logger)

        except Exception as e:
            self.logger.exception("Poll job crashed", job_id=result.job_id)
            return self._fail(result, tick_logger, str(e), stage="poll")

    async def _deliver(self, message: str, result: TickResult, tick_logger: TickLogger) -> None:
        """Send a message once; failures are reported, never retried."""
        try:
            await self.notifier.send(message)
            result.message_sent = True
            tick_logger.log_delivery(result.job.value, True, len(message))
        except NotificationError as e:
            result.success = False
            result.error = str(e)
            tick_logger.log_delivery(result.job.value, False, len(message))

    async def get_scheduler_status(self) -> Dict:
        """Get current scheduler status."""
        jobs = []
        for job in self.scheduler.get_jobs():
            next_run_time = getattr(job, 'next_run_time', None)
            jobs.append({
                'id': job.id,
                'name': job.name,
                'next_run_time': next_run_time.isoformat() if next_run_time else None,
                'trigger': str(job.trigger)
            })

        return {
            'running': self.scheduler.running,
            'timezone': self.config.timezone,
            'poll_hours': self.config.poll_hours,
            'jobs': jobs,
            'job_count': len(jobs),
            'cache_size': len(self.cache)
        }


def create_scheduler_service(settings: CalendarWatchConfig) -> SchedulerService:
    """Build a scheduler service from environment settings."""
    scheduler_config = SchedulerConfig(
        timezone=settings.timezone,
        source_timezone=settings.source_timezone,
        digest_hour=settings.digest_hour,
        digest_minute=settings.digest_minute,
        poll_start_hour=settings.poll_start_hour,
        poll_end_hour=settings.poll_end_hour,
        poll_interval_minutes=settings.poll_interval_minutes,
        segments=[
            Segment(currency_code=currency, country_name=country)
            for currency, country in settings.get_tracked_segments()
        ],
        poll_tracked_only=settings.poll_tracked_only,
        request_timeout=settings.request_timeout,
        decimal_separator=settings.decimal_separator
    )

    fetcher = CalendarFetcher(
        url=settings.calendar_url,
        timeout=settings.request_timeout,
        headers=settings.get_headers()
    )

    if settings.discord_webhook_url:
        notifier = DiscordWebhookNotifier(settings.discord_webhook_url, timeout=settings.request_timeout)
    else:
        logger.warning("DISCORD_WEBHOOK_URL not set, notifications go to the log only")
        notifier = LogNotifier()

    return SchedulerService(scheduler_config, fetcher, notifier)
