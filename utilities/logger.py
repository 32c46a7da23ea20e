"""
Comprehensive logging system using structlog.
Provides structured logging with different output formats and levels.
"""

import logging
import sys
from pathlib import Path
from typing import Optional
import structlog
from structlog.stdlib import LoggerFactory


def setup_logging(
    log_level: str = "INFO",
    log_format: str = "json",
    log_file: Optional[str] = None,
    debug: bool = False
) -> None:
    """
    Set up structured logging with configurable output formats.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_format: Output format (json or console)
        log_file: Optional log file path
        debug: Enable debug mode for more verbose logging
    """

    # Configure standard library logging
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, log_level.upper()),
    )

    # Configure structlog processors
    processors = [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]

    if debug:
        processors.append(structlog.processors.CallsiteParameterAdder())

    # Add format-specific processors
    if log_format == "json":
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=True))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=LoggerFactory(),
        context_class=dict,
        cache_logger_on_first_use=True,
    )

    # Set up file logging if specified
    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.FileHandler(log_path)
        file_handler.setLevel(getattr(logging, log_level.upper()))
        file_handler.setFormatter(logging.Formatter('%(message)s'))

        logging.getLogger().addHandler(file_handler)

    logger = structlog.get_logger(__name__)
    logger.info(
        "Logging system initialized",
        level=log_level,
        format=log_format,
        file=str(log_file) if log_file else None,
        debug=debug
    )


def get_logger(name: str) -> structlog.BoundLogger:
    """
    Get a structured logger instance.

    Args:
        name: Logger name (usually __name__)

    Returns:
        Configured structlog logger
    """
    return structlog.get_logger(name)


class TickLogger:
    """
    Specialized logger for scheduler ticks with context management.
    """

    def __init__(self, name: str = "calendar_watch"):
        self.logger = structlog.get_logger(name)
        self.context = {}

    def bind_context(self, **kwargs) -> 'TickLogger':
        """
        Bind context variables to the logger.

        Args:
            **kwargs: Context variables to bind

        Returns:
            Self for method chaining
        """
        self.context.update(kwargs)
        return self

    def log_tick_start(self, job: str, dry_run: bool = False) -> None:
        """Log tick start."""
        self.logger.info(
            "Tick started",
            job=job,
            dry_run=dry_run,
            **self.context
        )

    def log_tick_complete(self, job: str, entries_seen: int, notifications: int, duration_seconds: float) -> None:
        """Log tick completion."""
        self.logger.info(
            "Tick completed",
            job=job,
            entries_seen=entries_seen,
            notifications=notifications,
            duration_seconds=round(duration_seconds, 3),
            **self.context
        )

    def log_fetch(self, url: str, rows: int, success: bool = True) -> None:
        """Log upstream fetch."""
        level = "debug" if success else "warning"
        getattr(self.logger, level)(
            "Calendar fetched",
            url=url,
            rows=rows,
            success=success,
            **self.context
        )

    def log_error(self, error: str, job: Optional[str] = None, stage: Optional[str] = None) -> None:
        """Log error with context."""
        self.logger.error(
            "Tick error occurred",
            error=error,
            job=job,
            stage=stage,
            **self.context
        )

    def log_delivery(self, job: str, success: bool, length: Optional[int] = None) -> None:
        """Log notification delivery."""
        level = "info" if success else "error"
        getattr(self.logger, level)(
            "Notification delivery",
            job=job,
            success=success,
            length=length,
            **self.context
        )
