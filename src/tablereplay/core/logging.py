"""Structured logging for dataset replay.

Usage:
    from tablereplay.core.logging import get_logger, configure_logging

    # Configure at startup
    configure_logging(log_level="INFO", log_format="console")

    # Get logger in any module
    logger = get_logger(__name__)

    # Log with structured context
    logger.info("table_started", table="customers")

    # Scope context to a block
    with log_context(source="fixtures.xml"):
        logger.info("replay_started")

Replay metrics are collected per run when started explicitly:

    metrics = start_replay_metrics("fixtures.xml")
    ...  # produce / consume
    end_replay_metrics()
    metrics.to_dict()
"""

from __future__ import annotations

import logging
import sys
from collections.abc import MutableMapping
from contextvars import ContextVar
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any, cast

import structlog
from structlog.typing import FilteringBoundLogger

_run_context: ContextVar[dict[str, Any] | None] = ContextVar("run_context", default=None)


@dataclass
class ReplayMetrics:
    """Counters collected while a dataset is produced and consumed."""

    source: str
    start_time: datetime = field(default_factory=lambda: datetime.now(UTC))
    end_time: datetime | None = None

    tables_produced: int = 0
    rows_produced: int = 0
    tables_widened: int = 0
    extra_columns_dropped: int = 0

    timings: dict[str, float] = field(default_factory=dict)
    warnings: list[str] = field(default_factory=list)

    @property
    def duration_seconds(self) -> float:
        """Get duration in seconds."""
        if self.end_time:
            return (self.end_time - self.start_time).total_seconds()
        return (datetime.now(UTC) - self.start_time).total_seconds()

    def record_timing(self, operation: str, seconds: float) -> None:
        """Record timing for a sub-operation."""
        self.timings[operation] = self.timings.get(operation, 0.0) + seconds

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging/serialization."""
        return {
            "source": self.source,
            "duration_seconds": self.duration_seconds,
            "tables_produced": self.tables_produced,
            "rows_produced": self.rows_produced,
            "tables_widened": self.tables_widened,
            "extra_columns_dropped": self.extra_columns_dropped,
            "timings": self.timings,
            "warning_count": len(self.warnings),
        }


_current_metrics: ContextVar[ReplayMetrics | None] = ContextVar("current_metrics", default=None)


def start_replay_metrics(source: str) -> ReplayMetrics:
    """Start collecting metrics for a replay."""
    metrics = ReplayMetrics(source=source)
    _current_metrics.set(metrics)
    return metrics


def get_replay_metrics() -> ReplayMetrics | None:
    """Get current replay metrics."""
    return _current_metrics.get()


def end_replay_metrics() -> ReplayMetrics | None:
    """End replay metrics collection."""
    metrics = _current_metrics.get()
    if metrics:
        metrics.end_time = datetime.now(UTC)
        _current_metrics.set(None)
    return metrics


def _add_run_context(
    logger: Any, method_name: str, event_dict: MutableMapping[str, Any]
) -> MutableMapping[str, Any]:
    """Processor to add run context to log events."""
    context = _run_context.get()
    if context:
        event_dict.update(context)
    return event_dict


def _add_metrics_context(
    logger: Any, method_name: str, event_dict: MutableMapping[str, Any]
) -> MutableMapping[str, Any]:
    """Processor to add the active replay source."""
    metrics = _current_metrics.get()
    if metrics:
        event_dict["_replay"] = metrics.source
    return event_dict


def configure_logging(
    log_level: str = "INFO",
    log_format: str = "console",
    show_timestamps: bool = True,
    color: bool = True,
) -> None:
    """Configure structured logging for the application.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
        log_format: Output format ("console" for development, "json" for production)
        show_timestamps: Whether to show timestamps in console mode
        color: Whether to use colors in console mode
    """
    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        _add_run_context,
        _add_metrics_context,
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    if show_timestamps:
        shared_processors.insert(0, structlog.processors.TimeStamper(fmt="iso", utc=True))

    if log_format == "json":
        processors = shared_processors + [
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    else:
        processors = shared_processors + [
            structlog.dev.ConsoleRenderer(
                colors=color,
                exception_formatter=structlog.dev.plain_traceback,
            ),
        ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(getattr(logging, log_level.upper())),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=False,
    )

    # Also configure stdlib logging for libraries (SQLAlchemy, DuckDB)
    logging.basicConfig(
        format="%(message)s",
        level=getattr(logging, log_level.upper()),
        handlers=[logging.StreamHandler(sys.stderr)],
        force=True,
    )


def get_logger(name: str | None = None) -> FilteringBoundLogger:
    """Get a structured logger.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Bound structlog logger
    """
    return cast(FilteringBoundLogger, structlog.get_logger(name))


class LogContext:
    """Context manager for adding context to logs within a scope."""

    def __init__(self, **context: Any):
        self.context = context
        self.token: Any = None

    def __enter__(self) -> LogContext:
        current = _run_context.get() or {}
        self.token = _run_context.set({**current, **self.context})
        return self

    def __exit__(self, *args: Any) -> None:
        if self.token:
            _run_context.reset(self.token)


def log_context(**context: Any) -> LogContext:
    """Create a context manager for scoped logging context.

    Usage:
        with log_context(table="orders"):
            logger.info("processing")  # Will include table
    """
    return LogContext(**context)


def record_table_produced() -> None:
    """Increment the produced table counter."""
    metrics = _current_metrics.get()
    if metrics:
        metrics.tables_produced += 1


def record_rows_produced(count: int = 1) -> None:
    """Increment the produced row counter."""
    metrics = _current_metrics.get()
    if metrics:
        metrics.rows_produced += count


def record_table_widened() -> None:
    """Record a column-sensing widening of table metadata."""
    metrics = _current_metrics.get()
    if metrics:
        metrics.tables_widened += 1


def record_extra_columns_dropped(count: int, warning: str | None = None) -> None:
    """Record extra row values dropped because their columns were unknown."""
    metrics = _current_metrics.get()
    if metrics:
        metrics.extra_columns_dropped += count
        if warning:
            metrics.warnings.append(warning)


def record_operation_timing(operation: str, seconds: float) -> None:
    """Record timing for a sub-operation in current replay metrics."""
    metrics = _current_metrics.get()
    if metrics:
        metrics.record_timing(operation, seconds)


# Initialize with default configuration
configure_logging()
