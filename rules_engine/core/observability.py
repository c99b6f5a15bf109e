"""
Observability module for the rules engine.

Provides:
- Structured logging with JSON format
- Rule context (rule_id) propagated to every log line of an evaluation
- Prometheus metrics for validation and evaluation
- The default error-report sink used by the engine

Usage:
    from rules_engine.core.observability import (
        configure_logging,
        metrics,
        report_error,
    )
"""

import json
import logging
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import UTC, datetime
from typing import Any

from prometheus_client import CollectorRegistry, Counter, Histogram

from rules_engine.core.config import Settings, get_settings

logger = logging.getLogger(__name__)

# ============================================================================
# Context Variables
# ============================================================================

# Identifier of the rule currently being validated or evaluated
_rule_id_ctx: ContextVar[str] = ContextVar("rule_id", default="")


def get_rule_id() -> str:
    """Get the current rule ID from context."""
    return _rule_id_ctx.get()


@contextmanager
def rule_context(rule_id: str | None) -> Iterator[None]:
    """Bind ``rule_id`` to log records emitted inside the block."""
    token = _rule_id_ctx.set(rule_id or "")
    try:
        yield
    finally:
        _rule_id_ctx.reset(token)


# ============================================================================
# Structured Logging Configuration
# ============================================================================

_RESERVED_RECORD_KEYS = frozenset(
    {
        "name",
        "msg",
        "args",
        "levelname",
        "levelno",
        "pathname",
        "filename",
        "module",
        "lineno",
        "funcName",
        "created",
        "msecs",
        "relativeCreated",
        "thread",
        "threadName",
        "processName",
        "process",
        "taskName",
        "getMessage",
        "exc_info",
        "exc_text",
        "stack_info",
    }
)


class StructuredFormatter(logging.Formatter):
    """
    JSON formatter for structured logging.

    Outputs logs as JSON with standard fields:
    - timestamp: ISO 8601 format
    - level: Log level
    - logger: Logger name
    - message: Log message
    - rule_id: Rule under evaluation (if available)
    - exception: Exception type and message (if present)
    - extra: Any additional context from logging.extra
    """

    def format(self, record: logging.LogRecord) -> str:
        log_entry: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        rule_id = get_rule_id()
        if rule_id:
            log_entry["rule_id"] = rule_id

        if record.exc_info:
            log_entry["exception"] = {
                "type": record.exc_info[0].__name__ if record.exc_info[0] else None,
                "message": str(record.exc_info[1]) if record.exc_info[1] else None,
            }

        log_entry["function"] = record.funcName
        log_entry["line"] = record.lineno

        extra_keys = {
            k: v for k, v in record.__dict__.items() if k not in _RESERVED_RECORD_KEYS
        }
        if extra_keys:
            log_entry["extra"] = extra_keys

        return json.dumps(log_entry, default=str)


def configure_structured_logging(level: str = "INFO", structured: bool = True) -> None:
    """
    Configure root logger.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        structured: Emit JSON lines when True, plain text otherwise
    """
    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.setLevel(getattr(logging, level.upper(), logging.INFO))

    handler = logging.StreamHandler()
    if structured:
        handler.setFormatter(StructuredFormatter())
    else:
        handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s %(message)s"))

    root_logger.addHandler(handler)


def configure_logging(settings: Settings | None = None) -> None:
    """Configure root logging from ``log_level`` and ``structured_logs`` settings."""
    settings = settings or get_settings()
    configure_structured_logging(settings.log_level, settings.structured_logs)


def report_error(message: str, context: dict[str, Any] | None = None) -> None:
    """
    Default error sink: log at ERROR level with the context attached.

    The engine calls this for failures it surfaces through a side channel,
    such as an invalid rule handed to evaluate().
    """
    logger.error(message, extra={"context": context or {}})


# ============================================================================
# Prometheus Metrics
# ============================================================================

# Use a custom registry to avoid conflicts with other Prometheus metrics
_registry = CollectorRegistry()


class Metrics:
    """
    Centralized metrics collection for the engine.

    Metrics groups:
    - Validation: outcome counts
    - Evaluation: outcome counts and duration
    """

    def __init__(self, registry: CollectorRegistry) -> None:
        self.registry = registry

        self.validations_total = Counter(
            "rules_engine_validations_total",
            "Total rule validations",
            ["status"],
            registry=self.registry,
        )

        self.evaluations_total = Counter(
            "rules_engine_evaluations_total",
            "Total rule evaluations",
            ["outcome"],
            registry=self.registry,
        )

        self.evaluation_duration_seconds = Histogram(
            "rules_engine_evaluation_duration_seconds",
            "Rule evaluation duration in seconds",
            buckets=(0.0001, 0.0005, 0.001, 0.005, 0.01, 0.05, 0.1, 0.5, 1.0),
            registry=self.registry,
        )

    def record_validation(self, is_valid: bool) -> None:
        self.validations_total.labels(status="valid" if is_valid else "invalid").inc()

    def record_evaluation(self, outcome: str, duration: float) -> None:
        self.evaluations_total.labels(outcome=outcome).inc()
        self.evaluation_duration_seconds.observe(duration)


# Global metrics instance
metrics = Metrics(_registry)
