"""
Structured logging for the vesting trustee.

Provides correlation IDs, context propagation, and JSON output for production.
Every facade command is logged through LogOperation, so a single correlation
id ties together the command, the ledger transfers it caused and the events
it appended.
"""

import contextvars
import logging
import os
import secrets
import sys
import time
from typing import Any

import structlog

correlation_id_var: contextvars.ContextVar[str] = contextvars.ContextVar(
    "correlation_id", default=""
)


def generate_correlation_id() -> str:
    """Generate a new 22-character URL-safe correlation ID (128 bits)."""
    return secrets.token_urlsafe(16)


def get_correlation_id() -> str:
    """Get the current correlation ID, or generate a new one if not set."""
    cid = correlation_id_var.get()
    if not cid:
        cid = generate_correlation_id()
        correlation_id_var.set(cid)
    return cid


def set_correlation_id(correlation_id: str) -> None:
    """Set the correlation ID for the current context."""
    correlation_id_var.set(correlation_id)


def add_correlation_id(
    logger: logging.Logger, method_name: str, event_dict: dict[str, Any]
) -> dict[str, Any]:
    """Add correlation ID to log event."""
    event_dict["correlation_id"] = get_correlation_id()
    return event_dict


def configure_logging(
    *,
    json_output: bool = False,
    log_level: str = "INFO",
) -> None:
    """
    Configure structured logging for the application.

    Args:
        json_output: If True, output JSON logs (for production).
                    If False, output human-readable console logs (for development).
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """
    level = getattr(logging, log_level.upper())

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stderr,
        level=level,
    )

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        add_correlation_id,
    ]

    if json_output:
        processors = shared_processors + [
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    else:
        processors = shared_processors + [
            structlog.processors.ExceptionRenderer(),
            structlog.dev.ConsoleRenderer(colors=True),
        ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def configure_from_environment() -> None:
    """
    Configure logging from ENVIRONMENT and TRUSTEE_LOG_LEVEL.

    Production gets JSON output; everything else gets the console renderer.
    """
    configure_logging(
        json_output=is_production(),
        log_level=os.getenv("TRUSTEE_LOG_LEVEL", "WARNING"),
    )


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """
    Get a structured logger for the given module.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Structured logger instance
    """
    return structlog.get_logger(name)


def is_production() -> bool:
    """
    Determine if running in production environment.

    Checks the ENVIRONMENT variable; anything but 'production' is development.
    """
    return os.getenv("ENVIRONMENT", "development").lower() == "production"


# Identities and amounts stay out of operation logs
REDACTED_FIELDS = {
    "actor_id",
    "caller",
    "holder",
    "beneficiary",
    "admin",
    "value",
    "amount",
    "refund",
    "units",
}


def redact_context(context: dict[str, Any]) -> dict[str, Any]:
    """
    Redact sensitive fields from log context.

    Example:
        >>> redact_context({"holder": "alice", "operation": "unlock"})
        {"holder": "***REDACTED***", "operation": "unlock"}
    """
    return {
        k: "***REDACTED***" if k in REDACTED_FIELDS else v
        for k, v in context.items()
    }


class LogOperation:
    """
    Context manager for logging operations with automatic timing.

    The outermost operation in a context opens a fresh correlation id and
    clears it again on exit; nested operations share the outer id.
    """

    def __init__(
        self,
        logger: structlog.stdlib.BoundLogger,
        operation: str,
        **context: Any,
    ):
        """
        Initialize operation logger.

        Args:
            logger: Structured logger instance
            operation: Operation name (e.g., "create_grant", "revoke_grant")
            **context: Additional context to include in logs
        """
        self.logger = logger
        self.operation = operation
        self.context = context
        self.start_time: float = 0.0
        self._correlation_token: contextvars.Token[str] | None = None

    def __enter__(self) -> "LogOperation":
        if not correlation_id_var.get():
            self._correlation_token = correlation_id_var.set(generate_correlation_id())
        self.start_time = time.perf_counter()
        self.logger.info(
            f"{self.operation} started",
            operation=self.operation,
            **redact_context(self.context),
        )
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: Any,
    ) -> None:
        fields = {
            "operation": self.operation,
            "duration_ms": round((time.perf_counter() - self.start_time) * 1000, 2),
            **redact_context(self.context),
        }

        if exc_type is None:
            self.logger.info(f"{self.operation} completed", **fields)
        else:
            # Stack traces only in development
            self.logger.error(
                f"{self.operation} failed",
                error=type(exc_val).__name__,
                exc_info=not is_production(),
                **fields,
            )

        if self._correlation_token is not None:
            correlation_id_var.reset(self._correlation_token)
            self._correlation_token = None
