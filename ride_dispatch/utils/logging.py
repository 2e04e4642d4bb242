"""Structured logging configuration."""

import logging
import sys
from typing import Any

import structlog
from pythonjsonlogger import jsonlogger

from ride_dispatch.config import get_settings


def setup_logging() -> None:
    """Configure structured logging for the application."""
    settings = get_settings()

    log_level = getattr(logging, settings.log_level)

    handler = logging.StreamHandler(sys.stdout)
    if settings.log_format == "json":
        formatter: logging.Formatter = jsonlogger.JsonFormatter(
            fmt="%(timestamp)s %(level)s %(name)s %(message)s",
            rename_fields={"levelname": "level", "asctime": "timestamp"},
        )
    else:
        formatter = logging.Formatter(
            fmt="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.handlers.clear()
    root_logger.addHandler(handler)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.dev.set_exc_info,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.JSONRenderer() if settings.log_format == "json"
            else structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> structlog.BoundLogger:
    """Get a structured logger instance."""
    return structlog.get_logger(name)


class RideEventLogger:
    """Logger for ride lifecycle transitions."""

    def __init__(self, component: str):
        self.component = component
        self.logger = get_logger(component)

    def log_transition(
        self,
        action: str,
        driver_id: str | None = None,
        booking_id: str | None = None,
        duration_ms: float | None = None,
        **kwargs: Any,
    ) -> None:
        """Log a committed driver/booking transition."""
        log_data: dict[str, Any] = {
            "component": self.component,
            "action": action,
            "driver_id": driver_id,
            "booking_id": booking_id,
        }

        if duration_ms is not None:
            log_data["duration_ms"] = duration_ms

        log_data.update(kwargs)
        self.logger.info("ride_transition", **log_data)

    def log_rejection(
        self,
        action: str,
        reason: str,
        driver_id: str | None = None,
        booking_id: str | None = None,
        **kwargs: Any,
    ) -> None:
        """Log a transition refused by a precondition."""
        self.logger.info(
            "ride_transition_rejected",
            component=self.component,
            action=action,
            reason=reason,
            driver_id=driver_id,
            booking_id=booking_id,
            **kwargs,
        )

    def log_error(
        self,
        error: str,
        driver_id: str | None = None,
        booking_id: str | None = None,
        **kwargs: Any,
    ) -> None:
        """Log a failed transition."""
        self.logger.error(
            "ride_transition_error",
            component=self.component,
            driver_id=driver_id,
            booking_id=booking_id,
            error=error,
            **kwargs,
        )
