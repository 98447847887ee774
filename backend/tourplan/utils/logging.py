"""Logging setup and structured logging for outbound calls."""

import logging
from typing import Any

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"


class StructuredFormatter(logging.Formatter):
    """Formatter that appends the ``structured`` extra as key=value pairs."""

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        structured = getattr(record, "structured", None)
        if structured:
            fields = " ".join(f"{key}={value}" for key, value in structured.items())
            line = f"{line} | {fields}"
        return line


def configure_logging(level: str = "INFO") -> None:
    """Install a single stream handler on the root logger.

    Safe to call more than once; an existing handler installed here is replaced.
    """
    root = logging.getLogger()
    for handler in list(root.handlers):
        if getattr(handler, "_tourplan", False):
            root.removeHandler(handler)

    handler = logging.StreamHandler()
    handler.setFormatter(StructuredFormatter(LOG_FORMAT))
    handler._tourplan = True  # type: ignore[attr-defined]
    root.addHandler(handler)
    root.setLevel(level.upper())


class StructuredUpstreamLogger:
    """Structured logger for outbound calls."""

    def __init__(self, service: str) -> None:
        self._service = service

    def log_call(
        self,
        operation: str,
        outcome: str,
        latency_ms: float,
        request_id: str | None = None,
        status_code: int | None = None,
        error_reason: str | None = None,
    ) -> None:
        """Log one outbound call with structured data."""
        log_data: dict[str, Any] = {
            "service": self._service,
            "operation": operation,
            "outcome": outcome,
            "latency_ms": round(latency_ms, 2),
        }

        if request_id:
            log_data["request_id"] = request_id
        if status_code is not None:
            log_data["status_code"] = status_code
        if error_reason:
            log_data["error_reason"] = error_reason

        log_msg = f"Upstream call: {self._service}.{operation} - {outcome}"

        if outcome == "success":
            logger.info(log_msg, extra={"structured": log_data})
        else:
            logger.warning(log_msg, extra={"structured": log_data})
