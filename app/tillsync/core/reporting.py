from __future__ import annotations

import logging
from typing import Protocol

from app.tillsync.core.metrics import metrics

logger = logging.getLogger("tillsync.engine")


class ErrorReporter(Protocol):
    """Sink for unexpected failures raised inside engine callbacks.

    The engine never raises these to its caller; it hands them to the
    reporter and turns them into regular error strings in its result.
    """

    def report(self, context: str, error: Exception, details: dict | None = None) -> None: ...


class NullErrorReporter:
    def report(self, context: str, error: Exception, details: dict | None = None) -> None:
        return None


class LoggingErrorReporter:
    def __init__(self, log: logging.Logger | None = None):
        self._logger = log or logger

    def report(self, context: str, error: Exception, details: dict | None = None) -> None:
        self._logger.error(
            "Integrity engine failure",
            exc_info=(type(error), error, error.__traceback__),
            extra={"context": context, "details": details or {}},
        )
        metrics.increment_engine_error(context)


class CollectingErrorReporter:
    """Keeps reported failures in memory; used by the ops CLI summary and tests."""

    def __init__(self) -> None:
        self.reports: list[tuple[str, Exception, dict]] = []

    def report(self, context: str, error: Exception, details: dict | None = None) -> None:
        self.reports.append((context, error, dict(details or {})))
