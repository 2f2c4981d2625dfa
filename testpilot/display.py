"""Sinks notified with run results."""

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Protocol

from testpilot.models.result import TestRunResult

STATUS_SYMBOLS: Mapping[str, str] = {
    "pass": "✓",
    "fail": "✗",
    "error": "!",
    "skipped": "-",
}


class ResultDisplay(Protocol):
    """Fire-and-forget receiver of results and log entries."""

    def show_results(self, result: TestRunResult) -> None:
        """Render status transitions and the summary of a finished run."""

    def log(self, message: str) -> None:
        """Record a log entry such as a failed operation."""


@dataclass(frozen=True, kw_only=True)
class LoggingResultDisplay:
    """Display writing results to a logger."""

    logger: logging.Logger = field(
        default_factory=lambda: logging.getLogger("testpilot")
    )

    def show_results(self, result: TestRunResult) -> None:
        log = self.logger
        log.info("=" * 80)
        log.info("Test Results Summary:")
        log.info("=" * 80)

        for update in result.updates:
            function = update.test_function
            symbol = STATUS_SYMBOLS.get(update.status, "?")
            if function.time is not None:
                log.info(
                    "%s %s: %s (%.2fs)",
                    symbol,
                    function.name_to_run,
                    update.status,
                    function.time,
                )
            else:
                log.info("%s %s: %s", symbol, function.name_to_run, update.status)
            if function.message and update.status in ("fail", "error"):
                log.info("  Message: %s", function.message)

        for outcome in result.unattributed:
            log.info(
                "? %s.%s: %s (not discovered)",
                outcome.class_name,
                outcome.name,
                outcome.outcome,
            )

        summary = result.summary
        log.info(
            "passed=%d failures=%d errors=%d skipped=%d",
            summary.passed,
            summary.failures,
            summary.errors,
            summary.skipped,
        )

    def log(self, message: str) -> None:
        self.logger.info(message)
