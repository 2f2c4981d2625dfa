"""Models for test run results."""

from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from testpilot.models.records import RunOutcome
    from testpilot.models.tests import TestFunction, TestStatus


@dataclass(frozen=True, kw_only=True)
class TestResultSummary:
    """Outcome counts over one run."""

    __test__ = False

    passed: int = 0
    failures: int = 0
    errors: int = 0
    skipped: int = 0

    @property
    def total(self) -> int:
        return self.passed + self.failures + self.errors + self.skipped


@dataclass(frozen=True, kw_only=True)
class StatusUpdate:
    """Status transition of one function during a run."""

    test_function: "TestFunction"
    previous: "TestStatus"
    status: "TestStatus"


@dataclass(frozen=True, kw_only=True)
class TestRunResult:
    """Result of one run: aggregate counts and per-node transitions.

    Unattributed outcomes were reported by the framework but do not match any
    discovered test. They are still counted in the summary.
    """

    __test__ = False

    summary: TestResultSummary
    updates: Sequence[StatusUpdate] = field(default_factory=tuple)
    unattributed: Sequence["RunOutcome"] = field(default_factory=tuple)
    full_run: bool = False
    rerun_failed: bool = False

    @classmethod
    def empty(cls) -> "TestRunResult":
        """Result of a run that executed nothing."""
        return cls(summary=TestResultSummary())

    @property
    def failed_addresses(self) -> Sequence[str]:
        """Addresses of attributed tests that failed or errored in this run."""
        return tuple(
            update.test_function.name_to_run
            for update in self.updates
            if update.status in ("fail", "error")
        )
