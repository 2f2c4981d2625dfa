"""Apply parsed run outcomes to the test model."""

import logging
from collections.abc import Iterable, Sequence

from testpilot.models.records import RunOutcome
from testpilot.models.result import StatusUpdate, TestResultSummary, TestRunResult
from testpilot.models.tests import FlattenedTestFunction, Tests

log = logging.getLogger(__name__)


def apply_outcomes(
    outcomes: Iterable[RunOutcome],
    tests: Tests,
    *,
    addresses: Sequence[str] | None,
    rerun_failed: bool = False,
) -> TestRunResult:
    """Join outcomes against the model and update function status.

    Args:
        outcomes: Outcomes reported by the framework for this run
        tests: Model the run was resolved against
        addresses: Addresses that were run, None for a full run
        rerun_failed: Whether this run re-executed cached failures

    Returns:
        The run result. The summary counts every outcome, attributed or not.

    """
    full_run = addresses is None
    in_scope = None if full_run else frozenset(addresses)

    passed = failures = errors = skipped = 0
    unattributed: list[RunOutcome] = []
    updates: dict[str, StatusUpdate] = {}

    for outcome in outcomes:
        entry = _find_function(tests, outcome)
        if (
            entry is not None
            and in_scope is not None
            and rerun_failed
            and entry.test_function.name_to_run not in in_scope
        ):
            log.debug("Ignoring %s outside of the rerun set", outcome.name)
            continue

        match outcome.outcome:
            case "pass":
                passed += 1
            case "fail":
                failures += 1
            case "error":
                errors += 1
            case "skipped":
                skipped += 1

        if entry is None:
            log.info("Unattributed result %s.%s", outcome.class_name, outcome.name)
            unattributed.append(outcome)
            continue

        function = entry.test_function
        key = function.name_to_run
        previous = updates[key].previous if key in updates else function.status
        function.status = outcome.outcome
        function.time = outcome.duration
        function.message = outcome.message
        updates[key] = StatusUpdate(
            test_function=function, previous=previous, status=outcome.outcome
        )

    if full_run:
        for entry in tests.test_functions:
            function = entry.test_function
            if function.name_to_run in updates:
                continue
            previous = function.status
            function.status = "skipped"
            function.time = None
            function.message = None
            updates[function.name_to_run] = StatusUpdate(
                test_function=function, previous=previous, status="skipped"
            )

    tests.refresh_status()

    return TestRunResult(
        summary=TestResultSummary(
            passed=passed, failures=failures, errors=errors, skipped=skipped
        ),
        updates=tuple(updates.values()),
        unattributed=tuple(unattributed),
        full_run=full_run,
        rerun_failed=rerun_failed,
    )


def _find_function(tests: Tests, outcome: RunOutcome) -> FlattenedTestFunction | None:
    if outcome.class_name is not None:
        return tests.functions_by_xml_name.get((outcome.class_name, outcome.name))
    return tests.functions_by_address.get(outcome.name)
