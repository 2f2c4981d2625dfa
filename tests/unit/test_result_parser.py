"""Tests for applying run outcomes to the model."""

from pathlib import Path

import pytest

from testpilot.model_builder import build_tests
from testpilot.models.result import TestResultSummary
from testpilot.models.tests import Tests
from testpilot.result_parser import apply_outcomes
from testpilot.testing.factories import DiscoveryRecordFactory, RunOutcomeFactory

ONE = "test_a.py:TestA.test_one"
TWO = "test_a.py:TestA.test_two"
THREE = "test_a.py:TestB.test_three"


@pytest.fixture
def tests() -> Tests:
    """Three tests in two suites of one file."""
    return build_tests(
        [
            DiscoveryRecordFactory.method("test_a.py", ("TestA",), "test_one"),
            DiscoveryRecordFactory.method("test_a.py", ("TestA",), "test_two"),
            DiscoveryRecordFactory.method("test_a.py", ("TestB",), "test_three"),
        ],
        Path("/work/project"),
    )


def status(tests: Tests, address: str) -> str:
    return tests.functions_by_address[address].test_function.status


def test_applies_outcomes_by_class_and_name(tests: Tests) -> None:
    """Outcomes join on the xml class name and function name."""
    result = apply_outcomes(
        [
            RunOutcomeFactory.build(
                class_name="test_a.TestA", name="test_one", outcome="pass", duration=0.5
            ),
            RunOutcomeFactory.build(
                class_name="test_a.TestA",
                name="test_two",
                outcome="fail",
                message="assert 1 == 2",
            ),
        ],
        tests,
        addresses=[ONE, TWO],
    )

    assert result.summary == TestResultSummary(passed=1, failures=1)
    one = tests.functions_by_address[ONE].test_function
    assert one.status == "pass"
    assert one.time == 0.5
    two = tests.functions_by_address[TWO].test_function
    assert two.message == "assert 1 == 2"
    assert status(tests, THREE) == "idle"
    assert [update.test_function.name_to_run for update in result.updates] == [ONE, TWO]
    assert result.failed_addresses == (TWO,)
    assert not result.full_run


def test_updates_record_previous_status(tests: Tests) -> None:
    """Each update carries the status before the run."""
    outcome = RunOutcomeFactory.build(
        class_name="test_a.TestA", name="test_one", outcome="fail"
    )
    apply_outcomes([outcome], tests, addresses=[ONE])

    result = apply_outcomes(
        [
            RunOutcomeFactory.build(
                class_name="test_a.TestA", name="test_one", outcome="pass"
            )
        ],
        tests,
        addresses=[ONE],
    )

    (update,) = result.updates
    assert update.previous == "fail"
    assert update.status == "pass"


def test_unattributed_outcomes_are_counted(tests: Tests) -> None:
    """Outcomes matching nothing are kept aside but still counted."""
    stray = RunOutcomeFactory.build(
        class_name="other.Test", name="test_x", outcome="error"
    )

    result = apply_outcomes([stray], tests, addresses=[ONE])

    assert result.summary == TestResultSummary(errors=1)
    assert result.unattributed == (stray,)
    assert result.updates == ()
    assert result.failed_addresses == ()


def test_outcome_without_class_matches_address(tests: Tests) -> None:
    """An outcome without a class name falls back to the function address."""
    result = apply_outcomes(
        [RunOutcomeFactory.build(class_name=None, name=THREE, outcome="skipped")],
        tests,
        addresses=[THREE],
    )

    assert result.summary == TestResultSummary(skipped=1)
    assert status(tests, THREE) == "skipped"


def test_full_run_skips_uncovered_functions(tests: Tests) -> None:
    """A full run marks functions without an outcome as skipped."""
    result = apply_outcomes(
        [
            RunOutcomeFactory.build(
                class_name="test_a.TestA", name="test_one", outcome="pass"
            )
        ],
        tests,
        addresses=None,
    )

    assert result.full_run
    assert result.summary == TestResultSummary(passed=1)
    assert status(tests, TWO) == "skipped"
    assert status(tests, THREE) == "skipped"
    assert len(result.updates) == 3


def test_rerun_ignores_outcomes_outside_rerun_set(tests: Tests) -> None:
    """Only the re-run functions change and count."""
    result = apply_outcomes(
        [
            RunOutcomeFactory.build(
                class_name="test_a.TestA", name="test_one", outcome="pass"
            ),
            RunOutcomeFactory.build(
                class_name="test_a.TestA", name="test_two", outcome="fail"
            ),
        ],
        tests,
        addresses=[TWO],
        rerun_failed=True,
    )

    assert result.rerun_failed
    assert result.summary == TestResultSummary(failures=1)
    assert status(tests, ONE) == "idle"
    assert status(tests, TWO) == "fail"


def test_recomputes_suite_and_file_status(tests: Tests) -> None:
    """Suites and files take the worst status of their children."""
    apply_outcomes(
        [
            RunOutcomeFactory.build(
                class_name="test_a.TestA", name="test_one", outcome="pass"
            ),
            RunOutcomeFactory.build(
                class_name="test_a.TestA", name="test_two", outcome="skipped"
            ),
            RunOutcomeFactory.build(
                class_name="test_a.TestB", name="test_three", outcome="error"
            ),
        ],
        tests,
        addresses=None,
    )

    test_file = tests.test_files[0]
    assert [suite.status for suite in test_file.suites] == ["skipped", "error"]
    assert test_file.status == "error"
    assert tests.summary == TestResultSummary(passed=1, errors=1, skipped=1)
