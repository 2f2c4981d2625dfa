"""Tests for the unittest adapter."""

from pathlib import Path

import pytest

from testpilot.frameworks.unittest import UnittestAdapter, UnittestConfig
from testpilot.frameworks.unittest.adapter import DISCOVERY_SCRIPT
from testpilot.models.records import RawOutput

ROOT = Path("/work/project")

VERBOSE_OUTPUT = """\
test_add (tests.test_math.TestMath.test_add) ... ok
test_div (tests.test_math.TestMath.test_div)
Divide two numbers. ... FAIL
test_skip (tests.test_math.TestMath.test_skip) ... skipped 'not today'
test_err (tests.test_math.TestMath.test_err) ... ERROR
test_xfail (tests.test_math.TestMath.test_xfail) ... expected failure
test_xpass (tests.test_math.TestMath.test_xpass) ... unexpected success

======================================================================
ERROR: test_err (tests.test_math.TestMath.test_err)
----------------------------------------------------------------------
Traceback (most recent call last):
  File "tests/test_math.py", line 20, in test_err
RuntimeError: boom (tests.test_math.TestMath) ... ok

----------------------------------------------------------------------
Ran 6 tests in 0.003s

FAILED (failures=2, errors=1, skipped=1, expected failures=1)
"""


@pytest.fixture
def adapter() -> UnittestAdapter:
    """Create unittest adapter."""
    return UnittestAdapter.from_config(UnittestConfig())


def run_output(stderr: str) -> RawOutput:
    return RawOutput(stdout="", stderr=stderr, exit_code=1)


def test_builds_discovery_command(adapter: UnittestAdapter) -> None:
    """Runs the loader script with the discovery options."""
    command = adapter.build_discovery_command(
        ROOT, ["-s", "tests", "--pattern=*_test.py", "-v"]
    )

    assert command.executable == "python"
    assert list(command.args) == ["-c", DISCOVERY_SCRIPT, "tests", "*_test.py", ""]


def test_builds_default_discovery_command(adapter: UnittestAdapter) -> None:
    """Defaults match ``python -m unittest discover``."""
    command = adapter.build_discovery_command(ROOT, [])

    assert list(command.args)[2:] == [".", "test*.py", ""]


def test_parses_test_ids(adapter: UnittestAdapter) -> None:
    """Each dotted id becomes a record under its module."""
    output = "tests.test_math.TestMath.test_add\ntests.test_math.TestMath.test_div\n"

    parsed = adapter.parse_discovery_output(
        RawOutput(stdout=output, stderr="", exit_code=0), ROOT, []
    )

    assert parsed.malformed == 0
    record = parsed.records[0]
    assert record.file_path == "tests/test_math.py"
    assert record.file_address == "tests.test_math"
    assert record.module == "tests.test_math"
    assert list(record.class_names) == ["TestMath"]
    assert list(record.suite_addresses) == ["tests.test_math.TestMath"]
    assert record.function_name == "test_add"
    assert record.address == "tests.test_math.TestMath.test_add"


def test_file_paths_follow_top_level_directory(adapter: UnittestAdapter) -> None:
    """Module paths are relative to the top level directory."""
    parsed = adapter.parse_discovery_output(
        RawOutput(stdout="pkg.test_a.TestA.test_one\n", stderr="", exit_code=0),
        ROOT,
        ["-t", "src"],
    )

    assert parsed.records[0].file_path == "src/pkg/test_a.py"


def test_file_paths_default_to_start_directory(adapter: UnittestAdapter) -> None:
    """Without a top level directory ids are relative to the start directory."""
    parsed = adapter.parse_discovery_output(
        RawOutput(stdout="test_a.TestA.test_one\n", stderr="", exit_code=0),
        ROOT,
        ["-s", "tests"],
    )

    assert parsed.records[0].file_path == "tests/test_a.py"


def test_skips_loader_failures(adapter: UnittestAdapter) -> None:
    """Modules that failed to import are reported as malformed."""
    output = (
        "unittest.loader._FailedTest.test_broken\n"
        "test_ok.TestOk.test_one\n"
        "not an id\n"
    )

    parsed = adapter.parse_discovery_output(
        RawOutput(stdout=output, stderr="", exit_code=0), ROOT, []
    )

    assert [record.address for record in parsed.records] == ["test_ok.TestOk.test_one"]
    assert parsed.malformed == 2


def test_builds_run_command_for_addresses(
    adapter: UnittestAdapter, tmp_path: Path
) -> None:
    """Discovery options are not passed when running explicit ids."""
    command = adapter.build_run_command(
        ROOT, ["test_ok.TestOk.test_one"], ["-s", "tests", "-f"], tmp_path
    )

    assert list(command.args) == [
        "-m",
        "unittest",
        "-v",
        "-f",
        "test_ok.TestOk.test_one",
    ]
    assert command.report_path is None
    assert command.cwd == ROOT / "tests"


def test_builds_run_all_command(adapter: UnittestAdapter, tmp_path: Path) -> None:
    """Running everything uses ``discover`` with the discovery options."""
    command = adapter.build_run_command(
        ROOT, None, ["-s", "tests", "-p", "*_test.py", "-t", "."], tmp_path
    )

    assert list(command.args) == [
        "-m",
        "unittest",
        "discover",
        "-v",
        "-s",
        "tests",
        "-p",
        "*_test.py",
        "-t",
        ".",
    ]


def test_parses_verbose_output(adapter: UnittestAdapter) -> None:
    """Statuses are read up to the first separator line."""
    parsed = adapter.parse_run_output(run_output(VERBOSE_OUTPUT))

    assert parsed.malformed == 0
    assert [(o.class_name, o.name, o.outcome) for o in parsed.outcomes] == [
        ("tests.test_math.TestMath", "test_add", "pass"),
        ("tests.test_math.TestMath", "test_div", "fail"),
        ("tests.test_math.TestMath", "test_skip", "skipped"),
        ("tests.test_math.TestMath", "test_err", "error"),
        ("tests.test_math.TestMath", "test_xfail", "pass"),
        ("tests.test_math.TestMath", "test_xpass", "fail"),
    ]
    assert parsed.outcomes[2].message == "not today"


def test_parses_legacy_class_format(adapter: UnittestAdapter) -> None:
    """Before Python 3.11 the parentheses only hold the class."""
    parsed = adapter.parse_run_output(
        run_output("test_add (tests.test_math.TestMath) ... ok\n")
    )

    assert [(o.class_name, o.name) for o in parsed.outcomes] == [
        ("tests.test_math.TestMath", "test_add")
    ]


def test_status_after_test_output(adapter: UnittestAdapter) -> None:
    """Output written by a test does not hide its status."""
    output = (
        "test_noisy (test_a.TestA.test_noisy) ... printing something\n"
        "ok\n"
        "test_quiet (test_a.TestA.test_quiet) ... ok\n"
    )

    parsed = adapter.parse_run_output(run_output(output))

    assert [(o.name, o.outcome) for o in parsed.outcomes] == [
        ("test_noisy", "pass"),
        ("test_quiet", "pass"),
    ]


def test_counts_tests_without_status(adapter: UnittestAdapter) -> None:
    """A header never followed by a status is malformed."""
    output = (
        "test_hang (test_a.TestA.test_hang) ... \n"
        "test_ok (test_a.TestA.test_ok) ... ok\n"
    )

    parsed = adapter.parse_run_output(run_output(output))

    assert [o.name for o in parsed.outcomes] == ["test_ok"]
    assert parsed.malformed == 1
