"""Hierarchical model of discovered tests."""

from collections.abc import Iterator, Mapping, Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import Literal, TypeAlias

from testpilot.models.result import TestResultSummary

TestStatus: TypeAlias = Literal["idle", "running", "pass", "fail", "error", "skipped"]

STATUS_SEVERITY: Mapping[TestStatus, int] = {
    "idle": 0,
    "running": 0,
    "pass": 1,
    "skipped": 2,
    "fail": 3,
    "error": 4,
}


def worst_status(statuses: Sequence[TestStatus]) -> TestStatus:
    """Return the most severe status, ``idle`` when there is nothing to aggregate."""
    worst: TestStatus = "idle"
    for status in statuses:
        if STATUS_SEVERITY[status] > STATUS_SEVERITY[worst]:
            worst = status
    return worst


@dataclass(kw_only=True, eq=False)
class TestFunction:
    """A single runnable test."""

    __test__ = False

    name: str
    name_to_run: str
    xml_class_name: str
    status: TestStatus = "idle"
    time: float | None = None
    message: str | None = None
    suite: "TestSuite | None" = field(default=None, repr=False)


@dataclass(kw_only=True, eq=False)
class TestSuite:
    """A test class, possibly nesting other classes."""

    __test__ = False

    name: str
    name_to_run: str
    xml_class_name: str
    functions: Sequence[TestFunction] = ()
    suites: Sequence["TestSuite"] = ()
    status: TestStatus = "idle"

    def iter_functions(self) -> Iterator[TestFunction]:
        """Yield own functions, then those of nested suites."""
        yield from self.functions
        for suite in self.suites:
            yield from suite.iter_functions()

    def refresh_status(self) -> TestStatus:
        for suite in self.suites:
            suite.refresh_status()
        self.status = worst_status(
            [f.status for f in self.functions] + [s.status for s in self.suites]
        )
        return self.status


@dataclass(kw_only=True, eq=False)
class TestFile:
    """A test module and everything discovered in it."""

    __test__ = False

    name: str
    full_path: Path
    name_to_run: str
    xml_name: str
    functions: Sequence[TestFunction] = ()
    suites: Sequence[TestSuite] = ()
    status: TestStatus = "idle"

    def iter_functions(self) -> Iterator[TestFunction]:
        yield from self.functions
        for suite in self.suites:
            yield from suite.iter_functions()

    def refresh_status(self) -> TestStatus:
        for suite in self.suites:
            suite.refresh_status()
        self.status = worst_status(
            [f.status for f in self.functions] + [s.status for s in self.suites]
        )
        return self.status


@dataclass(kw_only=True, eq=False)
class TestFolder:
    """A directory holding test files."""

    __test__ = False

    name: str
    name_to_run: str
    files: Sequence[TestFile] = ()
    folders: Sequence["TestFolder"] = ()

    def iter_files(self) -> Iterator[TestFile]:
        yield from self.files
        for folder in self.folders:
            yield from folder.iter_files()


@dataclass(frozen=True, kw_only=True)
class FlattenedTestFunction:
    """Index entry pointing at a function and its parents."""

    test_function: TestFunction
    parent_file: TestFile
    parent_suite: TestSuite | None = None

    @property
    def xml_class_name(self) -> str:
        return self.test_function.xml_class_name


@dataclass(frozen=True, kw_only=True)
class FlattenedTestSuite:
    """Index entry pointing at a suite and its file."""

    test_suite: TestSuite
    parent_file: TestFile

    @property
    def xml_class_name(self) -> str:
        return self.test_suite.xml_class_name


@dataclass(frozen=True, kw_only=True)
class Tests:
    """Snapshot of one discovery pass.

    The tree shape never changes once built; runs only update node status.
    The lookup mappings index the same objects held by the tree.
    """

    __test__ = False

    root: Path
    test_files: Sequence[TestFile]
    test_folders: Sequence[TestFolder]
    root_test_folders: Sequence[TestFolder]
    test_functions: Sequence[FlattenedTestFunction]
    test_suites: Sequence[FlattenedTestSuite]
    functions_by_address: Mapping[str, FlattenedTestFunction] = field(repr=False)
    functions_by_xml_name: Mapping[tuple[str, str], FlattenedTestFunction] = field(
        repr=False
    )
    suites_by_address: Mapping[str, FlattenedTestSuite] = field(repr=False)

    @property
    def summary(self) -> TestResultSummary:
        """Counts derived from the current status of every function."""
        statuses = [f.test_function.status for f in self.test_functions]
        return TestResultSummary(
            passed=statuses.count("pass"),
            failures=statuses.count("fail"),
            errors=statuses.count("error"),
            skipped=statuses.count("skipped"),
        )

    @property
    def addresses(self) -> frozenset[str]:
        return frozenset(self.functions_by_address)

    def refresh_status(self) -> None:
        """Recompute file and suite status from their functions."""
        for test_file in self.test_files:
            test_file.refresh_status()


@dataclass(frozen=True, kw_only=True)
class TestsToRun:
    """A selection of nodes from one ``Tests`` snapshot."""

    __test__ = False

    test_folder: Sequence[TestFolder] = ()
    test_file: Sequence[TestFile] = ()
    test_suite: Sequence[TestSuite] = ()
    test_function: Sequence[TestFunction] = ()

    def is_empty(self) -> bool:
        return not (
            self.test_folder or self.test_file or self.test_suite or self.test_function
        )
