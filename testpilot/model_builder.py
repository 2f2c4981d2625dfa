"""Build the hierarchical test model from flat discovery records."""

import logging
from collections.abc import Iterable, Sequence
from pathlib import Path, PurePosixPath

from testpilot.models.records import DiscoveryRecord
from testpilot.models.tests import (
    FlattenedTestFunction,
    FlattenedTestSuite,
    TestFile,
    TestFolder,
    TestFunction,
    Tests,
    TestSuite,
)

log = logging.getLogger(__name__)


def build_tests(records: Iterable[DiscoveryRecord], root: Path) -> Tests:
    """Group records by file, then by class chain, into a new ``Tests`` tree.

    Records sharing an address are collapsed, the first one wins. Files only
    appear when at least one record points at them.
    """
    by_file: dict[str, list[DiscoveryRecord]] = {}
    for record in deduplicate(records):
        by_file.setdefault(record.file_path, []).append(record)

    test_files = [
        _build_file(root, file_path, file_records)
        for file_path, file_records in by_file.items()
    ]
    test_functions: list[FlattenedTestFunction] = []
    test_suites: list[FlattenedTestSuite] = []
    for test_file in test_files:
        test_functions.extend(
            FlattenedTestFunction(test_function=function, parent_file=test_file)
            for function in test_file.functions
        )
        for suite in test_file.suites:
            _flatten_suite(suite, test_file, test_functions, test_suites)

    test_folders, root_test_folders = _build_folders(test_files)

    return Tests(
        root=root,
        test_files=tuple(test_files),
        test_folders=tuple(test_folders),
        root_test_folders=tuple(root_test_folders),
        test_functions=tuple(test_functions),
        test_suites=tuple(test_suites),
        functions_by_address={
            f.test_function.name_to_run: f for f in test_functions
        },
        functions_by_xml_name={
            (f.xml_class_name, f.test_function.name): f for f in test_functions
        },
        suites_by_address={s.test_suite.name_to_run: s for s in test_suites},
    )


def deduplicate(records: Iterable[DiscoveryRecord]) -> list[DiscoveryRecord]:
    seen: set[str] = set()
    unique: list[DiscoveryRecord] = []
    for record in records:
        if record.address in seen:
            log.debug("Dropping duplicate discovery record %s", record.address)
            continue
        seen.add(record.address)
        unique.append(record)
    return unique


def _build_file(
    root: Path, file_path: str, records: Sequence[DiscoveryRecord]
) -> TestFile:
    functions: list[TestFunction] = []
    suites: dict[tuple[str, ...], TestSuite] = {}
    suite_functions: dict[tuple[str, ...], list[TestFunction]] = {}
    child_suites: dict[tuple[str, ...], list[TestSuite]] = {(): []}

    for record in records:
        chain = tuple(record.class_names)
        for depth in range(1, len(chain) + 1):
            key = chain[:depth]
            if key in suites:
                continue
            suite = TestSuite(
                name=key[-1],
                name_to_run=record.suite_addresses[depth - 1],
                xml_class_name=".".join([record.module, *key]),
            )
            suites[key] = suite
            suite_functions[key] = []
            child_suites[key] = []
            child_suites[key[:-1]].append(suite)

        function = TestFunction(
            name=record.function_name,
            name_to_run=record.address,
            xml_class_name=record.xml_class_name,
        )
        if chain:
            function.suite = suites[chain]
            suite_functions[chain].append(function)
        else:
            functions.append(function)

    for key, suite in suites.items():
        suite.functions = tuple(suite_functions[key])
        suite.suites = tuple(child_suites[key])

    first = records[0]
    return TestFile(
        name=file_path,
        full_path=root / file_path,
        name_to_run=first.file_address,
        xml_name=first.module,
        functions=tuple(functions),
        suites=tuple(child_suites[()]),
    )


def _flatten_suite(
    suite: TestSuite,
    test_file: TestFile,
    test_functions: list[FlattenedTestFunction],
    test_suites: list[FlattenedTestSuite],
) -> None:
    test_suites.append(FlattenedTestSuite(test_suite=suite, parent_file=test_file))
    test_functions.extend(
        FlattenedTestFunction(
            test_function=function, parent_file=test_file, parent_suite=suite
        )
        for function in suite.functions
    )
    for nested in suite.suites:
        _flatten_suite(nested, test_file, test_functions, test_suites)


def _build_folders(
    test_files: Sequence[TestFile],
) -> tuple[list[TestFolder], list[TestFolder]]:
    """Return every folder holding tests and the top-level ones among them."""
    folders: dict[str, TestFolder] = {}
    files: dict[str, list[TestFile]] = {}
    children: dict[str, list[TestFolder]] = {}
    roots: list[TestFolder] = []

    def ensure(name: str) -> TestFolder:
        if name in folders:
            return folders[name]
        folder = folders[name] = TestFolder(name=name, name_to_run=name)
        files[name] = []
        children[name] = []
        parent = PurePosixPath(name).parent.as_posix()
        if name == "." or parent == ".":
            roots.append(folder)
        else:
            ensure(parent)
            children[parent].append(folder)
        return folder

    for test_file in test_files:
        name = PurePosixPath(test_file.name).parent.as_posix()
        ensure(name)
        files[name].append(test_file)

    for name, folder in folders.items():
        folder.files = tuple(files[name])
        folder.folders = tuple(children[name])
    return list(folders.values()), roots
