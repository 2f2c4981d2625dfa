"""Resolve a selection of tests into the addresses to run."""

import logging
from collections.abc import Iterable, Sequence

from testpilot.errors import EmptyFailureSetError, EmptySelectionError
from testpilot.models.tests import (
    TestFile,
    TestFolder,
    TestFunction,
    Tests,
    TestSuite,
    TestsToRun,
)

log = logging.getLogger(__name__)


def resolve_addresses(
    tests: Tests,
    selection: TestsToRun | None,
    *,
    rerun_failed: bool = False,
    failures: Iterable[str] = (),
) -> Sequence[str] | None:
    """Return the function addresses to run, or None to run everything.

    Args:
        tests: Current discovery snapshot
        selection: Nodes picked by the caller, None meaning "run all"
        rerun_failed: Ignore the selection and re-run cached failures
        failures: Addresses that failed on the previous run

    Raises:
        EmptyFailureSetError: If re-running failures and none are known
        EmptySelectionError: If the selection picks nothing

    """
    if rerun_failed:
        addresses = _unique(failures)
        if not addresses:
            raise EmptyFailureSetError("No failed tests to run")
        return addresses

    if selection is None:
        return None

    if selection.is_empty():
        raise EmptySelectionError("Nothing selected to run")

    functions: list[TestFunction] = []
    for folder in selection.test_folder:
        for test_file in folder.iter_files():
            functions.extend(test_file.iter_functions())
    for test_file in selection.test_file:
        functions.extend(test_file.iter_functions())
    for suite in selection.test_suite:
        functions.extend(suite.iter_functions())
    functions.extend(selection.test_function)

    return _unique(function.name_to_run for function in functions)


def _unique(addresses: Iterable[str]) -> tuple[str, ...]:
    return tuple(dict.fromkeys(addresses))


def select_by_address(tests: Tests, addresses: Iterable[str]) -> TestsToRun:
    """Build a selection from folder, file, suite or function addresses.

    Unknown addresses are skipped with a warning.
    """
    folders = {folder.name_to_run: folder for folder in tests.test_folders}
    files = {test_file.name_to_run: test_file for test_file in tests.test_files}
    selected_folders: list[TestFolder] = []
    selected_files: list[TestFile] = []
    selected_suites: list[TestSuite] = []
    selected_functions: list[TestFunction] = []

    for address in addresses:
        if (function := tests.functions_by_address.get(address)) is not None:
            selected_functions.append(function.test_function)
        elif (suite := tests.suites_by_address.get(address)) is not None:
            selected_suites.append(suite.test_suite)
        elif address in files:
            selected_files.append(files[address])
        elif address in folders:
            selected_folders.append(folders[address])
        else:
            log.warning("No discovered test matches %s", address)

    return TestsToRun(
        test_folder=tuple(selected_folders),
        test_file=tuple(selected_files),
        test_suite=tuple(selected_suites),
        test_function=tuple(selected_functions),
    )
