"""Tests for the test model builder."""

from pathlib import Path

from testpilot.frameworks.pytest.adapter import parse_node_id
from testpilot.model_builder import build_tests, deduplicate
from testpilot.models.records import DiscoveryRecord
from testpilot.testing.factories import DiscoveryRecordFactory

ROOT = Path("/work/project")


def node(node_id: str) -> DiscoveryRecord:
    record = parse_node_id(node_id)
    assert record is not None
    return record


def test_groups_records_by_file_and_suite() -> None:
    """Builds files, suites and functions from nose records."""
    records = [
        DiscoveryRecordFactory.method("tests/test_a.py", ("TestA",), "test_one"),
        DiscoveryRecordFactory.method("tests/test_a.py", ("TestA",), "test_two"),
        DiscoveryRecordFactory.method("tests/test_a.py", ("TestB",), "test_three"),
        DiscoveryRecordFactory.method("test_b.py", ("TestC",), "test_four"),
    ]

    tests = build_tests(records, ROOT)

    assert [test_file.name for test_file in tests.test_files] == [
        "tests/test_a.py",
        "test_b.py",
    ]
    first = tests.test_files[0]
    assert first.full_path == ROOT / "tests/test_a.py"
    assert first.name_to_run == "tests/test_a.py"
    assert first.xml_name == "tests.test_a"
    assert [suite.name for suite in first.suites] == ["TestA", "TestB"]
    assert [f.name for f in first.suites[0].functions] == ["test_one", "test_two"]
    assert len(tests.test_suites) == 3
    assert len(tests.test_functions) == 4


def test_functions_point_at_their_parents() -> None:
    """Index entries and functions link back to their file and suite."""
    record = DiscoveryRecordFactory.method("test_a.py", ("TestA",), "test_one")

    tests = build_tests([record], ROOT)

    entry = tests.functions_by_address["test_a.py:TestA.test_one"]
    assert entry.parent_file is tests.test_files[0]
    assert entry.parent_suite is tests.test_files[0].suites[0]
    assert entry.test_function.suite is entry.parent_suite
    assert entry.xml_class_name == "test_a.TestA"
    assert tests.functions_by_xml_name[("test_a.TestA", "test_one")] is entry
    assert tests.suites_by_address["test_a.py:TestA"].parent_file is entry.parent_file


def test_file_with_functions_and_classes() -> None:
    """Module level functions and classes live side by side."""
    records = [
        DiscoveryRecordFactory.build(
            file_path="test_a.py",
            file_address="test_a.py",
            module="test_a",
            function_name="test_bare",
            address="test_a.py:test_bare",
        ),
        DiscoveryRecordFactory.method("test_a.py", ("TestA",), "test_one"),
    ]

    tests = build_tests(records, ROOT)

    test_file = tests.test_files[0]
    assert [f.name for f in test_file.functions] == ["test_bare"]
    assert [s.name for s in test_file.suites] == ["TestA"]
    assert [f.name for f in test_file.iter_functions()] == ["test_bare", "test_one"]
    bare = tests.functions_by_address["test_a.py:test_bare"]
    assert bare.parent_suite is None
    assert bare.xml_class_name == "test_a"


def test_nested_classes_become_nested_suites() -> None:
    """A class chain longer than one builds nested suites."""
    records = [
        node("tests/test_a.py::TestOuter::test_outer"),
        node("tests/test_a.py::TestOuter::TestInner::test_inner"),
    ]

    tests = build_tests(records, ROOT)

    outer = tests.test_files[0].suites[0]
    assert outer.name_to_run == "tests/test_a.py::TestOuter"
    assert [f.name for f in outer.functions] == ["test_outer"]
    inner = outer.suites[0]
    assert inner.name == "TestInner"
    assert inner.name_to_run == "tests/test_a.py::TestOuter::TestInner"
    assert inner.xml_class_name == "tests.test_a.TestOuter.TestInner"
    assert [f.name for f in outer.iter_functions()] == ["test_outer", "test_inner"]
    assert [s.test_suite for s in tests.test_suites] == [outer, inner]
    assert tests.functions_by_address[
        "tests/test_a.py::TestOuter::TestInner::test_inner"
    ].parent_suite is inner


def test_duplicate_addresses_keep_the_first_record() -> None:
    """Records sharing an address collapse into one function."""
    first = DiscoveryRecordFactory.method("test_a.py", ("TestA",), "test_one")
    duplicate = first.model_copy(update={"function_name": "renamed"})

    assert deduplicate([first, duplicate]) == [first]
    tests = build_tests([first, duplicate], ROOT)
    assert [e.test_function.name for e in tests.test_functions] == ["test_one"]


def test_builds_folder_tree() -> None:
    """Folders nest by path and top level folders are the roots."""
    records = [
        node("test_root.py::test_a"),
        node("tests/test_b.py::test_b"),
        node("tests/unit/test_c.py::test_c"),
        node("tests/unit/deep/test_d.py::test_d"),
    ]

    tests = build_tests(records, ROOT)

    folders = {folder.name: folder for folder in tests.test_folders}
    assert set(folders) == {".", "tests", "tests/unit", "tests/unit/deep"}
    assert [folder.name for folder in tests.root_test_folders] == [".", "tests"]
    assert [f.name for f in folders["tests"].files] == ["tests/test_b.py"]
    assert folders["tests"].folders == (folders["tests/unit"],)
    assert [f.name for f in folders["tests"].iter_files()] == [
        "tests/test_b.py",
        "tests/unit/test_c.py",
        "tests/unit/deep/test_d.py",
    ]


def test_intermediate_folders_without_files() -> None:
    """A folder holding only sub folders still links them."""
    tests = build_tests([node("a/b/test_x.py::test_x")], ROOT)

    folders = {folder.name: folder for folder in tests.test_folders}
    assert [folder.name for folder in tests.root_test_folders] == ["a"]
    assert folders["a"].files == ()
    assert folders["a"].folders == (folders["a/b"],)


def test_no_records_build_empty_model() -> None:
    """Nothing discovered is an empty but valid model."""
    tests = build_tests([], ROOT)

    assert tests.test_files == ()
    assert tests.test_folders == ()
    assert tests.addresses == frozenset()
