"""Tests for the failure cache."""

from pathlib import Path

from testpilot.failure_cache import FailureCache

ROOT = Path("/work/project")
OTHER = Path("/work/other")


def test_replace_overwrites_previous_failures() -> None:
    """Each run replaces the failures of its root."""
    cache = FailureCache()
    cache.replace(ROOT, ["a", "b", "a"])
    cache.replace(OTHER, ["x"])

    cache.replace(ROOT, ["c"])

    assert cache.failures(ROOT) == ("c",)
    assert cache.failures(OTHER) == ("x",)


def test_failures_are_limited_to_known_universe() -> None:
    """Failures of tests no longer discovered are dropped."""
    cache = FailureCache()
    cache.replace(ROOT, ["a", "b"])

    assert cache.failures(ROOT) == ("a", "b")

    cache.set_known_universe(ROOT, ["b", "c"])

    assert cache.failures(ROOT) == ("b",)
    assert cache.known_universe(ROOT) == frozenset({"b", "c"})


def test_clear() -> None:
    """Clears one root or everything."""
    cache = FailureCache()
    cache.replace(ROOT, ["a"])
    cache.replace(OTHER, ["x"])

    cache.clear(ROOT)
    assert cache.failures(ROOT) == ()
    assert cache.failures(OTHER) == ("x",)

    cache.clear()
    assert cache.failures(OTHER) == ()


def test_lock_is_per_root() -> None:
    """The same root always gets the same lock."""
    cache = FailureCache()

    assert cache.lock(ROOT) is cache.lock(ROOT)
    assert cache.lock(ROOT) is not cache.lock(OTHER)


def test_persists_failures(tmp_path: Path) -> None:
    """Failures survive a new cache over the same file."""
    path = tmp_path / ".testpilot" / "failures.json"
    FailureCache(path=path).replace(ROOT, ["a", "b"])

    assert FailureCache(path=path).failures(ROOT) == ("a", "b")


def test_unreadable_file_is_empty(tmp_path: Path) -> None:
    """A corrupt cache file is ignored."""
    path = tmp_path / "failures.json"
    path.write_text("{not json")

    assert FailureCache(path=path).failures(ROOT) == ()
