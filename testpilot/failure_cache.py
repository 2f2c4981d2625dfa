"""Store of the most recently failed tests, keyed by workspace root."""

import asyncio
import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from pathlib import Path

from pydantic import TypeAdapter, ValidationError

log = logging.getLogger(__name__)

_FAILURES_ADAPTER = TypeAdapter(dict[str, list[str]])


@dataclass(kw_only=True)
class FailureCache:
    """Failure addresses per root, shared by the managers of those roots.

    When a path is given the failures are persisted as JSON so they survive
    the process. A missing or unreadable file is an empty cache.
    """

    path: Path | None = None
    _failures: dict[str, tuple[str, ...]] = field(default_factory=dict, init=False)
    _known: dict[str, frozenset[str]] = field(default_factory=dict, init=False)
    _locks: dict[str, asyncio.Lock] = field(default_factory=dict, init=False)

    def __post_init__(self) -> None:
        if self.path is None or not self.path.exists():
            return
        try:
            stored = _FAILURES_ADAPTER.validate_json(self.path.read_bytes())
        except (OSError, ValidationError) as e:
            log.warning("Ignoring unreadable failure cache %s: %s", self.path, e)
            return
        self._failures = {root: tuple(addresses) for root, addresses in stored.items()}

    def failures(self, root: Path) -> Sequence[str]:
        """Cached failures of ``root`` that the latest discovery still knows.

        Failures of tests that disappeared since are dropped silently. Before
        any discovery of the root every cached failure is returned.
        """
        failures = self._failures.get(str(root), ())
        known = self._known.get(str(root))
        if known is None:
            return failures
        valid = tuple(address for address in failures if address in known)
        if len(valid) != len(failures):
            dropped = len(failures) - len(valid)
            log.info("Dropping %d failure(s) no longer discovered", dropped)
        return valid

    def replace(self, root: Path, addresses: Iterable[str]) -> None:
        """Replace the failures of ``root`` with those of the latest run."""
        self._failures[str(root)] = tuple(dict.fromkeys(addresses))
        self._save()

    def clear(self, root: Path | None = None) -> None:
        if root is None:
            self._failures.clear()
        else:
            self._failures.pop(str(root), None)
        self._save()

    def known_universe(self, root: Path) -> frozenset[str]:
        """Addresses found by the latest discovery of ``root``."""
        return self._known.get(str(root), frozenset())

    def set_known_universe(self, root: Path, addresses: Iterable[str]) -> None:
        self._known[str(root)] = frozenset(addresses)

    def lock(self, root: Path) -> asyncio.Lock:
        """Lock serializing reads and writes of one root's entry."""
        return self._locks.setdefault(str(root), asyncio.Lock())

    def _save(self) -> None:
        if self.path is None:
            return
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_bytes(
            _FAILURES_ADAPTER.dump_json(
                {root: list(addresses) for root, addresses in self._failures.items()},
                indent=2,
            )
        )
