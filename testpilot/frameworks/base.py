"""Abstract base class for test framework adapters."""

from abc import ABC, abstractmethod
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path, PurePosixPath

from testpilot.models.records import Command, DiscoveryParse, RawOutput, RunParse


@dataclass(frozen=True, kw_only=True)
class FrameworkAdapter(ABC):
    """Everything the engine needs to know about one test framework dialect.

    Adapters translate between the framework CLI and the normalized records
    the rest of the engine works with. Malformed output never raises: the
    offending line is skipped and counted so callers degrade to finding
    fewer tests.
    """

    @abstractmethod
    def build_discovery_command(
        self, working_dir: Path, extra_args: Sequence[str]
    ) -> Command:
        """Return the command that lists tests without running them.

        Args:
            working_dir: Workspace root, all record paths are relative to it
            extra_args: User-configured framework arguments

        """

    @abstractmethod
    def parse_discovery_output(
        self, raw: RawOutput, working_dir: Path, extra_args: Sequence[str]
    ) -> DiscoveryParse:
        """Turn discovery output into one record per test function."""

    @abstractmethod
    def build_run_command(
        self,
        working_dir: Path,
        addresses: Sequence[str] | None,
        extra_args: Sequence[str],
        report_dir: Path,
        *,
        rerun_failed: bool = False,
    ) -> Command:
        """Return the command running the given addresses.

        Args:
            working_dir: Workspace root
            addresses: Function addresses to run, None to run everything
            extra_args: User-configured framework arguments
            report_dir: Scratch directory for machine-readable reports
            rerun_failed: Whether the addresses come from the failure cache

        """

    @abstractmethod
    def parse_run_output(self, raw: RawOutput) -> RunParse:
        """Turn run output into one outcome per executed test."""


def module_from_path(relative_path: str) -> str:
    """Convert ``pkg/test_mod.py`` into ``pkg.test_mod``."""
    path = PurePosixPath(relative_path.replace("\\", "/"))
    if path.suffix == ".py":
        path = path.with_suffix("")
    return ".".join(part for part in path.parts if part not in ("", "."))


def option_value(args: Sequence[str], *names: str) -> str | None:
    """Return the last value given for any of ``names`` in ``args``.

    Both ``-m value`` and ``--match=value`` spellings are understood.
    """
    value: str | None = None
    iterator = iter(args)
    for arg in iterator:
        for name in names:
            if arg == name:
                value = next(iterator, value)
                break
            if arg.startswith(f"{name}="):
                value = arg.split("=", 1)[1]
                break
    return value


def strip_options(args: Sequence[str], *names: str) -> list[str]:
    """Return ``args`` without ``names`` and the values they take."""
    result: list[str] = []
    skip_next = False
    for arg in args:
        if skip_next:
            skip_next = False
            continue
        if arg in names:
            skip_next = True
            continue
        if any(arg.startswith(f"{name}=") for name in names):
            continue
        result.append(arg)
    return result
