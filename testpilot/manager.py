"""Test manager coordinating discovery and runs for one workspace root."""

import asyncio
import logging
import tempfile
from collections.abc import AsyncGenerator, Sequence
from contextlib import asynccontextmanager
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Literal, TypeAlias

from testpilot import discovery_cache
from testpilot.display import LoggingResultDisplay, ResultDisplay
from testpilot.errors import (
    BusyError,
    DiscoveryFailedError,
    DisposedError,
    ProcessLaunchFailedError,
)
from testpilot.failure_cache import FailureCache
from testpilot.frameworks.base import FrameworkAdapter
from testpilot.frameworks.manifest import FrameworkManifest
from testpilot.model_builder import build_tests
from testpilot.models.records import Command, RawOutput
from testpilot.models.result import TestRunResult
from testpilot.models.tests import Tests, TestsToRun
from testpilot.process import ProcessLauncher, ProcessRunner
from testpilot.result_parser import apply_outcomes
from testpilot.selection import resolve_addresses
from testpilot.settings import ConfigurationProvider

log = logging.getLogger(__name__)

ManagerState: TypeAlias = Literal["idle", "discovering", "running", "disposed"]


@dataclass(kw_only=True)
class TestManager:
    """Discovers and runs the tests of one workspace root.

    At most one discovery or run is in flight at a time; a second request
    fails with ``BusyError`` instead of queueing. Configuration is read from
    the provider at the start of every operation.
    """

    __test__ = False

    framework: FrameworkManifest[Any]
    configuration: ConfigurationProvider
    failure_cache: FailureCache = field(default_factory=FailureCache)
    launcher: ProcessLauncher = field(default_factory=ProcessRunner)
    display: ResultDisplay = field(default_factory=LoggingResultDisplay)
    use_discovery_cache: bool = True

    _state: ManagerState = field(default="idle", init=False)
    _tests: Tests | None = field(default=None, init=False, repr=False)
    _tests_args: Sequence[str] = field(default=(), init=False, repr=False)
    _task: asyncio.Task[Any] | None = field(default=None, init=False, repr=False)

    @classmethod
    @asynccontextmanager
    async def open(cls, **kwargs: Any) -> AsyncGenerator["TestManager", None]:
        """Create a manager that is disposed on exit."""
        manager = cls(**kwargs)
        try:
            yield manager
        finally:
            manager.dispose()

    @property
    def state(self) -> ManagerState:
        return self._state

    @property
    def tests(self) -> Tests | None:
        """Model returned by the latest discovery."""
        return self._tests

    async def discover_tests(
        self, ignore_cache: bool = False, quiet: bool = False
    ) -> Tests:
        """Discover tests and return a new model.

        Args:
            ignore_cache: Always launch the framework, even if a model exists
            quiet: Do not send discovery log entries to the display

        Raises:
            BusyError: If another operation is in flight
            DisposedError: If the manager was disposed
            DiscoveryFailedError: If discovery could not run or parse

        """
        self._begin("discovering")
        try:
            return await self._discover(ignore_cache=ignore_cache, quiet=quiet)
        except asyncio.CancelledError:
            log.info("Discovery cancelled")
            raise
        except Exception as e:
            self._report(f"Test discovery failed: {e}")
            raise
        finally:
            self._end()

    async def run_test(
        self, selection: TestsToRun | None = None, *, rerun_failed: bool = False
    ) -> TestRunResult:
        """Run the selected tests, everything, or the previous failures.

        Args:
            selection: Nodes to run, None to run every discovered test
            rerun_failed: Ignore the selection and re-run the cached failures

        Raises:
            BusyError: If another operation is in flight
            DisposedError: If the manager was disposed
            EmptySelectionError: If the selection picks nothing
            EmptyFailureSetError: If re-running failures and none are cached
            ProcessLaunchFailedError: If the framework cannot be launched

        """
        self._begin("running")
        try:
            result = await self._run(selection, rerun_failed=rerun_failed)
        except asyncio.CancelledError:
            log.info("Test run cancelled")
            raise
        except Exception as e:
            self._report(f"Test run failed: {e}")
            raise
        finally:
            self._end()

        try:
            self.display.show_results(result)
        except Exception:
            log.exception("Result display failed")
        return result

    def cancel(self) -> bool:
        """Cancel the in-flight operation, killing its process.

        Returns:
            Whether there was an operation to cancel

        """
        if self._task is None or self._task.done():
            return False
        return self._task.cancel()

    def dispose(self) -> None:
        """Kill running processes and drop the model; further use fails."""
        if self._state == "disposed":
            return
        self._state = "disposed"
        self.cancel()
        self.launcher.close()
        self._tests = None
        self._task = None

    async def _discover(self, *, ignore_cache: bool, quiet: bool) -> Tests:
        root = self.configuration.workspace_root().resolve()
        config = self._load_config()
        args = list(config.args)
        key = self.framework.key

        if not ignore_cache:
            if self._tests is not None and list(self._tests_args) == args:
                return self._tests
            if self.use_discovery_cache and (
                snapshot := discovery_cache.load_snapshot(root, key, args)
            ):
                log.info("Using cached discovery for %s", root)
                tests = build_tests(snapshot.records, root)
                return self._publish(root, args, tests, quiet)

        adapter = self._adapter(config)
        command = adapter.build_discovery_command(root, args)
        try:
            raw = await self.launcher.run(command, on_output=_echo)
        except ProcessLaunchFailedError as e:
            raise DiscoveryFailedError(str(e)) from e

        parsed = adapter.parse_discovery_output(raw, root, args)
        if not parsed.records and parsed.malformed:
            raise DiscoveryFailedError(
                f"{key} discovery produced {parsed.malformed} unparsable "
                f"line(s) and no tests (exit code {raw.exit_code})"
            )

        tests = build_tests(parsed.records, root)
        if self.use_discovery_cache:
            discovery_cache.save_snapshot(
                root,
                discovery_cache.DiscoverySnapshot(
                    framework=key, args=args, records=parsed.records
                ),
            )
        return self._publish(root, args, tests, quiet)

    async def _run(
        self, selection: TestsToRun | None, *, rerun_failed: bool
    ) -> TestRunResult:
        config = self._load_config()
        args = list(config.args)
        tests = self._tests
        if tests is None or list(self._tests_args) != args:
            tests = await self._discover(ignore_cache=False, quiet=True)
        root = tests.root

        async with self.failure_cache.lock(root):
            addresses = resolve_addresses(
                tests,
                selection,
                rerun_failed=rerun_failed,
                failures=self.failure_cache.failures(root),
            )
            adapter = self._adapter(config)
            with tempfile.TemporaryDirectory(prefix="testpilot-") as report_dir:
                command = adapter.build_run_command(
                    root, addresses, args, Path(report_dir), rerun_failed=rerun_failed
                )
                log.info(
                    "Running %s test(s) with %s",
                    "all" if addresses is None else len(addresses),
                    self.framework.key,
                )
                raw = await self.launcher.run(command, on_output=_echo)
                raw = _attach_report(raw, command)

            parsed = adapter.parse_run_output(raw)
            if parsed.malformed:
                log.warning("Skipped %d malformed result(s)", parsed.malformed)
            result = apply_outcomes(
                parsed.outcomes, tests, addresses=addresses, rerun_failed=rerun_failed
            )
            self.failure_cache.replace(root, result.failed_addresses)

        return result

    def _publish(
        self, root: Path, args: Sequence[str], tests: Tests, quiet: bool
    ) -> Tests:
        self._tests = tests
        self._tests_args = tuple(args)
        self.failure_cache.set_known_universe(root, tests.addresses)
        if not quiet:
            self._report(
                f"Discovered {len(tests.test_functions)} test(s) in "
                f"{len(tests.test_files)} file(s)"
            )
        return tests

    def _load_config(self) -> Any:
        return self.framework.config_cls(
            **self.configuration.framework_config(self.framework.key)
        )

    def _adapter(self, config: Any) -> FrameworkAdapter:
        return self.framework.adapter_factory(config)

    def _begin(self, state: ManagerState) -> None:
        if self._state == "disposed":
            raise DisposedError("Test manager has been disposed")
        if self._state != "idle":
            raise BusyError(f"Test manager is busy {self._state}")
        self._state = state
        self._task = asyncio.current_task()

    def _end(self) -> None:
        if self._state != "disposed":
            self._state = "idle"
        self._task = None

    def _report(self, message: str) -> None:
        try:
            self.display.log(message)
        except Exception:
            log.exception("Result display failed")


def _attach_report(raw: RawOutput, command: Command) -> RawOutput:
    """Read the report the command was asked to write, if it exists."""
    if command.report_path is None or not command.report_path.exists():
        return raw
    return replace(raw, report=command.report_path.read_text(errors="replace"))


def _echo(stream: str, text: str) -> None:
    log.debug("[%s] %s", stream, text.rstrip())
