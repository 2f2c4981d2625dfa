"""unittest framework adapter."""

import logging
import re
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from pathlib import Path, PurePosixPath

from testpilot.frameworks.base import FrameworkAdapter, option_value, strip_options
from testpilot.frameworks.unittest.config import UnittestConfig
from testpilot.models.records import (
    Command,
    DiscoveryParse,
    DiscoveryRecord,
    Outcome,
    RawOutput,
    RunOutcome,
    RunParse,
)

log = logging.getLogger(__name__)

DEFAULT_START_DIRECTORY = "."
DEFAULT_PATTERN = "test*.py"

START_OPTIONS = ("-s", "--start-directory")
PATTERN_OPTIONS = ("-p", "--pattern")
TOP_LEVEL_OPTIONS = ("-t", "--top-level-directory")

# Prints one test id per line; argv: start directory, pattern, top level dir.
DISCOVERY_SCRIPT = """\
import sys
import unittest


def iter_tests(suite):
    for test in suite:
        if isinstance(test, unittest.TestSuite):
            yield from iter_tests(test)
        else:
            yield test


start, pattern, top = sys.argv[1], sys.argv[2], sys.argv[3] or None
suite = unittest.TestLoader().discover(start, pattern=pattern, top_level_dir=top)
for test in iter_tests(suite):
    print(test.id())
"""

_LOADER_FAILURE_PREFIXES = (
    "unittest.loader._FailedTest.",
    "unittest.loader.ModuleImportFailure.",
)
_TEST_ID = re.compile(r"^[A-Za-z_]\w*(?:\.[A-Za-z_]\w*){2,}$")
_HEADER = re.compile(r"^(?P<name>\S+) \((?P<cls>[\w.]+)\)(?P<tail>.*)$")
_STATUS = re.compile(
    r"^(?P<status>ok|FAIL|ERROR|expected failure|unexpected success"
    r"|skipped(?: (?P<reason>.*))?)$"
)
_SEPARATOR = re.compile(r"^(?:={70}|-{70})$")

STATUS_TO_OUTCOME: Mapping[str, Outcome] = {
    "ok": "pass",
    "FAIL": "fail",
    "ERROR": "error",
    "expected failure": "pass",
    "unexpected success": "fail",
    "skipped": "skipped",
}


def top_level_directory(extra_args: Sequence[str]) -> str:
    """Directory test ids are relative to.

    Like ``unittest discover``, the start directory doubles as the top level
    directory when none is given.
    """
    return (
        option_value(extra_args, *TOP_LEVEL_OPTIONS)
        or option_value(extra_args, *START_OPTIONS)
        or DEFAULT_START_DIRECTORY
    )


@dataclass(frozen=True, kw_only=True)
class UnittestAdapter(FrameworkAdapter):
    """Adapter for ``python -m unittest``.

    Addresses are dotted test ids (``pkg.module.Class.method``). Results are
    read from the verbose text runner output since unittest has no report
    format of its own.
    """

    config: UnittestConfig

    @classmethod
    def from_config(cls, config: UnittestConfig) -> "UnittestAdapter":
        return cls(config=config)

    def build_discovery_command(
        self, working_dir: Path, extra_args: Sequence[str]
    ) -> Command:
        return Command(
            executable=self.config.python,
            args=[
                "-c",
                DISCOVERY_SCRIPT,
                option_value(extra_args, *START_OPTIONS) or DEFAULT_START_DIRECTORY,
                option_value(extra_args, *PATTERN_OPTIONS) or DEFAULT_PATTERN,
                option_value(extra_args, *TOP_LEVEL_OPTIONS) or "",
            ],
            cwd=working_dir,
        )

    def parse_discovery_output(
        self, raw: RawOutput, working_dir: Path, extra_args: Sequence[str]
    ) -> DiscoveryParse:
        top_level = PurePosixPath(top_level_directory(extra_args))
        records: list[DiscoveryRecord] = []
        malformed = 0

        for line in raw.stdout.splitlines():
            test_id = line.strip()
            if not test_id:
                continue
            if test_id.startswith(_LOADER_FAILURE_PREFIXES):
                malformed += 1
                log.warning("unittest could not load %s", test_id.rsplit(".", 1)[-1])
                continue
            if _TEST_ID.match(test_id) is None:
                malformed += 1
                log.warning("Skipping unparsable unittest id: %s", test_id)
                continue

            module, class_name, method = test_id.rsplit(".", 2)
            file_path = top_level.joinpath(*module.split(".")).with_suffix(".py")
            records.append(
                DiscoveryRecord(
                    file_path=file_path.as_posix(),
                    file_address=module,
                    module=module,
                    class_names=(class_name,),
                    suite_addresses=(f"{module}.{class_name}",),
                    function_name=method,
                    address=test_id,
                )
            )

        return DiscoveryParse(records=records, malformed=malformed)

    def build_run_command(
        self,
        working_dir: Path,
        addresses: Sequence[str] | None,
        extra_args: Sequence[str],
        report_dir: Path,
        *,
        rerun_failed: bool = False,
    ) -> Command:
        passthrough = strip_options(
            extra_args, *START_OPTIONS, *PATTERN_OPTIONS, *TOP_LEVEL_OPTIONS
        )
        if addresses is not None:
            # Test ids are only importable from the top level directory.
            return Command(
                executable=self.config.python,
                args=["-m", "unittest", "-v", *passthrough, *addresses],
                cwd=working_dir / top_level_directory(extra_args),
            )

        args = [
            "-m",
            "unittest",
            "discover",
            "-v",
            *passthrough,
            "-s",
            option_value(extra_args, *START_OPTIONS) or DEFAULT_START_DIRECTORY,
            "-p",
            option_value(extra_args, *PATTERN_OPTIONS) or DEFAULT_PATTERN,
        ]
        if top_level := option_value(extra_args, *TOP_LEVEL_OPTIONS):
            args += ["-t", top_level]
        return Command(executable=self.config.python, args=args, cwd=working_dir)

    def parse_run_output(self, raw: RawOutput) -> RunParse:
        outcomes: list[RunOutcome] = []
        malformed = 0
        pending: tuple[str, str] | None = None

        for line in raw.stderr.splitlines():
            line = line.rstrip()
            if _SEPARATOR.match(line):
                break

            if (header := _HEADER.match(line)) is not None:
                if pending is not None:
                    malformed += 1
                    log.warning("No result for %s (%s)", *pending)
                pending = (header.group("name"), header.group("cls"))
                tail = header.group("tail")
                if " ... " not in tail:
                    continue
                line = tail.rpartition(" ... ")[2]
            elif pending is not None and " ... " in line:
                line = line.rpartition(" ... ")[2]

            if pending is None or (status := _STATUS.match(line.strip())) is None:
                continue

            name, class_name = pending
            pending = None
            reason = status.group("reason")
            label = "skipped" if reason is not None else status.group("status")
            outcomes.append(
                RunOutcome(
                    class_name=class_name.removesuffix(f".{name}"),
                    name=name,
                    outcome=STATUS_TO_OUTCOME[label],
                    message=reason.strip("'") if reason is not None else None,
                )
            )

        if pending is not None:
            malformed += 1
            log.warning("No result for %s (%s)", *pending)
        return RunParse(outcomes=outcomes, malformed=malformed)
