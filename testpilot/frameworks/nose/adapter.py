"""nose framework adapter."""

import logging
import os
import re
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path

from testpilot.frameworks.base import FrameworkAdapter, option_value
from testpilot.frameworks.nose.config import NoseConfig
from testpilot.junit import parse_junit_report
from testpilot.models.records import (
    Command,
    DiscoveryParse,
    DiscoveryRecord,
    RawOutput,
    RunParse,
)

log = logging.getLogger(__name__)

# nose's own default for testMatch
DEFAULT_TEST_MATCH = r"(?:^|[\b_\.\-])[Tt]est"

REPORT_FILE_NAME = "nosetests.xml"

_SELECTOR_LINE = re.compile(r"nose\.selector: DEBUG: (?P<kind>want\w+) (?P<rest>.*)$")
_MODULE = re.compile(r"^<module '(?P<module>[\w.]+)' from '(?P<path>[^']+)'>\? True$")
_CLASS = re.compile(r"^<class '(?P<cls>[\w.]+)'>\? True$")
_METHOD = re.compile(
    r"^<(?:unbound method|function|bound method) (?P<qualname>[\w.]+)"
    r"(?: at 0x[0-9a-fA-F]+| of .+)?>\? True$"
)
_FUNCTION = re.compile(r"^<function (?P<name>\w+) at 0x[0-9a-fA-F]+>\? True$")
_WANTED_KINDS = frozenset({"wantModule", "wantClass", "wantMethod", "wantFunction"})


@dataclass(frozen=True, kw_only=True)
class NoseAdapter(FrameworkAdapter):
    """Adapter for ``nosetests``.

    Discovery reads the selector debug log written by ``--collect-only -vvv``.
    Results come from the xunit report. Addresses use nose's
    ``path.py:Class.method`` syntax.
    """

    config: NoseConfig

    @classmethod
    def from_config(cls, config: NoseConfig) -> "NoseAdapter":
        return cls(config=config)

    def build_discovery_command(
        self, working_dir: Path, extra_args: Sequence[str]
    ) -> Command:
        return Command(
            executable=self.config.executable,
            args=["--collect-only", "-vvv", *extra_args],
            cwd=working_dir,
        )

    def parse_discovery_output(
        self, raw: RawOutput, working_dir: Path, extra_args: Sequence[str]
    ) -> DiscoveryParse:
        base_dir = working_dir / (option_value(extra_args, "-w", "--where") or ".")
        test_match = re.compile(
            option_value(extra_args, "-m", "--match", "--testmatch")
            or DEFAULT_TEST_MATCH
        )

        records: list[DiscoveryRecord] = []
        malformed = 0
        module: str | None = None
        file_path: str | None = None
        class_name: str | None = None

        for line in (raw.stderr + raw.stdout).splitlines():
            if (selector := _SELECTOR_LINE.search(line)) is None:
                continue
            kind, rest = selector.group("kind"), selector.group("rest").strip()
            if kind not in _WANTED_KINDS or not rest.endswith("? True"):
                continue

            if kind == "wantModule":
                if (match := _MODULE.match(rest)) is None:
                    malformed += 1
                    log.warning("Skipping unparsable nose line: %s", line)
                    continue
                module = match.group("module")
                file_path = _relative_source(match.group("path"), working_dir)
                class_name = None
                if not _matches_filter(file_path, working_dir, base_dir, test_match):
                    log.debug("Excluding %s, does not match %s", file_path, test_match)
                    module = file_path = None
                continue

            if module is None or file_path is None:
                continue

            if kind == "wantClass":
                if (match := _CLASS.match(rest)) is None:
                    malformed += 1
                    log.warning("Skipping unparsable nose line: %s", line)
                    continue
                class_name = match.group("cls").removeprefix(f"{module}.")
            elif kind == "wantMethod":
                match = _METHOD.match(rest)
                if match is None or class_name is None:
                    malformed += 1
                    log.warning("Skipping unparsable nose line: %s", line)
                    continue
                owner, _, method = match.group("qualname").rpartition(".")
                if owner.rpartition(".")[2] != class_name.rpartition(".")[2]:
                    malformed += 1
                    log.warning("Method %s outside of class %s", method, class_name)
                    continue
                records.append(
                    DiscoveryRecord(
                        file_path=file_path,
                        file_address=file_path,
                        module=module,
                        class_names=(class_name,),
                        suite_addresses=(f"{file_path}:{class_name}",),
                        function_name=method,
                        address=f"{file_path}:{class_name}.{method}",
                    )
                )
            else:
                if (match := _FUNCTION.match(rest)) is None:
                    malformed += 1
                    log.warning("Skipping unparsable nose line: %s", line)
                    continue
                name = match.group("name")
                records.append(
                    DiscoveryRecord(
                        file_path=file_path,
                        file_address=file_path,
                        module=module,
                        function_name=name,
                        address=f"{file_path}:{name}",
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
        report_path = report_dir / REPORT_FILE_NAME
        base_dir = working_dir / (option_value(extra_args, "-w", "--where") or ".")
        relative = [
            _relative_address(address, working_dir, base_dir)
            for address in addresses or ()
        ]
        return Command(
            executable=self.config.executable,
            args=[
                "--with-xunit",
                f"--xunit-file={report_path}",
                *extra_args,
                *relative,
            ],
            cwd=working_dir,
            report_path=report_path,
        )

    def parse_run_output(self, raw: RawOutput) -> RunParse:
        if raw.report is None:
            log.warning("nose wrote no xunit report (exit code %d)", raw.exit_code)
            return RunParse(outcomes=())
        return parse_junit_report(raw.report)


def _relative_source(path: str, working_dir: Path) -> str:
    """Map a module's ``__file__`` to a ``.py`` path relative to the root."""
    if path.endswith((".pyc", ".pyo")):
        path = path[:-1]
    return Path(os.path.relpath(path, working_dir)).as_posix()


def _matches_filter(
    file_path: str, working_dir: Path, base_dir: Path, test_match: re.Pattern[str]
) -> bool:
    """Apply nose's name pattern to each directory below base_dir and the file."""
    relative = Path(os.path.relpath(working_dir / file_path, base_dir))
    names = [part for part in relative.parent.parts if part not in (".", "..")]
    names.append(relative.stem)
    return all(test_match.search(name) for name in names)


def _relative_address(address: str, working_dir: Path, base_dir: Path) -> str:
    """Rewrite a root relative address for nose, which resolves it from ``-w``."""
    path, sep, rest = address.partition(":")
    relative = Path(os.path.relpath(working_dir / path, base_dir)).as_posix()
    return f"{relative}{sep}{rest}"
