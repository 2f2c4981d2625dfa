"""pytest framework adapter."""

import logging
import re
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path

from testpilot.frameworks.base import FrameworkAdapter, module_from_path
from testpilot.frameworks.pytest.config import PytestConfig
from testpilot.junit import parse_junit_report
from testpilot.models.records import (
    Command,
    DiscoveryParse,
    DiscoveryRecord,
    RawOutput,
    RunParse,
)

log = logging.getLogger(__name__)

REPORT_FILE_NAME = "pytest-junit.xml"

_NODE_ID = re.compile(r"^(?P<file>[^\s:][^:]*\.py)::(?P<rest>\S.*)$")


@dataclass(frozen=True, kw_only=True)
class PytestAdapter(FrameworkAdapter):
    """Adapter for ``pytest``; addresses are pytest node ids."""

    config: PytestConfig

    @classmethod
    def from_config(cls, config: PytestConfig) -> "PytestAdapter":
        return cls(config=config)

    def build_discovery_command(
        self, working_dir: Path, extra_args: Sequence[str]
    ) -> Command:
        return Command(
            executable=self.config.executable,
            args=["--collect-only", "-q", *extra_args],
            cwd=working_dir,
        )

    def parse_discovery_output(
        self, raw: RawOutput, working_dir: Path, extra_args: Sequence[str]
    ) -> DiscoveryParse:
        records: list[DiscoveryRecord] = []
        malformed = 0

        for line in raw.stdout.splitlines():
            line = line.strip()
            if "::" not in line:
                continue
            if (record := parse_node_id(line)) is None:
                malformed += 1
                log.warning("Skipping unparsable pytest node id: %s", line)
                continue
            records.append(record)

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
        return Command(
            executable=self.config.executable,
            args=[f"--junitxml={report_path}", *extra_args, *(addresses or ())],
            cwd=working_dir,
            report_path=report_path,
        )

    def parse_run_output(self, raw: RawOutput) -> RunParse:
        if raw.report is None:
            log.warning("pytest wrote no junit report (exit code %d)", raw.exit_code)
            return RunParse(outcomes=())
        return parse_junit_report(raw.report)


def parse_node_id(node_id: str) -> DiscoveryRecord | None:
    """Split ``path.py::Class::test`` into a discovery record."""
    if (match := _NODE_ID.match(node_id)) is None:
        return None
    file_path = match.group("file")
    *class_names, function_name = match.group("rest").split("::")
    if not function_name or not all(class_names):
        return None

    suite_addresses = [
        "::".join([file_path, *class_names[: depth + 1]])
        for depth in range(len(class_names))
    ]
    return DiscoveryRecord(
        file_path=file_path,
        file_address=file_path,
        module=module_from_path(file_path),
        class_names=tuple(class_names),
        suite_addresses=tuple(suite_addresses),
        function_name=function_name,
        address=node_id,
    )
