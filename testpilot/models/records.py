"""Normalized records exchanged between framework adapters and the engine."""

from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Literal, TypeAlias

from pydantic import Field, model_validator

from testpilot.models.base import Model

Outcome: TypeAlias = Literal["pass", "fail", "error", "skipped"]


class DiscoveryRecord(Model):
    """A single discovered test function, as reported by an adapter."""

    file_path: str = Field(..., description="Test file path relative to the root")
    file_address: str = Field(..., description="Address selecting the whole file")
    module: str = Field(..., description="Dotted module path of the file")
    class_names: Sequence[str] = Field(
        default_factory=tuple, description="Enclosing classes, outermost first"
    )
    suite_addresses: Sequence[str] = Field(
        default_factory=tuple, description="Address of each enclosing class"
    )
    function_name: str = Field(..., description="Display name of the function")
    address: str = Field(..., description="Address selecting exactly this function")

    @model_validator(mode="after")
    def _check_suite_addresses(self) -> "DiscoveryRecord":
        if len(self.suite_addresses) != len(self.class_names):
            raise ValueError("suite_addresses must match class_names")
        return self

    @property
    def xml_class_name(self) -> str:
        """Class identifier the framework reports in machine-readable output."""
        return ".".join([self.module, *self.class_names])


@dataclass(frozen=True, kw_only=True)
class DiscoveryParse:
    """Records found in discovery output plus the count of skipped lines."""

    records: Sequence[DiscoveryRecord]
    malformed: int = 0


@dataclass(frozen=True, kw_only=True)
class RunOutcome:
    """Outcome of one executed test as reported by the framework."""

    class_name: str | None
    name: str
    outcome: Outcome
    duration: float | None = None
    message: str | None = None


@dataclass(frozen=True, kw_only=True)
class RunParse:
    """Outcomes found in run output plus the count of skipped entries."""

    outcomes: Sequence[RunOutcome]
    malformed: int = 0


@dataclass(frozen=True, kw_only=True)
class Command:
    """External command to launch."""

    executable: str
    args: Sequence[str]
    cwd: Path
    report_path: Path | None = None


@dataclass(frozen=True, kw_only=True)
class RawOutput:
    """Everything a finished process produced."""

    stdout: str
    stderr: str
    exit_code: int
    report: str | None = None
