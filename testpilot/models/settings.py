"""Models for workspace settings loaded from testpilot.yaml files."""

from collections.abc import Mapping
from typing import Any

from pydantic import Field

from testpilot.models.base import Model


class WorkspaceSettings(Model):
    """Settings of one workspace root."""

    framework: str | None = Field(
        default=None, description="Framework key used when none is given"
    )
    frameworks: Mapping[str, Mapping[str, Any]] = Field(
        default_factory=dict,
        description="Per framework configuration, validated by the framework",
    )
