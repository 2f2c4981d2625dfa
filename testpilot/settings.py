"""Configuration providers consulted at the start of every operation."""

from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Protocol

from testpilot.settings_loader import load_settings


class ConfigurationProvider(Protocol):
    """Supplies the workspace root and per framework configuration."""

    def workspace_root(self) -> Path:
        """Return the root all test paths are relative to."""

    def framework_config(self, framework: str) -> Mapping[str, Any]:
        """Return raw configuration for ``framework`` (e.g. ``{"args": [...]}``)."""


@dataclass(kw_only=True)
class StaticConfigurationProvider:
    """In-memory configuration, changed with ``update``."""

    root: Path
    configs: dict[str, dict[str, Any]] = field(default_factory=dict)

    def workspace_root(self) -> Path:
        return self.root

    def framework_config(self, framework: str) -> Mapping[str, Any]:
        return dict(self.configs.get(framework, {}))

    def update(self, framework: str, **values: Any) -> None:
        self.configs.setdefault(framework, {}).update(values)


@dataclass(frozen=True, kw_only=True)
class FileConfigurationProvider:
    """Configuration read from the root's testpilot.yaml on every call."""

    root: Path

    def workspace_root(self) -> Path:
        return self.root

    def framework_config(self, framework: str) -> Mapping[str, Any]:
        return dict(load_settings(self.root).frameworks.get(framework, {}))
