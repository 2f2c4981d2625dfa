"""Load workspace settings from testpilot.yaml."""

from pathlib import Path

import yaml
from pydantic import ValidationError

from testpilot.models.settings import WorkspaceSettings

SETTINGS_FILE_NAME = "testpilot.yaml"


def load_settings(root: Path) -> WorkspaceSettings:
    """Load the settings of a workspace root.

    Args:
        root: Workspace root holding the settings file

    Returns:
        Parsed settings, defaults when the file is missing or empty

    Raises:
        ValueError: If the file is not valid YAML or does not match the schema

    """
    settings_file = root / SETTINGS_FILE_NAME
    if not settings_file.exists():
        return WorkspaceSettings()

    try:
        data = yaml.safe_load(settings_file.read_text())
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML in {settings_file}: {e}") from e

    if data is None:
        return WorkspaceSettings()

    try:
        return WorkspaceSettings.model_validate(data)
    except ValidationError as e:
        raise ValueError(f"Invalid settings schema in {settings_file}: {e}") from e
