"""pytest framework module."""

from testpilot.frameworks.pytest.adapter import PytestAdapter
from testpilot.frameworks.pytest.config import PytestConfig
from testpilot.frameworks.pytest.manifest import pytest_manifest

__all__ = ["PytestAdapter", "PytestConfig", "pytest_manifest"]
