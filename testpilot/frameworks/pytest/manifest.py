"""pytest framework manifest."""

from testpilot.frameworks.manifest import FrameworkManifest
from testpilot.frameworks.pytest.adapter import PytestAdapter
from testpilot.frameworks.pytest.config import PytestConfig

pytest_manifest = FrameworkManifest(
    key="pytest",
    config_cls=PytestConfig,
    adapter_factory=PytestAdapter.from_config,
)
