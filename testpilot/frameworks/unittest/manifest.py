"""unittest framework manifest."""

from testpilot.frameworks.manifest import FrameworkManifest
from testpilot.frameworks.unittest.adapter import UnittestAdapter
from testpilot.frameworks.unittest.config import UnittestConfig

unittest_manifest = FrameworkManifest(
    key="unittest",
    config_cls=UnittestConfig,
    adapter_factory=UnittestAdapter.from_config,
)
