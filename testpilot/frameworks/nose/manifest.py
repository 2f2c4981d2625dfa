"""nose framework manifest."""

from testpilot.frameworks.manifest import FrameworkManifest
from testpilot.frameworks.nose.adapter import NoseAdapter
from testpilot.frameworks.nose.config import NoseConfig

nose_manifest = FrameworkManifest(
    key="nose",
    config_cls=NoseConfig,
    adapter_factory=NoseAdapter.from_config,
)
