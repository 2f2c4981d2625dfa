"""nose framework module."""

from testpilot.frameworks.nose.adapter import NoseAdapter
from testpilot.frameworks.nose.config import NoseConfig
from testpilot.frameworks.nose.manifest import nose_manifest

__all__ = ["NoseAdapter", "NoseConfig", "nose_manifest"]
