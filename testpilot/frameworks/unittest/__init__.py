"""unittest framework module."""

from testpilot.frameworks.unittest.adapter import UnittestAdapter
from testpilot.frameworks.unittest.config import UnittestConfig
from testpilot.frameworks.unittest.manifest import unittest_manifest

__all__ = ["UnittestAdapter", "UnittestConfig", "unittest_manifest"]
