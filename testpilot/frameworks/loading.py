"""Loading of test frameworks from entry points."""

import logging
from collections.abc import Sequence
from importlib.metadata import entry_points
from typing import Any

from testpilot.frameworks.manifest import FrameworkManifest

log = logging.getLogger(__name__)

ENTRY_POINT_GROUP = "testpilot.frameworks"


class FrameworkNotFoundError(Exception):
    """Raised when a framework is not found."""


def available_frameworks() -> Sequence[str]:
    """Names registered in the framework entry point group, sorted."""
    return sorted({entry.name for entry in entry_points(group=ENTRY_POINT_GROUP)})


def load_framework_manifest(key: str) -> FrameworkManifest[Any]:
    """Load a framework manifest by the name it is registered under.

    A manifest may be registered under several names (``nosetests`` is an
    alias of ``nose``). The returned manifest's own ``key`` is the canonical
    name used for configuration and caches.

    Args:
        key: The registered name, e.g. "nose", "nosetests", "pytest"

    Returns:
        The framework manifest instance

    Raises:
        FrameworkNotFoundError: If no framework is registered under the name,
            or the entry point does not refer to a framework manifest

    """
    for entry in entry_points(group=ENTRY_POINT_GROUP, name=key):
        manifest = entry.load()
        if not isinstance(manifest, FrameworkManifest):
            raise FrameworkNotFoundError(
                f"Entry point '{key}' ({entry.value}) is not a framework manifest"
            )
        if manifest.key != key:
            log.debug("Framework '%s' loaded through alias '%s'", manifest.key, key)
        return manifest

    raise FrameworkNotFoundError(
        f"Framework '{key}' not found. "
        f"Available frameworks: {list(available_frameworks())}"
    )
