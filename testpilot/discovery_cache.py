"""Persisted discovery results, one file per root and framework."""

import logging
from collections.abc import Sequence
from pathlib import Path

from pydantic import Field, ValidationError

from testpilot.models.base import Model
from testpilot.models.records import DiscoveryRecord

log = logging.getLogger(__name__)

CACHE_DIR_NAME = ".testpilot"


class DiscoverySnapshot(Model):
    """Records of one discovery pass and the arguments that produced them."""

    framework: str = Field(..., description="Framework key")
    args: Sequence[str] = Field(default_factory=tuple, description="Discovery args")
    records: Sequence[DiscoveryRecord] = Field(default_factory=tuple)


def cache_path(root: Path, framework: str) -> Path:
    return root / CACHE_DIR_NAME / f"{framework}-discovery.json"


def load_snapshot(
    root: Path, framework: str, args: Sequence[str]
) -> DiscoverySnapshot | None:
    """Return the cached snapshot if it was produced with the same arguments.

    A missing, unreadable or stale file is treated as no prior discovery.
    """
    path = cache_path(root, framework)
    try:
        snapshot = DiscoverySnapshot.model_validate_json(path.read_bytes())
    except FileNotFoundError:
        return None
    except (OSError, ValidationError) as e:
        log.warning("Ignoring unreadable discovery cache %s: %s", path, e)
        return None

    if snapshot.framework != framework or list(snapshot.args) != list(args):
        log.debug("Discovery cache %s was built with other arguments", path)
        return None
    return snapshot


def save_snapshot(root: Path, snapshot: DiscoverySnapshot) -> None:
    path = cache_path(root, snapshot.framework)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(snapshot.model_dump_json(indent=2))
    except OSError as e:
        log.warning("Could not write discovery cache %s: %s", path, e)
