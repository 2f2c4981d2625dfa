"""Framework manifest definition for the plugin system."""

from collections.abc import Callable
from dataclasses import dataclass
from typing import Generic, TypeVar

from pydantic import BaseModel

from testpilot.frameworks.base import FrameworkAdapter

ConfigT = TypeVar("ConfigT", bound=BaseModel)


@dataclass(frozen=True, kw_only=True)
class FrameworkManifest(Generic[ConfigT]):
    """Manifest describing a test framework plugin.

    The manifest contains references to the configuration class and the
    adapter factory so frameworks can be loaded lazily from their key.
    """

    key: str
    config_cls: type[ConfigT]
    adapter_factory: Callable[[ConfigT], FrameworkAdapter]
