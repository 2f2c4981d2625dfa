"""Configuration for the unittest framework."""

from collections.abc import Sequence

from pydantic import BaseModel


class UnittestConfig(BaseModel):
    """Configuration for the unittest framework."""

    args: Sequence[str] = ()
    python: str = "python"
