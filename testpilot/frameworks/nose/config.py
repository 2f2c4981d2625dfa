"""Configuration for the nose framework."""

from collections.abc import Sequence

from pydantic import BaseModel


class NoseConfig(BaseModel):
    """Configuration for the nose framework."""

    args: Sequence[str] = ()
    executable: str = "nosetests"
