"""Configuration for the pytest framework."""

from collections.abc import Sequence

from pydantic import BaseModel


class PytestConfig(BaseModel):
    """Configuration for the pytest framework."""

    args: Sequence[str] = ()
    executable: str = "pytest"
