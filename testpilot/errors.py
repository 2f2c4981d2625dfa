"""Errors surfaced by the test manager."""


class TestManagerError(Exception):
    """Base class for failures of a whole discovery or run operation."""

    __test__ = False


class BusyError(TestManagerError):
    """Raised when an operation is requested while another is in flight."""


class DisposedError(TestManagerError):
    """Raised when a disposed manager is used."""


class EmptySelectionError(TestManagerError):
    """Raised when a run is requested with nothing selected."""


class EmptyFailureSetError(TestManagerError):
    """Raised when re-running failures but none are recorded.

    Callers usually treat this as "nothing to do" rather than a failure.
    """


class DiscoveryFailedError(TestManagerError):
    """Raised when discovery could not launch or produced only garbage."""


class ProcessLaunchFailedError(TestManagerError):
    """Raised when the test framework executable cannot be started."""
