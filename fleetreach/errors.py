"""
Exception hierarchy for fleetreach.

Expansion errors (configuration, transport, data shape) abort the whole
operation and are reported once at the CLI boundary. Timeouts are scoped to a
single target and end up as that target's failure in a ResultSet.
"""
from typing import Any, List, Optional


class FleetReachError(Exception):
    """Base exception for fleetreach errors."""
    pass


class ConfigurationError(FleetReachError):
    """Bad arguments, unreadable input, or an invalid inventory/config shape."""
    pass


class TransportError(FleetReachError):
    """A request to the query service or a connection attempt failed."""

    def __init__(self, message: str, *, status: Optional[int] = None, body: Optional[str] = None):
        super().__init__(message)
        self.status = status
        self.body = body


class DataShapeError(FleetReachError):
    """The query service answered with data that breaks its contract."""

    def __init__(self, message: str, *, fields: Optional[List[str]] = None):
        super().__init__(message)
        self.fields = fields or []


class TargetTimeoutError(FleetReachError, TimeoutError):
    """A target did not accept a connection within the wait time."""

    def __init__(self, target: Any, wait_time: float, last_error: Optional[BaseException] = None):
        message = f"Timed out waiting for target {target} after {wait_time:g}s"
        if last_error is not None:
            message += f": {last_error}"
        super().__init__(message)
        self.target = target
        self.wait_time = wait_time
        self.last_error = last_error


class AggregateFailure(FleetReachError):
    """
    One or more targets failed and the caller did not ask to inspect them.

    Carries the full ResultSet so callers can still report per-target details.
    """

    def __init__(self, result_set: Any, description: str):
        failed = result_set.error_set
        names = ", ".join(failed.names)
        super().__init__(f"{description} failed on {len(failed)} target(s): {names}")
        self.result_set = result_set
        self.description = description
