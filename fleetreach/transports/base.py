"""
Base interface for connection attempts.
"""
from typing import Protocol

from fleetreach.targets.models import Target


class Connector(Protocol):
    """
    Protocol for a connector.

    A connector makes a single attempt to reach a target over some transport
    and reports the outcome. It does not retry; the availability poller does.
    """
    name: str

    async def connect(self, target: Target) -> None:
        """
        Attempts one connection to the target, then releases it.

        Returns normally when the target accepted the connection.

        Raises:
            TransportError: If the target could not be reached. The attempt
                must be bounded by the connector's own timeout.
        """
        ...
