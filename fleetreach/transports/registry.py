"""
Connector Registry.

Maps transport names to connectors. A registry is itself a connector: it
hands each target to the connector registered for ``target.transport``.
"""
import logging
from typing import Dict, Optional

from fleetreach.errors import TransportError
from fleetreach.targets.models import Target

from .base import Connector

logger = logging.getLogger(__name__)


class TransportRegistry:
    """A connector that dispatches on the target's transport."""
    name: str = "registry"

    def __init__(self, connectors: Optional[Dict[str, Connector]] = None):
        self._connectors: Dict[str, Connector] = dict(connectors or {})

    def register(self, name: str, connector: Connector) -> None:
        """
        Registers a connector for a transport name.
        """
        if name in self._connectors:
            logger.warning(f"Connector for transport '{name}' is being overridden.")
        self._connectors[name] = connector
        logger.debug(f"Registered connector: {name}")

    def get(self, name: str) -> Connector:
        connector = self._connectors.get(name)
        if connector is None:
            raise TransportError(f"Unknown transport: {name}")
        return connector

    @property
    def transports(self):
        return list(self._connectors)

    async def connect(self, target: Target) -> None:
        await self.get(target.transport).connect(target)


def default_registry() -> TransportRegistry:
    """
    Builds a registry with the built-in connectors.
    """
    from .ssh_adapter import SshConnector
    from .tcp_adapter import TcpConnector

    registry = TransportRegistry()
    registry.register("ssh", SshConnector())
    registry.register("tcp", TcpConnector())
    return registry
