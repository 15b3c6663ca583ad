"""
TCP Connector.
"""
import asyncio
import logging
from typing import Optional

from fleetreach.config import settings
from fleetreach.errors import TransportError
from fleetreach.targets.models import Target

logger = logging.getLogger(__name__)


class TcpConnector:
    """
    Checks that a target accepts TCP connections on its port.

    The connection is closed as soon as it is established.
    """
    name: str = "tcp"

    def __init__(self, default_port: int = 22, timeout_s: Optional[float] = None):
        self.default_port = default_port
        self.timeout_s = timeout_s if timeout_s is not None else settings.CONNECT_TIMEOUT

    async def connect(self, target: Target) -> None:
        port = target.port or self.default_port
        try:
            _, writer = await asyncio.wait_for(
                asyncio.open_connection(target.host, port),
                timeout=self.timeout_s,
            )
        except asyncio.TimeoutError as e:
            raise TransportError(
                f"Connection to {target.host}:{port} timed out after {self.timeout_s:g}s"
            ) from e
        except OSError as e:
            raise TransportError(f"Connection to {target.host}:{port} failed: {e}") from e

        writer.close()
        try:
            await writer.wait_closed()
        except OSError as e:
            logger.debug("Error closing connection to %s:%s: %s", target.host, port, e)
