"""
SSH Connector using asyncssh.
"""
import asyncio
import logging
from pathlib import Path
from typing import Any, Dict, Optional

import asyncssh

from fleetreach.config import settings
from fleetreach.errors import TransportError
from fleetreach.targets.models import Target

logger = logging.getLogger(__name__)

DEFAULT_KEYS = ("id_rsa", "id_ed25519", "id_ecdsa")


class SshConnector:
    """
    Checks that a target completes an SSH handshake and authentication.

    Each attempt opens a new connection and closes it straight away. Target
    options understood here: ``private-key``, ``password``,
    ``host-key-check`` (default True) and ``connect-timeout``.
    """
    name: str = "ssh"

    def __init__(self, timeout_s: Optional[float] = None):
        self.timeout_s = timeout_s if timeout_s is not None else settings.CONNECT_TIMEOUT

    def _connect_kwargs(self, target: Target) -> Dict[str, Any]:
        options = target.options
        connect_kwargs: Dict[str, Any] = {
            "host": target.host,
            "port": target.port or 22,
            "connect_timeout": float(options.get("connect-timeout", self.timeout_s)),
        }
        if target.user:
            connect_kwargs["username"] = target.user
        if not options.get("host-key-check", True):
            connect_kwargs["known_hosts"] = None

        private_key = options.get("private-key")
        if private_key:
            key_path = Path(private_key).expanduser()
            if not key_path.exists():
                raise TransportError(f"SSH private key not found: {key_path}")
            connect_kwargs["client_keys"] = [str(key_path)]
        elif options.get("password"):
            connect_kwargs["password"] = options["password"]
        else:
            available_keys = [
                str(path) for path in (Path.home() / ".ssh" / name for name in DEFAULT_KEYS)
                if path.exists()
            ]
            if available_keys:
                connect_kwargs["client_keys"] = available_keys
        return connect_kwargs

    async def connect(self, target: Target) -> None:
        connect_kwargs = self._connect_kwargs(target)
        where = f"{target.host}:{connect_kwargs['port']}"
        try:
            conn = await asyncssh.connect(**connect_kwargs)
        except asyncio.TimeoutError as e:
            raise TransportError(f"SSH connection to {where} timed out") from e
        except (asyncssh.Error, OSError) as e:
            raise TransportError(f"SSH connection to {where} failed: {e}") from e

        conn.close()
        try:
            await conn.wait_closed()
        except (asyncssh.Error, OSError) as e:
            logger.debug("Error closing SSH connection to %s: %s", where, e)
