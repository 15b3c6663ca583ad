"""
PuppetDB query client.

Sends PQL/AST queries to ``<server>/pdb/query/v4`` and returns the matching
certnames. Authentication is an RBAC token header, a client certificate, or
both. Clients are constructed explicitly and passed to whatever needs them.
"""

import logging
import ssl
import time
from typing import Any, Dict, List, Optional, Protocol
from urllib.parse import urlsplit, urlunsplit

import httpx

from fleetreach.config import PuppetDBConfig, settings
from fleetreach.errors import ConfigurationError, DataShapeError, TransportError

logger = logging.getLogger(__name__)

QUERY_PATH = "/pdb/query/v4"
CERTNAME_FIELD = "certname"


class QueryService(Protocol):
    """Anything that can turn an inventory query into node identifiers."""

    async def query_certnames(self, query: Any) -> List[str]:
        """
        Run a query and return the unique matching identifiers in order.

        An empty or missing query returns an empty list.
        """
        ...


def normalize_server_url(url: str, default_port: int = settings.PUPPETDB_DEFAULT_PORT) -> str:
    """Strip trailing slashes and add the default port when none is given."""
    parts = urlsplit(url.strip())
    if not parts.scheme or not parts.hostname:
        raise ConfigurationError(f"Invalid PuppetDB URL: {url!r}")
    netloc = parts.netloc
    if parts.port is None:
        netloc = f"{netloc}:{default_port}"
    return urlunsplit((parts.scheme, netloc, parts.path.rstrip("/"), "", ""))


def extract_certnames(records: Any) -> List[str]:
    """
    Pull unique certnames out of a query response, keeping first-seen order.

    Raises:
        DataShapeError: If the response is not a list of records, or a record
            has no ``certname`` field.
    """
    if not isinstance(records, list):
        raise DataShapeError(
            f"Query results must be a list of records, got {type(records).__name__}"
        )

    certnames: Dict[str, None] = {}
    for record in records:
        if not isinstance(record, dict):
            raise DataShapeError(f"Query results must be records, got {type(record).__name__}")
        if CERTNAME_FIELD not in record:
            fields = list(record.keys())
            raise DataShapeError(
                f"Query results did not contain a '{CERTNAME_FIELD}' field: got {', '.join(fields)}",
                fields=fields,
            )
        certnames.setdefault(record[CERTNAME_FIELD], None)
    return list(certnames)


class PuppetDBClient:
    """
    An asynchronous PuppetDB client.

    Use as an async context manager, or call ``close()`` when done.
    """

    def __init__(
        self,
        server_url: str,
        *,
        cacert: Optional[str] = None,
        token: Optional[str] = None,
        cert: Optional[str] = None,
        key: Optional[str] = None,
        timeout_s: float = settings.QUERY_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize the PuppetDB client.

        Args:
            server_url: Base URL of the PuppetDB server.
            cacert: CA certificate used to verify the server.
            token: RBAC token sent in the X-Authentication header.
            cert: Client certificate for mutual TLS.
            key: Private key matching ``cert``.
            timeout_s: Request timeout in seconds.
            transport: Optional httpx transport, mainly for tests.
        """
        self.server_url = normalize_server_url(server_url)
        self.cacert = cacert
        self.token = token
        self.cert = cert
        self.key = key
        self.timeout_s = timeout_s
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    @classmethod
    def from_config(cls, config: PuppetDBConfig, **kwargs: Any) -> "PuppetDBClient":
        return cls(
            config.server_url,
            cacert=config.cacert,
            token=config.token,
            cert=config.cert,
            key=config.key,
            timeout_s=config.timeout_s,
            **kwargs,
        )

    @property
    def query_url(self) -> str:
        return f"{self.server_url}{QUERY_PATH}"

    def headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.token:
            headers["X-Authentication"] = self.token
        return headers

    def _ssl_context(self) -> Any:
        if not (self.cacert or self.cert):
            return True
        try:
            context = ssl.create_default_context(cafile=self.cacert)
            if self.cert:
                context.load_cert_chain(self.cert, self.key)
        except (OSError, ssl.SSLError) as e:
            raise ConfigurationError(f"Could not load TLS files for PuppetDB: {e}") from e
        return context

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                headers=self.headers(),
                verify=self._ssl_context(),
                timeout=self.timeout_s,
                transport=self._transport,
            )
        return self._client

    async def query_certnames(self, query: Any) -> List[str]:
        """
        Run ``query`` and return the unique certnames it matched.

        Raises:
            TransportError: If the server cannot be reached or answers with a
                non-200 status (the raw body is kept on the error).
            DataShapeError: If the answer is not a list of certname records.
            ConfigurationError: If the CA, certificate or key file can't be loaded.
        """
        if not query:
            return []

        client = self._get_client()
        start_time = time.monotonic()
        try:
            response = await client.post(self.query_url, json={"query": query})
        except httpx.RequestError as e:
            logger.error("PuppetDB query to %s failed: %s", self.query_url, e)
            raise TransportError(f"Failed to query PuppetDB: {e}") from e
        latency_ms = int((time.monotonic() - start_time) * 1000)

        if response.status_code != 200:
            logger.warning(
                "PuppetDB query -> %s in %dms", response.status_code, latency_ms
            )
            raise TransportError(
                f"Failed to query PuppetDB: {response.text}",
                status=response.status_code,
                body=response.text,
            )

        try:
            records = response.json()
        except ValueError as e:
            raise DataShapeError(f"PuppetDB returned a body that is not JSON: {e}") from e

        certnames = extract_certnames(records)
        logger.info(
            "PuppetDB query matched %d node(s) in %dms", len(certnames), latency_ms
        )
        return certnames

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "PuppetDBClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()
