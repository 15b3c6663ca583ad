"""
Configuration management for fleetreach.

Two layers live here:

- ``Settings`` uses Pydantic's BaseSettings to read process-wide defaults
  from ``FLEETREACH_*`` environment variables (or a ``.env`` file).
- ``PuppetDBConfig`` is the resolved configuration for one query-service
  client. ``load_puppetdb_config`` builds it with an explicit precedence:
  command-line values, then the puppetdb.conf file, then default paths that
  exist on disk.
"""
import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from fleetreach.errors import ConfigurationError

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """
    Application settings.

    These settings are loaded from environment variables.
    """

    # Query service discovery
    PUPPETDB_CONFIG: str = "~/.puppetlabs/client-tools/puppetdb.conf"
    PUPPETDB_TOKEN: str = "~/.puppetlabs/token"
    PUPPETDB_DEFAULT_PORT: int = 8081
    QUERY_TIMEOUT: float = 30.0  # seconds

    # Availability polling
    WAIT_TIME: float = 120.0  # seconds
    RETRY_INTERVAL: float = 1.0  # seconds
    CONNECT_TIMEOUT: float = 10.0  # seconds, per attempt

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        env_prefix="FLEETREACH_",
        extra="ignore",
    )


settings = Settings()


class PuppetDBConfig(BaseModel):
    """Resolved connection settings for the PuppetDB query service."""

    server_urls: List[str]
    cacert: Optional[str] = None
    cert: Optional[str] = None
    key: Optional[str] = None
    token: Optional[str] = Field(default=None, repr=False)
    timeout_s: float = settings.QUERY_TIMEOUT

    @field_validator("server_urls", mode="before")
    @classmethod
    def listify_urls(cls, v):
        if isinstance(v, str):
            return [v]
        return v

    @field_validator("server_urls")
    @classmethod
    def require_url(cls, v):
        if not v:
            raise ValueError("at least one server URL is required")
        return v

    @field_validator("cacert", "cert", "key")
    @classmethod
    def expand_path(cls, v):
        if v:
            return str(Path(v).expanduser())
        return v

    @model_validator(mode="after")
    def cert_and_key_together(self):
        if bool(self.cert) != bool(self.key):
            raise ValueError("'cert' and 'key' must be specified together")
        return self

    @property
    def server_url(self) -> str:
        """The URL the client talks to (the first configured one)."""
        return self.server_urls[0]


def _read_config_file(path: Path) -> Dict[str, Any]:
    try:
        raw = path.read_text()
    except OSError as e:
        raise ConfigurationError(f"Could not read PuppetDB config file {path}: {e}") from e
    try:
        document = json.loads(raw)
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"Could not parse PuppetDB config file {path}: {e}") from e
    if not isinstance(document, dict):
        raise ConfigurationError(f"PuppetDB config file {path} must contain a JSON object")
    section = document.get("puppetdb", {})
    if not isinstance(section, dict):
        raise ConfigurationError(f"'puppetdb' section of {path} must be a JSON object")
    return section


def _read_token(path: Path) -> str:
    try:
        return path.read_text().strip()
    except OSError as e:
        raise ConfigurationError(f"Could not read token file {path}: {e}") from e


def load_puppetdb_config(
    config_file: Optional[Union[str, Path]] = None,
    overrides: Optional[Dict[str, Any]] = None,
    *,
    default_config: Optional[Union[str, Path]] = None,
    default_token: Optional[Union[str, Path]] = None,
) -> PuppetDBConfig:
    """
    Resolve PuppetDB client settings.

    Args:
        config_file: Explicit puppetdb.conf path. It must exist when given.
        overrides: Values from the command line (``server_urls``, ``cacert``,
            ``cert``, ``key``, ``token-file``). ``None`` values are ignored.
        default_config: Config path consulted when no file is given and it exists.
        default_token: Token path consulted when no token file is configured
            and it exists.

    Returns:
        The validated configuration.

    Raises:
        ConfigurationError: If a file cannot be read or the result is invalid.
    """
    overrides = {k: v for k, v in (overrides or {}).items() if v is not None}
    default_config = Path(default_config or settings.PUPPETDB_CONFIG).expanduser()
    default_token = Path(default_token or settings.PUPPETDB_TOKEN).expanduser()

    if config_file is not None:
        path = Path(config_file).expanduser()
        if not path.exists():
            raise ConfigurationError(f"PuppetDB config file {path} does not exist")
        file_values = _read_config_file(path)
    elif default_config.exists():
        logger.debug("Using default PuppetDB config file %s", default_config)
        file_values = _read_config_file(default_config)
    else:
        file_values = {}

    merged = {**file_values, **overrides}

    token_file = merged.pop("token-file", None)
    token = merged.pop("token", None)
    if token_file:
        token = _read_token(Path(token_file).expanduser())
    elif token is None and default_token.exists():
        logger.debug("Using default token file %s", default_token)
        token = _read_token(default_token)

    if "server_urls" not in merged:
        raise ConfigurationError(
            "No PuppetDB server URL configured: pass --url or set 'server_urls' in the config file"
        )

    try:
        return PuppetDBConfig(
            server_urls=merged["server_urls"],
            cacert=merged.get("cacert"),
            cert=merged.get("cert"),
            key=merged.get("key"),
            token=token,
        )
    except ValidationError as e:
        errors = "; ".join(
            f"{'.'.join(str(p) for p in err['loc']) or 'config'}: {err['msg']}" for err in e.errors()
        )
        raise ConfigurationError(f"Invalid PuppetDB configuration: {errors}") from e
