from .client import PuppetDBClient, QueryService, extract_certnames, normalize_server_url

__all__ = ["PuppetDBClient", "QueryService", "extract_certnames", "normalize_server_url"]
