"""
HTTP layer for talking to the tunnel endpoint.

Provides the caching client, the aiohttp origin transport, and the
Cloudflare Access credential helpers.
"""

from dbconnect.http.auth import credential_headers, is_access_redirect
from dbconnect.http.client import HttpClient
from dbconnect.http.keys import body_digest, cache_key
from dbconnect.http.transport import AiohttpTransport, Transport

__all__ = [
    "HttpClient",
    "Transport",
    "AiohttpTransport",
    "credential_headers",
    "is_access_redirect",
    "body_digest",
    "cache_key",
]
