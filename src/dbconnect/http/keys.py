"""
Request and cache key construction.

POST bodies are not part of a URL, so a POST is keyed by appending a
SHA-256 digest of its body to the request URL. Identical bodies sent
to the same path share a key.
"""

import hashlib
from collections.abc import Mapping
from urllib.parse import urljoin

from multidict import CIMultiDict

from dbconnect.core.models import RequestDescriptor

# Separates the request path from the body digest in POST cache keys
KEY_SEPARATOR = "/_/"


def resolve_url(base_url: str, path: str) -> str:
    """Join a request path onto the connection's base URL."""
    return urljoin(base_url, path)


def merge_headers(
    base: Mapping[str, str],
    extra: Mapping[str, str] | None = None,
) -> CIMultiDict:
    """Merge per-call headers with connection headers.

    Connection headers win on a (case-insensitive) name collision.
    """
    merged = CIMultiDict(extra or {})
    for name, value in base.items():
        merged[name] = value
    return merged


def body_digest(body: bytes | str | None) -> str:
    """Return the lowercase hex SHA-256 digest of a request body."""
    if body is None:
        body = b""
    if isinstance(body, str):
        body = body.encode("utf-8")
    return hashlib.sha256(body).hexdigest()


def cache_key(request: RequestDescriptor) -> RequestDescriptor:
    """Derive the cache key for a request.

    Non-POST requests are their own key. A POST becomes a GET for
    ``<url>/_/<sha256(body)>`` carrying the same headers and no body.
    """
    if request.method.upper() != "POST":
        return request

    return RequestDescriptor(
        url=f"{request.url}{KEY_SEPARATOR}{body_digest(request.body)}",
        method="GET",
        headers=request.headers,
    )
