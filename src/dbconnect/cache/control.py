"""
Cache-Control directive synthesis and parsing.

Responses are tagged with a directive that encodes both a freshness
window (max-age) and a stale-serving window (stale-while-revalidate).
Cache stores read the same directive back to decide how long to serve
an entry.
"""

from dataclasses import dataclass

NO_STORE = "private, no-store, no-cache"


def build_cache_control(cache_ttl: int, stale_ttl: int) -> str:
    """Create a Cache-Control header value.

    Args:
        cache_ttl: Seconds to serve the response fresh; negative to omit.
        stale_ttl: Seconds to serve the response stale after cache_ttl;
            negative to omit.

    Returns:
        The directive, e.g. "public, max-age=0, stale-while-revalidate=3".
    """
    if cache_ttl < 0 and stale_ttl < 0:
        return NO_STORE

    parts = ["public"]
    if cache_ttl >= 0:
        parts.append(f"max-age={cache_ttl}")
    if stale_ttl >= 0:
        parts.append(f"stale-while-revalidate={stale_ttl}")
    return ", ".join(parts)


@dataclass(frozen=True)
class CacheDirective:
    """Parsed form of a Cache-Control header."""

    no_store: bool = False
    max_age: int | None = None
    stale_while_revalidate: int | None = None

    @property
    def storable(self) -> bool:
        """Return True if a cache may keep the response at all."""
        return not self.no_store

    @property
    def lifetime(self) -> int:
        """Total seconds the response may be served: fresh plus stale."""
        return (self.max_age or 0) + (self.stale_while_revalidate or 0)

    def is_servable(self, age: float) -> bool:
        """Return True if a response of this age may still be served."""
        return self.storable and age < self.lifetime


def parse_cache_control(header: str | None) -> CacheDirective:
    """Parse a Cache-Control header value.

    Unknown directives and malformed numbers are ignored. A missing
    header yields a directive with a zero lifetime.
    """
    if not header:
        return CacheDirective()

    no_store = False
    max_age = None
    stale = None

    for token in header.replace(" ", ",").split(","):
        token = token.strip().lower()
        if not token:
            continue
        name, _, value = token.partition("=")
        if name in ("no-store", "no-cache", "private"):
            no_store = True
        elif name == "max-age":
            max_age = _parse_seconds(value)
        elif name == "stale-while-revalidate":
            stale = _parse_seconds(value)

    return CacheDirective(no_store=no_store, max_age=max_age, stale_while_revalidate=stale)


def _parse_seconds(value: str) -> int | None:
    try:
        seconds = int(value)
    except ValueError:
        return None
    return seconds if seconds >= 0 else None
