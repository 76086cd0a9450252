"""
Cache module for storing tunnel responses.

Provides the cache store interface, an in-memory store, and a
SQLite-backed store, plus Cache-Control helpers.
"""

from dbconnect.cache.base import CacheStore
from dbconnect.cache.control import build_cache_control, parse_cache_control
from dbconnect.cache.memory import MemoryCache
from dbconnect.cache.sqlite import SqliteCache

__all__ = [
    "CacheStore",
    "MemoryCache",
    "SqliteCache",
    "build_cache_control",
    "parse_cache_control",
]
