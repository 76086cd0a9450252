"""
Command-line interface for db-connect.

Provides Click-based CLI commands for pinging a tunnel, running
queries, and managing the local cache.
"""

from dbconnect.cli.main import cli

__all__ = ["cli"]
