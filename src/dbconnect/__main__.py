"""
CLI entry point for running dbconnect as a module.

Usage: python -m dbconnect [OPTIONS] COMMAND [ARGS]...
"""

from dbconnect.cli.main import cli

if __name__ == "__main__":
    cli()
