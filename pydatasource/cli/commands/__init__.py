"""Command modules for the pydatasource CLI."""

from pydatasource.cli.commands import get, include, list_sources

__all__ = ["get", "include", "list_sources"]
