"""Utility modules for the pydatasource CLI."""
