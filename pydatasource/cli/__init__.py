"""Command line interface for pydatasource."""
