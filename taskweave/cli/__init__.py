"""Command line interface."""

from taskweave.cli.main import app

__all__ = ["app"]
