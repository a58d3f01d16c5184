"""Command-line interface."""

from querygovernor.cli.main import app

__all__ = ["app"]
