"""substack command line."""

from substack.cli.app import app

__all__ = ["app"]
