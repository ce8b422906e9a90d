"""
Main hashmark CLI module.
"""

from hashmark.cli.cli import app

__all__ = ["app"]
