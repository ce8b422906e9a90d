# hashmark/cli/ui/__init__.py
"""
CLI UI components.

Usage:
    from hashmark.cli.ui import ui

    ui.header("hashmark")
    ui.success("Done!")
"""

from __future__ import annotations

from .console import console
from .output import OutputMixin


class UI(OutputMixin):
    """Unified UI helpers."""

    pass


# Singleton instance
ui = UI()

__all__ = ["ui", "UI", "console"]
