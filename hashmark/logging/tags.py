# hashmark/logging/tags.py
"""Subsystem tags prepended to log messages."""

CLI = "[CLI]"
SCAN = "[SCAN]"
DIFF = "[DIFF]"
COPY = "[COPY]"
MANIFEST = "[MANIFEST]"
WATCH = "[WATCH]"
PASS = "[PASS]"
CONFIG = "[CONFIG]"

__all__ = ["CLI", "SCAN", "DIFF", "COPY", "MANIFEST", "WATCH", "PASS", "CONFIG"]
