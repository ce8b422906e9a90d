from .source import ChangeEventSource, WatchdogEventSource

__all__ = ["ChangeEventSource", "WatchdogEventSource"]
