# hashmark/watch/source.py
"""
Change event sources.

A ChangeEventSource yields base filenames created or modified in one
directory. The pipeline consumes it through subscribe()/unsubscribe() and
never touches the underlying OS watch directly, so tests can swap in a
fake source.
"""

from __future__ import annotations

import os
import queue
import threading
from pathlib import Path
from typing import Iterable, Iterator, Optional, Protocol, runtime_checkable

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from hashmark.exceptions import EnumerationError
from hashmark.logging.logger import get_logger
from hashmark.logging.tags import WATCH

logger = get_logger(__name__)

JOIN_TIMEOUT = 5.0

_STOP = object()


@runtime_checkable
class ChangeEventSource(Protocol):
    """
    Protocol for directory change notifications.

    subscribe() returns a blocking iterator of filenames in the order the
    OS reported them. Rapid changes may be duplicated or coalesced.
    unsubscribe() ends the iterator promptly and releases the OS watch.
    """

    def subscribe(self) -> Iterator[str]:
        ...

    def unsubscribe(self) -> None:
        ...


class _ChangeHandler(FileSystemEventHandler):
    """Forwards file create/modify events for one directory into a queue."""

    def __init__(self, directory: str, sink: "queue.Queue[object]", ignore_names: frozenset) -> None:
        super().__init__()
        self._directory = directory
        self._sink = sink
        self._ignore = ignore_names

    def _emit(self, raw_path) -> None:
        path = os.path.abspath(os.fsdecode(raw_path))
        if os.path.dirname(path) != self._directory:
            return
        name = os.path.basename(path)
        if not name or name in self._ignore:
            return
        self._sink.put(name)

    def on_created(self, event: FileSystemEvent) -> None:
        if not event.is_directory:
            self._emit(event.src_path)

    def on_modified(self, event: FileSystemEvent) -> None:
        if not event.is_directory:
            self._emit(event.src_path)

    def on_moved(self, event: FileSystemEvent) -> None:
        # A rename into the directory is a new file from our point of view.
        if not event.is_directory:
            self._emit(event.dest_path)


class WatchdogEventSource:
    """
    ChangeEventSource backed by a watchdog Observer.

    Watches exactly one directory, non-recursively. The observer thread
    produces into a queue; the subscriber blocks on it.

    Usage:
        source = WatchdogEventSource("assets", ignore_names={"manifest.json"})
        for name in source.subscribe():
            print("changed:", name)
        # from another thread:
        source.unsubscribe()
    """

    def __init__(self, directory: str | Path, ignore_names: Iterable[str] = ()) -> None:
        self._directory = os.path.abspath(directory)
        self._ignore = frozenset(ignore_names)
        self._lock = threading.Lock()
        self._observer: Optional[Observer] = None
        self._queue: Optional["queue.Queue[object]"] = None

    @property
    def directory(self) -> str:
        return self._directory

    def subscribe(self) -> Iterator[str]:
        """
        Start watching and return the event iterator.

        The watch is armed before this returns, so changes made right after
        subscribing are not lost.

        Raises:
            EnumerationError: if the directory cannot be watched.
            RuntimeError: if already subscribed.
        """
        sink: "queue.Queue[object]" = queue.Queue()
        observer = Observer()
        observer.schedule(
            _ChangeHandler(self._directory, sink, self._ignore),
            self._directory,
            recursive=False,
        )

        with self._lock:
            if self._observer is not None:
                raise RuntimeError(f"Already watching {self._directory}")
            try:
                observer.start()
            except OSError as e:
                raise EnumerationError(self._directory, e) from e
            self._observer = observer
            self._queue = sink

        logger.info(f"{WATCH} Watching {self._directory}")
        return self._iterate(sink, observer)

    def _iterate(self, sink: "queue.Queue[object]", observer: Observer) -> Iterator[str]:
        try:
            while True:
                item = sink.get()
                if item is _STOP:
                    return
                yield item
        finally:
            self._release(observer)

    def unsubscribe(self) -> None:
        """Stop watching. Safe to call more than once or from another thread."""
        with self._lock:
            sink, observer = self._queue, self._observer
            self._queue = None
            self._observer = None

        if sink is not None:
            sink.put(_STOP)
        if observer is not None:
            _stop_observer(observer)
            logger.info(f"{WATCH} Stopped watching {self._directory}")

    def _release(self, observer: Observer) -> None:
        with self._lock:
            if self._observer is observer:
                self._observer = None
                self._queue = None
        _stop_observer(observer)


def _stop_observer(observer: Observer) -> None:
    if observer.is_alive():
        observer.stop()
        if observer is not threading.current_thread():
            observer.join(timeout=JOIN_TIMEOUT)


__all__ = ["ChangeEventSource", "WatchdogEventSource"]
