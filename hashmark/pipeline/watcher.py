# hashmark/pipeline/watcher.py
"""
Watch loop: one reconciliation pass per change event.

The watcher blocks on the event source with no timeout. stop() may be
called from any thread (e.g. a signal handler path) and unblocks the wait
by unsubscribing the source.
"""

from __future__ import annotations

import threading
from pathlib import Path
from typing import Callable, Optional

from hashmark.logging.logger import get_logger
from hashmark.logging.tags import WATCH
from hashmark.pipeline.executor import PassSummary, ReconcileExecutor
from hashmark.watch.source import ChangeEventSource

logger = get_logger(__name__)

PassCallback = Callable[[Optional[str], PassSummary], None]


class Watcher:
    """
    Drives a ReconcileExecutor from a ChangeEventSource.

    Usage:
        watcher = Watcher(executor, WatchdogEventSource("assets"), "assets")
        try:
            watcher.run()
        except KeyboardInterrupt:
            watcher.stop()
    """

    def __init__(
        self,
        executor: ReconcileExecutor,
        source: ChangeEventSource,
        source_dir: str | Path,
        *,
        initial_scan: bool = False,
        force: bool = False,
        on_pass: Optional[PassCallback] = None,
    ) -> None:
        """
        Args:
            executor: Executor running each pass.
            source: Event source for `source_dir`.
            source_dir: Input directory the events refer to.
            initial_scan: Run one batch pass before waiting for events.
            force: Passed through to every pass.
            on_pass: Optional callback(filename, summary) after each pass;
                     filename is None for the initial scan.
        """
        self._executor = executor
        self._source = source
        self._source_dir = Path(source_dir)
        self._initial_scan = initial_scan
        self._force = force
        self._on_pass = on_pass
        self._stop = threading.Event()

    @property
    def stopped(self) -> bool:
        return self._stop.is_set()

    def run(self) -> int:
        """
        Process events until the source ends or stop() is called.

        Returns:
            Number of passes performed.

        Raises:
            EnumerationError: if the initial scan cannot list the directory
                              or the directory cannot be watched.
        """
        passes = 0

        # Arm the watch first so changes made during the initial scan queue up.
        events = self._source.subscribe()
        try:
            # stop() may have run before subscribe() armed the source.
            if self.stopped:
                return passes

            if self._initial_scan:
                summary = self._executor.run(self._source_dir, force=self._force)
                passes += 1
                self._notify(None, summary)

            for filename in events:
                if self.stopped:
                    break
                logger.info(f"{WATCH} Change detected: {filename}")
                summary = self._executor.run_one(self._source_dir, filename, force=self._force)
                passes += 1
                self._notify(filename, summary)
                if self.stopped:
                    break
        finally:
            close = getattr(events, "close", None)
            if close is not None:
                close()
            self._source.unsubscribe()

        logger.info(f"{WATCH} Watch ended after {passes} pass(es)")
        return passes

    def stop(self) -> None:
        """Request the loop to end and unblock a pending wait."""
        self._stop.set()
        self._source.unsubscribe()

    def _notify(self, filename: Optional[str], summary: PassSummary) -> None:
        if self._on_pass is not None:
            self._on_pass(filename, summary)


__all__ = ["Watcher"]
