"""
Refresh Job - run a discovery pass without blocking the UI.

The UI keeps reading the store while the pass runs. Cancelling only
detaches the UI: the pass still finishes and its results are committed,
the completion callback is just not called.
"""

from __future__ import annotations

import threading
from collections.abc import Callable

from loguru import logger

from sshm.discovery.merge import MergeReport
from sshm.discovery.service import DiscoveryService


class RefreshJob:
    """A single background discovery pass."""

    def __init__(
        self,
        service: DiscoveryService,
        on_done: Callable[[RefreshJob], None] | None = None,
    ):
        self.service = service
        self.on_done = on_done
        self.report: MergeReport | None = None
        self.error: Exception | None = None
        self._cancelled = threading.Event()
        self._finished = threading.Event()
        self._thread = threading.Thread(target=self._run, name="sshm-refresh")

    def start(self) -> RefreshJob:
        self._thread.start()
        return self

    def _run(self) -> None:
        try:
            self.report = self.service.run()
        except Exception as e:
            # Surfaced through .error; the UI shows it as a notice
            self.error = e
            logger.error(f"❌ Background refresh failed: {e}")

        try:
            if self.on_done is not None and not self._cancelled.is_set():
                self.on_done(self)
        finally:
            self._finished.set()

    def cancel(self) -> None:
        """Stop reporting back to the UI; the running pass is not interrupted."""
        self._cancelled.set()

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    @property
    def done(self) -> bool:
        return self._finished.is_set()

    def wait(self, timeout: float | None = None) -> bool:
        """Block until the pass is over; True if it finished in time."""
        return self._finished.wait(timeout)
