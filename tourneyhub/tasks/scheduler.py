"""Fixed-interval background jobs."""

from __future__ import annotations

import logging
import threading
from typing import TYPE_CHECKING, Any, Callable, Optional

if TYPE_CHECKING:
    from flask import Flask

logger = logging.getLogger(__name__)


class PeriodicTask:
    """Runs a job every ``interval`` seconds on a daemon thread.

    The job runs inside an application context. Failures are logged and the
    next run goes ahead as scheduled.
    """

    def __init__(
        self, app: Flask, name: str, interval: float, job: Callable[[], Any]
    ) -> None:
        self.app = app
        self.name = name
        self.interval = interval
        self.job = job
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    def run_once(self) -> Any:
        with self.app.app_context():
            try:
                return self.job()
            except Exception:
                logger.exception(f"Periodic task {self.name} failed")
                return None

    def start(self) -> None:
        if self._thread is not None and self._thread.is_alive():
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._run, name=self.name, daemon=True)
        self._thread.start()
        logger.info(f"Started periodic task {self.name} every {self.interval}s")

    def stop(self, timeout: float = 5.0) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None

    def _run(self) -> None:
        while not self._stop.wait(self.interval):
            self.run_once()
