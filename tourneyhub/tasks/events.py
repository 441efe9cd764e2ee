"""Delivery of match-completion events to the progression engine."""

from __future__ import annotations

import logging
import queue
import threading
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Callable, Optional

from firebase_admin import firestore

from tourneyhub.bracket.models import MatchStatus
from tourneyhub.core.constants import MATCHES

if TYPE_CHECKING:
    from google.cloud.firestore_v1.client import Client
    from google.cloud.firestore_v1.watch import Watch

logger = logging.getLogger(__name__)

_STOP = object()


@dataclass(frozen=True)
class MatchCompleted:
    """A match reached completed-with-winner."""

    match_id: str
    tournament_id: str


class MatchEventQueue:
    """In-process queue of match events consumed by a worker thread.

    Delivery is at-least-once; the handler must tolerate duplicates.
    """

    def __init__(self, handler: Callable[[MatchCompleted], Any]) -> None:
        self._handler = handler
        self._queue: queue.Queue = queue.Queue()
        self._thread: Optional[threading.Thread] = None

    def publish(self, event: MatchCompleted) -> None:
        self._queue.put(event)

    def pending(self) -> int:
        return self._queue.qsize()

    def drain(self) -> int:
        """Handle every queued event on the calling thread; return the count."""
        handled = 0
        while True:
            try:
                event = self._queue.get_nowait()
            except queue.Empty:
                return handled
            if event is not _STOP:
                self._dispatch(event)
                handled += 1
            self._queue.task_done()

    def start(self) -> None:
        if self._thread is not None and self._thread.is_alive():
            return
        self._thread = threading.Thread(
            target=self._run, name="match-events", daemon=True
        )
        self._thread.start()

    def stop(self, timeout: float = 5.0) -> None:
        if self._thread is None:
            return
        self._queue.put(_STOP)
        self._thread.join(timeout)
        self._thread = None

    def _run(self) -> None:
        while True:
            event = self._queue.get()
            try:
                if event is _STOP:
                    return
                self._dispatch(event)
            finally:
                self._queue.task_done()

    def _dispatch(self, event: MatchCompleted) -> None:
        try:
            self._handler(event)
        except Exception:
            logger.exception(f"Handler failed for match {event.match_id}")


def completed_events(changes: list[Any]) -> list[MatchCompleted]:
    """Pick the completions out of a batch of match document changes."""
    events = []
    for change in changes:
        if change.type.name not in ("ADDED", "MODIFIED"):
            continue
        data = change.document.to_dict() or {}
        if data.get("status") != MatchStatus.COMPLETED.value:
            continue
        if not data.get("winnerId"):
            continue
        events.append(
            MatchCompleted(
                match_id=change.document.id, tournament_id=data.get("tournamentId", "")
            )
        )
    return events


def watch_completed_matches(db: Client, events: MatchEventQueue) -> Watch:
    """Publish an event whenever a match document turns completed.

    A match entering the completed query arrives as ``ADDED``. The first
    callback carries every match already completed and is skipped.
    Returns the watch so the caller can ``unsubscribe()``.
    """
    initial_load = threading.Event()

    def on_snapshot(_snapshots: Any, changes: list[Any], _read_time: Any) -> None:
        if not initial_load.is_set():
            initial_load.set()
            return
        for event in completed_events(changes):
            events.publish(event)

    query = db.collection(MATCHES).where(
        filter=firestore.FieldFilter("status", "==", MatchStatus.COMPLETED.value)
    )
    logger.info("Watching matches for completions")
    return query.on_snapshot(on_snapshot)
