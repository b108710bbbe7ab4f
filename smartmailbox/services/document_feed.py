"""Live document feed: push a user's full collection to every subscriber.

Subscribers get the current collection immediately on subscribe, then again
after every save or delete for that user. The feed never sends deltas;
consumers rebuild whatever they derive (the folder tree) from scratch.
"""

import logging
import threading
from collections import defaultdict
from typing import Callable, List, Sequence

from ..schemas.document import DocumentRecord

logger = logging.getLogger(__name__)

Listener = Callable[[List[DocumentRecord]], None]
Loader = Callable[[str], Sequence[DocumentRecord]]


class DocumentFeed:
    """Per-user observer registry.

    ``loader`` returns a user's current records, newest first. The document
    service calls ``publish`` after it commits a change.
    """

    def __init__(self, loader: Loader):
        self._loader = loader
        self._listeners: dict[str, list[Listener]] = defaultdict(list)
        self._lock = threading.Lock()

    def subscribe(self, user_id: str, listener: Listener) -> Callable[[], None]:
        """Register *listener* for *user_id*; returns the unsubscribe callable."""
        with self._lock:
            self._listeners[user_id].append(listener)

        self._deliver(user_id, [listener], list(self._loader(user_id)))

        def unsubscribe() -> None:
            with self._lock:
                listeners = self._listeners.get(user_id, [])
                if listener in listeners:
                    listeners.remove(listener)
                if not listeners:
                    self._listeners.pop(user_id, None)

        return unsubscribe

    def subscriber_count(self, user_id: str) -> int:
        with self._lock:
            return len(self._listeners.get(user_id, []))

    def publish(self, user_id: str) -> None:
        """Push *user_id*'s current collection to all of their listeners."""
        with self._lock:
            listeners = list(self._listeners.get(user_id, []))
        if not listeners:
            return
        self._deliver(user_id, listeners, list(self._loader(user_id)))

    def _deliver(self, user_id: str, listeners: list[Listener], records: List[DocumentRecord]) -> None:
        for listener in listeners:
            try:
                listener(list(records))
            except Exception:
                logger.exception(
                    "Document feed listener failed",
                    extra={"user_id": user_id, "records": len(records)},
                )
