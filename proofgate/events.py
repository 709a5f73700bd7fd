"""
In-process event bus.

The registries publish every event here. The bus keeps an append-only log
(queryable by tests, the RPC layer and the CLI) and fans each event out to
subscribers. A subscriber that raises is logged and skipped: observers never
get to veto or roll back a state transition that already happened.
"""

from __future__ import annotations

import logging
import threading
from typing import Callable, List, Optional

from proofgate.types.events import Event, EventType

log = logging.getLogger(__name__)

Subscriber = Callable[[Event], None]


class EventBus:
    def __init__(self, *, keep: Optional[int] = None) -> None:
        self._log: List[Event] = []
        self._subs: List[Subscriber] = []
        self._keep = keep
        self._lock = threading.Lock()

    def subscribe(self, fn: Subscriber) -> Callable[[], None]:
        """Register `fn`; returns an unsubscribe callable."""
        with self._lock:
            self._subs.append(fn)

        def _unsubscribe() -> None:
            with self._lock:
                if fn in self._subs:
                    self._subs.remove(fn)

        return _unsubscribe

    def emit(self, event: Event) -> None:
        with self._lock:
            self._log.append(event)
            if self._keep is not None and len(self._log) > self._keep:
                del self._log[: len(self._log) - self._keep]
            subs = list(self._subs)
        log.info("event: %s %s", event.etype.value, _key(event))
        for fn in subs:
            try:
                fn(event)
            except Exception:
                log.exception("event: subscriber failed etype=%s", event.etype.value)

    def events(self, etype: Optional[EventType] = None) -> List[Event]:
        with self._lock:
            if etype is None:
                return list(self._log)
            return [e for e in self._log if e.etype == etype]

    def clear(self) -> None:
        with self._lock:
            self._log.clear()


def _key(event: Event) -> str:
    jid = getattr(event, "job_id", None)
    if jid is not None:
        return f"job_id={jid}"
    return f"measurement={getattr(event, 'measurement', '?')}"


__all__ = ["EventBus", "Subscriber"]
