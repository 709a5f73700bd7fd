"""
proofgate.queue.pending
=======================

Per-proof-type index of jobs still waiting for a proof.

Layout
------
    slots[code]       append-only list of job_ids; slot_index = list position
    index[job_id]     (code, slot_index) of the job's current slot
    in_queue[job_id]  False once the job is removed (tombstone)
    live[code]        number of live entries per code

Behavior
--------
- enqueue appends and records the slot. A job_id may be live in at most one
  slot; enqueueing a live job raises.
- remove flips the tombstone through the reverse index in O(1). It is
  idempotent: removing an absent or already-removed job returns False.
- list scans from the start of a code's slots, skipping tombstones and (when a
  predicate is supplied) jobs whose status is no longer Pending.

Trade-off
---------
Slots are never compacted implicitly, so `list` costs O(len(slots[code])),
including every tombstone accumulated so far. This keeps remove O(1) and slot
indices stable. Operators that accumulate many tombstones can call `compact`
during maintenance; it rewrites one code's slots and reverse index.

Not thread-safe by itself; the job registry serializes access.
"""

from __future__ import annotations

import logging
from typing import Callable, Dict, Iterable, List, Optional, Tuple

from proofgate.errors import StateError

log = logging.getLogger(__name__)

Slot = Tuple[int, int]  # (proof_type_code, slot_index)


class PendingQueue:
    def __init__(self) -> None:
        self._slots: Dict[int, List[str]] = {}
        self._index: Dict[str, Slot] = {}
        self._in_queue: Dict[str, bool] = {}
        self._live: Dict[int, int] = {}

    # ---- mutations

    def enqueue(self, code: int, job_id: str) -> Slot:
        code = int(code)
        if self._in_queue.get(job_id):
            raise StateError("job already queued", job_id=job_id, details={"slot": list(self._index[job_id])})
        slots = self._slots.setdefault(code, [])
        slot = (code, len(slots))
        slots.append(job_id)
        self._index[job_id] = slot
        self._in_queue[job_id] = True
        self._live[code] = self._live.get(code, 0) + 1
        log.debug("pending: enqueued job_id=%s code=%d slot=%d", job_id, code, slot[1])
        return slot

    def remove(self, job_id: str) -> bool:
        """Tombstone the job's slot. Returns True iff it was live."""
        if not self._in_queue.get(job_id):
            return False
        code, _ = self._index[job_id]
        self._in_queue[job_id] = False
        self._live[code] = max(0, self._live.get(code, 0) - 1)
        log.debug("pending: removed job_id=%s code=%d", job_id, code)
        return True

    def compact(self, code: int) -> int:
        """
        Drop tombstoned slots for one code and renumber the survivors.
        Returns the number of slots reclaimed.
        """
        code = int(code)
        old = self._slots.get(code, [])
        kept: List[str] = []
        for i, jid in enumerate(old):
            if self._in_queue.get(jid) and self._index.get(jid) == (code, i):
                kept.append(jid)
        for i, jid in enumerate(kept):
            self._index[jid] = (code, i)
        reclaimed = len(old) - len(kept)
        self._slots[code] = kept
        # forget tombstones that no longer back any slot
        for jid in [j for j, live in self._in_queue.items() if not live and self._index[j][0] == code]:
            del self._in_queue[jid]
            del self._index[jid]
        if reclaimed:
            log.info("pending: compacted code=%d reclaimed=%d live=%d", code, reclaimed, len(kept))
        return reclaimed

    # ---- reads

    def list(
        self,
        code: int,
        max_count: int,
        is_pending: Optional[Callable[[str], bool]] = None,
    ) -> List[str]:
        """Up to `max_count` live job_ids for `code`, oldest first."""
        out: List[str] = []
        if max_count <= 0:
            return out
        code = int(code)
        for i, jid in enumerate(self._slots.get(code, ())):
            if not self._in_queue.get(jid) or self._index.get(jid) != (code, i):
                continue
            if is_pending is not None and not is_pending(jid):
                continue
            out.append(jid)
            if len(out) >= max_count:
                break
        return out

    def contains(self, job_id: str) -> bool:
        return bool(self._in_queue.get(job_id))

    def slot_of(self, job_id: str) -> Optional[Slot]:
        """Current slot if the job is live, else None."""
        return self._index[job_id] if self._in_queue.get(job_id) else None

    def live_count(self, code: int) -> int:
        return self._live.get(int(code), 0)

    def backing_size(self, code: int) -> int:
        """Slots held for `code`, tombstones included."""
        return len(self._slots.get(int(code), ()))

    def codes(self) -> Iterable[int]:
        return sorted(self._slots)


__all__ = ["PendingQueue", "Slot"]
