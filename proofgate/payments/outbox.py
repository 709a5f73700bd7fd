"""
Payment outbox: at-most-once delivery of verification notices.

The registry records a notice when a job transitions Pending -> Verified and
then asks the outbox to deliver it. A notice is keyed by job_id; recording the
same job twice is a no-op, so a job can never cause two payment releases.

Delivery is best-effort. If the gate raises, the notice stays in the outbox as
failed and the verification itself stands; `redeliver()` retries failed
notices. Once a notice is delivered it is never sent again.
"""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import asdict, dataclass, replace
from typing import Callable, Dict, List, Optional

from proofgate import metrics
from proofgate.payments.gate import PaymentGate

log = logging.getLogger(__name__)


@dataclass
class PaymentNotice:
    job_id: str
    proof_hash: str
    recorded_at: float
    attempts: int = 0
    delivered_at: Optional[float] = None
    last_error: Optional[str] = None

    @property
    def delivered(self) -> bool:
        return self.delivered_at is not None

    def to_dict(self) -> Dict[str, object]:
        d = asdict(self)
        d["delivered"] = self.delivered
        return d


class PaymentOutbox:
    def __init__(self, gate: PaymentGate, *, clock: Callable[[], float] = time.time) -> None:
        self._gate = gate
        self._clock = clock
        self._lock = threading.Lock()
        self._notices: Dict[str, PaymentNotice] = {}
        self._sending: set = set()

    @property
    def gate(self) -> PaymentGate:
        return self._gate

    def set_gate(self, gate: PaymentGate) -> None:
        with self._lock:
            self._gate = gate
        log.info("payments: gate replaced with %s", type(gate).__name__)

    def record(self, job_id: str, proof_hash: str) -> bool:
        """Queue a notice for `job_id`. Returns False if one already exists."""
        with self._lock:
            if job_id in self._notices:
                log.warning("payments: duplicate notice ignored job_id=%s", job_id)
                return False
            self._notices[job_id] = PaymentNotice(job_id, proof_hash, self._clock())
            return True

    def deliver(self, job_id: str) -> bool:
        """Send the notice for `job_id` if it is still undelivered. True on success."""
        with self._lock:
            notice = self._notices.get(job_id)
            if notice is None or notice.delivered or job_id in self._sending:
                return False
            self._sending.add(job_id)
            notice.attempts += 1
            attempt = notice.attempts
            gate = self._gate
        status = "delivered" if attempt == 1 else "redelivered"
        try:
            gate.on_proof_verified(notice.job_id, notice.proof_hash)
        except Exception as e:
            with self._lock:
                notice.last_error = f"{type(e).__name__}: {e}"
            metrics.record_payment("failed")
            log.exception("payments: delivery failed job_id=%s attempt=%d", job_id, attempt)
            return False
        else:
            with self._lock:
                notice.delivered_at = self._clock()
                notice.last_error = None
        finally:
            with self._lock:
                self._sending.discard(job_id)
        metrics.record_payment(status)
        log.info("payments: %s job_id=%s", status, job_id)
        return True

    def redeliver(self) -> List[str]:
        """Retry every undelivered notice; returns the job_ids now delivered."""
        with self._lock:
            pending = [jid for jid, n in self._notices.items() if not n.delivered]
        return [jid for jid in pending if self.deliver(jid)]

    def get(self, job_id: str) -> Optional[PaymentNotice]:
        with self._lock:
            notice = self._notices.get(job_id)
            return replace(notice) if notice is not None else None

    def undelivered(self) -> List[PaymentNotice]:
        with self._lock:
            return [replace(n) for n in self._notices.values() if not n.delivered]

    def __len__(self) -> int:
        with self._lock:
            return len(self._notices)


__all__ = ["PaymentNotice", "PaymentOutbox"]
